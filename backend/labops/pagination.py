import math

from sqlalchemy.orm import Query


def paginate(query: Query, page: int = 1, limit: int = 50) -> dict:
    """Run ``query`` for one page and wrap the rows in the list envelope."""

    page = max(page, 1)
    limit = max(limit, 1)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": rows,
        "pagination": {
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
            "page": page,
            "limit": limit,
        },
    }
