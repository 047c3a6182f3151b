from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..rbac import ensure_admin

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("", response_model=list[schemas.AuditLogOut])
async def list_logs(
    user_id: UUID | None = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if user_id and user_id != current_user.id:
        ensure_admin(current_user)
    target = user_id or current_user.id
    return (
        db.query(models.AuditLog)
        .filter(models.AuditLog.user_id == target)
        .order_by(models.AuditLog.created_at.desc())
        .all()
    )


@router.get("/report", response_model=list[schemas.AuditReportItem])
async def audit_report(
    start: datetime,
    end: datetime,
    user_id: UUID | None = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if user_id and user_id != current_user.id:
        ensure_admin(current_user)
    return audit.generate_report(db, start, end, user_id or current_user.id)
