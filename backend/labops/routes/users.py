from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..database import get_db
from ..rbac import ensure_admin, require_permissions

router = APIRouter(prefix="/api/users", tags=["users"])


def _get_user(db: Session, user_id: UUID) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[schemas.UserOut])
async def list_users(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_permissions("users.view")),
):
    query = db.query(models.User)
    if not include_inactive:
        query = query.filter(models.User.is_active.is_(True))
    return query.order_by(models.User.last_name, models.User.first_name).all()


@router.get("/{user_id}", response_model=schemas.UserOut)
async def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_permissions("users.view")),
):
    return _get_user(db, user_id)


@router.put("/{user_id}", response_model=schemas.UserOut)
async def update_user(
    user_id: UUID,
    update: schemas.UserAdminUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_permissions("users.manage")),
):
    ensure_admin(current_user)
    user = _get_user(db, user_id)
    changes = update.model_dump(exclude_unset=True)
    for k, v in changes.items():
        setattr(user, k, v)
    db.commit()
    db.refresh(user)
    audit.log_action(db, current_user.id, "update_user", "user", user.id, {"fields": sorted(changes)})
    return user


@router.delete("/{user_id}", response_model=schemas.MessageOut)
async def deactivate_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_permissions("users.delete")),
):
    ensure_admin(current_user)
    user = _get_user(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")
    user.is_active = False
    db.commit()
    audit.log_action(db, current_user.id, "deactivate_user", "user", user.id)
    return {"message": "User deactivated"}
