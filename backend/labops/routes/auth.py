import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from .. import audit, models, notify, schemas
from ..auth import create_access_token, get_current_user, get_password_hash, verify_password
from ..config import Settings, get_settings
from ..database import get_db

logger = logging.getLogger(__name__)

# enabled per application in create_app
limiter = Limiter(key_func=get_remote_address)


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=schemas.Token)
@limiter.limit("5/minute")
async def register(
    request: Request,
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    existing = db.query(models.User).filter(models.User.email == user.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    first_user = db.query(models.User).first() is None
    db_user = models.User(
        email=user.email,
        hashed_password=get_password_hash(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        role="admin" if first_user else "employee",
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    audit.log_action(db, db_user.id, "register", "user", db_user.id)
    return schemas.Token(access_token=create_access_token(db_user, settings))


@router.post("/login", response_model=schemas.Token)
@limiter.limit("10/minute")
async def login(
    request: Request,
    user: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    db_user = db.query(models.User).filter(models.User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")
    audit.log_action(db, db_user.id, "login", "user", db_user.id)
    return schemas.Token(access_token=create_access_token(db_user, settings))


@router.get("/me", response_model=schemas.UserOut)
async def read_me(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=schemas.UserOut)
async def update_me(
    update: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    for k, v in update.model_dump(exclude_unset=True).items():
        setattr(current_user, k, v)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.post("/forgot-password")
async def forgot_password(
    data: schemas.PasswordResetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = db.query(models.User).filter(models.User.email == data.email).first()
    if user:
        token = uuid.uuid4().hex
        expires = datetime.now(timezone.utc) + timedelta(minutes=settings.password_reset_minutes)
        db.add(models.PasswordResetToken(user_id=user.id, token=token, expires_at=expires))
        db.commit()
        notify.send_email(settings, user.email, "Password Reset", f"Use this code to reset: {token}")
    else:
        logger.info("Password reset requested for unknown email")
    return {"status": "sent"}


@router.post("/reset-password")
async def reset_password(data: schemas.PasswordResetConfirm, db: Session = Depends(get_db)):
    record = (
        db.query(models.PasswordResetToken)
        .filter(
            models.PasswordResetToken.token == data.token,
            models.PasswordResetToken.used.is_(False),
        )
        .first()
    )
    if not record:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    expires_at = record.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    user = db.get(models.User, record.user_id)
    user.hashed_password = get_password_hash(data.new_password)
    record.used = True
    db.commit()
    return {"status": "password updated"}
