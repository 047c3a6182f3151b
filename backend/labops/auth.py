"""Password hashing, token issuing and the bearer-token guard."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import models
from .config import Settings, get_settings
from .database import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user: models.User,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.token_expire_days))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class AuthStatus(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    REISSUED = "reissued"


@dataclass(frozen=True)
class AuthOutcome:
    status: AuthStatus
    user: models.User | None = None
    message: str | None = None
    new_token: str | None = None


def _load_user(db: Session, subject) -> models.User | None:
    if not subject:
        return None
    try:
        user_id = UUID(str(subject))
    except ValueError:
        return None
    return db.get(models.User, user_id)


def authenticate_token(db: Session, token: str | None, settings: Settings) -> AuthOutcome:
    """Verify ``token`` and resolve the user it names.

    An expired but otherwise genuine token is answered with a freshly signed
    token so the caller can retry the original request.
    """

    if not token:
        return AuthOutcome(AuthStatus.REJECTED, message="No authentication token, access denied")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Token expired, attempting refresh")
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
        if not claims.get("sub"):
            return AuthOutcome(AuthStatus.REJECTED, message="Invalid token payload for refresh")
        user = _load_user(db, claims["sub"])
        if user is None or not user.is_active:
            return AuthOutcome(AuthStatus.REJECTED, message="User not found for token refresh")
        return AuthOutcome(
            AuthStatus.REISSUED,
            user=user,
            message="Token expired, please retry with new token",
            new_token=create_access_token(user, settings),
        )
    except jwt.InvalidTokenError as exc:
        logger.warning("Token verification failed: %s", exc)
        return AuthOutcome(AuthStatus.REJECTED, message="Token verification failed, authorization denied")

    user = _load_user(db, claims.get("sub"))
    if user is None or not user.is_active:
        return AuthOutcome(AuthStatus.REJECTED, message="User not found")
    return AuthOutcome(AuthStatus.AUTHENTICATED, user=user)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> models.User:
    token = credentials.credentials if credentials else None
    outcome = authenticate_token(db, token, settings)
    if outcome.status is AuthStatus.AUTHENTICATED:
        return outcome.user
    if outcome.status is AuthStatus.REISSUED:
        raise HTTPException(
            status_code=401,
            detail={"message": outcome.message, "new_token": outcome.new_token},
        )
    raise HTTPException(status_code=401, detail=outcome.message)
