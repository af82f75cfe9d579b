"""
Server-issued session tokens (JWT, HS256 by default).

The token carries the verified email, display name and role at issue time.
Admin checks re-read the role from the users table on every request, so a role
change takes effect without waiting for the token to expire.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.user import ROLE_ADMIN, ROLE_USER, User

logger = logging.getLogger("auth")

_bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    email: str
    name: str | None = None
    role: str = ROLE_USER

    model_config = {"frozen": True}


def create_access_token(email: str, name: str | None, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "name": name,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=settings.access_token_ttl_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    email = payload.get("sub")
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(email=email, name=payload.get("name"), role=payload.get("role") or ROLE_USER)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> CurrentUser:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(credentials.credentials)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> CurrentUser | None:
    """Anonymous callers get None (free documents are readable without signing in)."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


def is_admin(db: Session, email: str) -> bool:
    user = db.query(User).filter(User.email == email).one_or_none()
    return user is not None and user.role == ROLE_ADMIN


def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CurrentUser:
    if not is_admin(db, current_user.email):
        logger.warning("admin_required", extra={"user": current_user.email})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return current_user


def resolve_subject(db: Session, current_user: CurrentUser, requested: str | None) -> str:
    """
    Email a request acts for. Users act for themselves only; admins may act for anyone.
    """
    if not requested or requested.strip().lower() == current_user.email:
        return current_user.email
    if is_admin(db, current_user.email):
        return requested.strip().lower()
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot act for another user")
