"""
Sign-in: exchanges an identity provider assertion for a server-issued session token.
The token (not browser-local flags) is the source of identity and role for every call.
"""
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.auth import SessionIn, SessionOut, UserInfo
from app.services.auth.jwt import CurrentUser, create_access_token, get_current_user
from app.services.identity.provider import (
    IdentityError,
    IdentityProvider,
    IdentityUnavailableError,
    get_identity_provider,
)
from app.services.rate_limit import get_client_ip, sign_in_limiter
from app.services.users.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session", response_model=SessionOut)
def create_session(
    request: Request,
    body: SessionIn = Body(...),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """
    Verify the sign-in assertion, upsert the user, return a bearer token.
    Rate limited per client IP.
    """
    client_ip = get_client_ip(request)
    limiter = sign_in_limiter()
    limiter.hit(client_ip)

    try:
        identity = provider.verify(body.id_token)
    except IdentityUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except IdentityError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    limiter.reset(client_ip)
    user = UserService(db).get_or_create_user(identity.email, identity.display_name)
    token = create_access_token(user.email, user.display_name, user.role)
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.access_token_ttl_seconds,
        "user": {"email": user.email, "name": user.display_name, "role": user.role},
    }


@router.get("/me", response_model=UserInfo)
def get_me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Current identity; the role comes from the users table, not the token."""
    user = UserService(db).get(current_user.email)
    if not user:
        return UserInfo(email=current_user.email, name=current_user.name, role=current_user.role)
    return UserInfo(email=user.email, name=user.display_name, role=user.role)
