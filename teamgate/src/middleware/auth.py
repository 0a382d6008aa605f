"""
Authentication dependencies for API routes.

Provides:
- get_token_service: TokenService built from the application settings
- get_current_user: User identified by the accessToken cookie or a Bearer token
- require_admin: Current user, who must be an active Team admin

The accessToken is the JWT issued by the Google sign-in callback.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from teamgate.src.config.settings import get_settings
from teamgate.src.db.database import get_db
from teamgate.src.models import User
from teamgate.src.services.exceptions import NotFoundError
from teamgate.src.services.token_service import TokenService
from teamgate.src.services.user_service import UserService
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("auth")

ACCESS_TOKEN_COOKIE = "accessToken"


def get_token_service() -> TokenService:
    """FastAPI dependency providing the TokenService."""
    return TokenService(get_settings())


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """
    FastAPI dependency returning the authenticated user.

    Raises:
        HTTPException 401: If no valid access token is presented
        HTTPException 403: If the user is suspended
    """
    claims = tokens.decode_access_token(_extract_token(request))
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = UserService(db).get_by_guid(claims["sub"])
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.is_suspended:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is suspended",
        )

    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Dependency that requires Team admin privileges.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Non-admin {user.guid} attempted an admin operation",
            extra={"event": "auth.admin.denied", "user_guid": user.guid},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user
