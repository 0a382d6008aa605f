"""
Access token issuance for signed-in users.

The callback hands the browser a signed JWT in the ``accessToken`` cookie.
The token names the user and team by GUID and expires after
ACCESS_TOKEN_EXPIRY_DAYS (one month by default).
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from teamgate.src.config.settings import AppSettings
from teamgate.src.models import User
from teamgate.src.services.exceptions import ServiceError
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("services")


TOKEN_ALGORITHM = "HS256"
TOKEN_TYPE = "access"


class TokenService:
    """
    Signs and verifies user access tokens.

    Usage:
        >>> service = TokenService(get_settings())
        >>> token = service.issue_access_token(user)
        >>> service.decode_access_token(token)["sub"] == user.guid
        True
    """

    def __init__(self, settings: AppSettings):
        """
        Args:
            settings: Application settings (SECRET_KEY and expiry)
        """
        self.settings = settings

    def issue_access_token(self, user: User, now: Optional[datetime] = None) -> str:
        """
        Sign an access token for a user.

        Raises:
            ServiceError: If SECRET_KEY is not configured
        """
        if not self.settings.jwt_configured:
            raise ServiceError("SECRET_KEY is not configured; cannot issue access tokens")

        issued_at = now or datetime.utcnow()
        payload = {
            "sub": user.guid,
            "team": user.team.guid if user.team else None,
            "type": TOKEN_TYPE,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.settings.access_token_expiry_days),
        }
        return jwt.encode(payload, self.settings.secret_key, algorithm=TOKEN_ALGORITHM)

    def decode_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify an access token.

        Returns:
            The claims, or None if the token is invalid, expired or not an
            access token
        """
        if not token or not self.settings.jwt_configured:
            return None

        try:
            payload = jwt.decode(token, self.settings.secret_key, algorithms=[TOKEN_ALGORITHM])
        except JWTError as e:
            logger.warning(f"Access token rejected: {e}")
            return None

        if payload.get("type") != TOKEN_TYPE or not payload.get("sub"):
            logger.warning("Access token rejected: unexpected claims")
            return None

        return payload
