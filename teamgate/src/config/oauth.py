"""
OAuth 2.0 configuration for the Google sign-in provider.

Configuration is loaded from environment variables. Business logic never
reads these settings on its own: API dependencies build an OAuthSettings
instance and pass it to the services that need it.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v1/userinfo"


class OAuthSettings(BaseSettings):
    """
    OAuth provider configuration loaded from environment variables.

    Environment Variables:
        GOOGLE_CLIENT_ID: Google OAuth client ID
        GOOGLE_CLIENT_SECRET: Google OAuth client secret
        URL: Public base URL; the callback is {URL}/auth/google.callback
        GOOGLE_ALLOWED_DOMAINS: Comma-separated hosted domains allowed to
            sign in (empty = allow all)
    """

    google_client_id: Optional[str] = Field(default=None, validation_alias="GOOGLE_CLIENT_ID")
    google_client_secret: Optional[str] = Field(default=None, validation_alias="GOOGLE_CLIENT_SECRET")

    oauth_redirect_base_url: str = Field(
        default="http://localhost:3000",
        validation_alias="URL"
    )

    google_allowed_domains: str = Field(
        default="",
        validation_alias="GOOGLE_ALLOWED_DOMAINS",
        description="Comma-separated hosted domains allowed to sign in (empty = all)"
    )

    google_authorize_url: str = GOOGLE_AUTHORIZE_URL
    google_token_url: str = GOOGLE_TOKEN_URL
    google_userinfo_url: str = GOOGLE_USERINFO_URL

    oauth_scopes: list[str] = [
        "https://www.googleapis.com/auth/userinfo.profile",
        "https://www.googleapis.com/auth/userinfo.email",
    ]

    # Seconds allowed for each call to Google during the callback
    oauth_timeout: float = Field(default=10.0, validation_alias="GOOGLE_OAUTH_TIMEOUT", gt=0)

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def google_enabled(self) -> bool:
        """Check if Google OAuth is configured."""
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def google_redirect_uri(self) -> str:
        """Get Google OAuth callback URL."""
        return f"{self.oauth_redirect_base_url.rstrip('/')}/auth/google.callback"

    @property
    def allowed_domains(self) -> List[str]:
        """
        Allowed hosted domains in configured order.

        Returns:
            List of domains; empty when every domain is allowed
        """
        if not self.google_allowed_domains:
            return []
        domains = []
        for domain in self.google_allowed_domains.split(","):
            domain = domain.strip().lower()
            if domain and domain not in domains:
                domains.append(domain)
        return domains


@lru_cache()
def get_oauth_settings() -> OAuthSettings:
    """
    Get cached OAuth settings instance.

    Returns:
        OAuthSettings: Configured OAuth settings from environment
    """
    return OAuthSettings()
