"""
Google OAuth 2.0 client for the sign-in callback.

Uses Authlib's httpx integration to exchange the authorization code for an
access token and to read the v1 userinfo profile, which carries the
``hd`` (hosted domain) claim that binds the account to a Team.

Nothing here touches the database: the exchange only turns a code into a
GoogleProfile or fails with UpstreamAuthError.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from teamgate.src.config.oauth import OAuthSettings
from teamgate.src.services.exceptions import MissingParameter, UpstreamAuthError
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("auth")

PROVIDER = "google"


@dataclass(frozen=True)
class GoogleProfile:
    """
    Identity assertion returned by Google.

    Attributes:
        id: Google account id (stable per account)
        email: Account email
        name: Display name
        picture: Profile photo URL
        hd: Hosted domain (None for consumer accounts)
    """
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    hd: Optional[str] = None

    @classmethod
    def from_userinfo(cls, data: dict) -> "GoogleProfile":
        """Build a profile from the userinfo payload."""
        if not data.get("id"):
            raise ValueError("userinfo response has no account id")
        return cls(
            id=str(data["id"]),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
            hd=data.get("hd") or None,
        )


class GoogleIdentityExchange:
    """
    Exchanges Google authorization codes for identity assertions.

    Usage:
        >>> exchange = GoogleIdentityExchange(get_oauth_settings())
        >>> url = exchange.authorization_url()
        >>> # ... user consents, Google redirects back with ?code=...
        >>> profile = await exchange.exchange(code)
        >>> profile.hd
        'acme.com'
    """

    def __init__(self, settings: OAuthSettings, **client_kwargs: Any):
        """
        Initialize the exchange.

        Args:
            settings: OAuth configuration (client credentials, redirect URI)
            **client_kwargs: Extra httpx client options (transport, proxies...)
        """
        self.settings = settings
        self._client_kwargs = client_kwargs

    def _client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.settings.google_client_id,
            client_secret=self.settings.google_client_secret,
            scope=" ".join(self.settings.oauth_scopes),
            redirect_uri=self.settings.google_redirect_uri,
            timeout=self.settings.oauth_timeout,
            **self._client_kwargs,
        )

    def authorization_url(self) -> str:
        """
        Build the Google consent URL.

        Requests offline access and forces the consent prompt so a refresh
        token is issued every time.
        """
        client = AsyncOAuth2Client(
            client_id=self.settings.google_client_id,
            scope=" ".join(self.settings.oauth_scopes),
            redirect_uri=self.settings.google_redirect_uri,
        )
        url, _state = client.create_authorization_url(
            self.settings.google_authorize_url,
            access_type="offline",
            prompt="consent",
        )
        return url

    async def exchange(self, code: Optional[str]) -> GoogleProfile:
        """
        Exchange an authorization code for the user's profile.

        Args:
            code: Authorization code from the callback query string

        Returns:
            GoogleProfile of the signed-in account

        Raises:
            MissingParameter: If code is absent or blank
            UpstreamAuthError: If the token exchange or profile fetch fails
        """
        if not code or not code.strip():
            raise MissingParameter("code")

        async with self._client() as client:
            try:
                await client.fetch_token(
                    self.settings.google_token_url,
                    code=code,
                )
            except (AuthlibBaseError, httpx.HTTPError, ValueError) as e:
                logger.warning(
                    f"Google token exchange failed: {e}",
                    extra={"event": "auth.google.token_failed"},
                )
                raise UpstreamAuthError(PROVIDER, "token exchange failed") from e

            try:
                response = await client.get(self.settings.google_userinfo_url)
                response.raise_for_status()
                profile = GoogleProfile.from_userinfo(response.json())
            except (AuthlibBaseError, httpx.HTTPError, ValueError) as e:
                logger.warning(
                    f"Google profile fetch failed: {e}",
                    extra={"event": "auth.google.profile_failed"},
                )
                raise UpstreamAuthError(PROVIDER, "profile fetch failed") from e

        logger.debug(
            "Google profile received",
            extra={"event": "auth.google.profile", "hd": profile.hd},
        )
        return profile
