"""
Team avatar resolution.

A new Team gets the company logo when the logo lookup service knows the
domain, and otherwise a generated placeholder tile. The placeholder URL is
derived only from the domain and the Team name, so the same domain always
gets the same tile.
"""

import hashlib
from typing import Any

import httpx

from teamgate.src.config.settings import AppSettings
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("services")


class AvatarResolver:
    """
    Picks an avatar URL for a newly provisioned Team.

    Usage:
        >>> resolver = AvatarResolver(get_settings())
        >>> url = await resolver.resolve("acme.com", "Acme")
    """

    def __init__(self, settings: AppSettings, **client_kwargs: Any):
        """
        Args:
            settings: Application settings (service URLs, lookup timeout)
            **client_kwargs: Extra httpx client options (transport, proxies...)
        """
        self.settings = settings
        self._client_kwargs = client_kwargs

    def logo_url(self, domain: str) -> str:
        """Logo lookup URL for a domain."""
        return f"{self.settings.logo_service_url.rstrip('/')}/{domain}"

    def fallback_url(self, domain: str, team_name: str) -> str:
        """
        Deterministic generated-avatar URL.

        Combines the sha256 hex digest of the domain with the first letter
        of the Team name.
        """
        digest = hashlib.sha256(domain.encode("utf-8")).hexdigest()
        letter = team_name[:1] or "?"
        return f"{self.settings.avatar_service_url.rstrip('/')}/avatar/{digest}/{letter}.png"

    async def resolve(self, domain: str, team_name: str) -> str:
        """
        Resolve the avatar URL for a Team.

        Queries the logo service; any non-200 answer, timeout or transport
        error falls back to the generated avatar. Never raises.
        """
        logo_url = self.logo_url(domain)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.logo_lookup_timeout,
                follow_redirects=True,
                **self._client_kwargs,
            ) as client:
                response = await client.get(logo_url)
            if response.status_code == 200:
                return logo_url
            logger.debug(
                f"No logo for {domain} (status {response.status_code})",
                extra={"event": "avatar.logo.missing", "domain": domain},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(
                f"Logo lookup for {domain} failed: {e}",
                extra={"event": "avatar.logo.lookup_failed", "domain": domain},
            )

        return self.fallback_url(domain, team_name)
