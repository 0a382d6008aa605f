"""
Configuration module for the teamgate backend.

Provides centralized configuration for:
- OAuth provider credentials and the hosted-domain allow-list
- Application settings (base URL, token signing, avatar services, storage)
"""

from teamgate.src.config.oauth import OAuthSettings, get_oauth_settings
from teamgate.src.config.settings import AppSettings, get_settings

__all__ = [
    "OAuthSettings",
    "get_oauth_settings",
    "AppSettings",
    "get_settings",
]
