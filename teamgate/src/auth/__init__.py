"""
Authentication module for the teamgate backend.

This module provides Google OAuth 2.0 sign-in using Authlib.

Components:
- google_client: Authorization URL and code-for-profile exchange
- domain_policy: Hosted-domain allow-list
"""

from teamgate.src.auth.google_client import GoogleIdentityExchange, GoogleProfile
from teamgate.src.auth.domain_policy import DomainPolicy

__all__ = [
    "GoogleIdentityExchange",
    "GoogleProfile",
    "DomainPolicy",
]
