"""
Request authentication for teamgate API routes.

This module provides:
- get_current_user: FastAPI dependency resolving the signed-in user
- require_admin: FastAPI dependency requiring Team admin privileges
"""

from teamgate.src.middleware.auth import get_current_user, get_token_service, require_admin

__all__ = [
    "get_current_user",
    "get_token_service",
    "require_admin",
]
