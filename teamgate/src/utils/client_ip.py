"""
Client IP extraction for sign-in tracking and rate limiting.

Behind nginx the direct peer is the proxy, so the first hop of
X-Forwarded-For (or X-Real-IP) is preferred when present.
"""

from typing import Optional

from fastapi import Request


def get_client_ip(request: Request) -> Optional[str]:
    """
    Extract the originating client IP address from a request.

    Args:
        request: FastAPI/Starlette Request object

    Returns:
        Client IP address string, or None if unavailable
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First entry is the original client, the rest is the proxy chain
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else None


def rate_limit_key(request: Request) -> str:
    """Key function for slowapi; groups requests by client IP."""
    return get_client_ip(request) or "unknown"
