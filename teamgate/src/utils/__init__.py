"""
Utility modules for the teamgate backend.

- logging_config: Named structured loggers
- domains: Subdomain validation, Team addresses, cookie domains
- client_ip: Client IP extraction behind reverse proxies
"""

from teamgate.src.utils.domains import (
    strip_subdomain,
    team_address,
    validate_subdomain,
)

__all__ = [
    "strip_subdomain",
    "team_address",
    "validate_subdomain",
]
