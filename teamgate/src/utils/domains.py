"""
Hostname and subdomain helpers.

Teams can be reached at ``{subdomain}.{base host}``. The helpers here validate
subdomain labels, compose Team addresses and compute the parent host that
cookies are scoped to.
"""

import ipaddress
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from teamgate.src.services.exceptions import ValidationError


SUBDOMAIN_MIN_LENGTH = 4
SUBDOMAIN_MAX_LENGTH = 32

SUBDOMAIN_PATTERN = re.compile(r"^[a-z\d-]+$", re.IGNORECASE)

# Labels that route to infrastructure or could be mistaken for it
RESERVED_SUBDOMAINS = frozenset([
    "about",
    "account",
    "admin",
    "advertising",
    "api",
    "app",
    "assets",
    "archive",
    "beta",
    "billing",
    "blog",
    "cache",
    "cdn",
    "code",
    "community",
    "dashboard",
    "developer",
    "developers",
    "forum",
    "help",
    "home",
    "http",
    "https",
    "imap",
    "localhost",
    "mail",
    "marketing",
    "mobile",
    "multiplayer",
    "new",
    "news",
    "newsletter",
    "ns1",
    "ns2",
    "ns3",
    "ns4",
    "password",
    "profile",
    "sandbox",
    "script",
    "scripts",
    "search",
    "secure",
    "security",
    "setup",
    "signin",
    "signup",
    "smtp",
    "static",
    "status",
    "store",
    "support",
    "teams",
    "test",
    "update",
    "upload",
    "uploads",
    "user",
    "users",
    "www",
])


def validate_subdomain(subdomain: str) -> str:
    """
    Validate a subdomain label.

    Args:
        subdomain: Proposed label

    Returns:
        The label, unchanged

    Raises:
        ValidationError: If the label is not lowercase, contains anything but
            letters, digits and dashes, has the wrong length, or is reserved
    """
    if not subdomain:
        raise ValidationError("Subdomain cannot be empty", field="subdomain")

    if subdomain != subdomain.lower():
        raise ValidationError("Must be lowercase", field="subdomain")

    if not SUBDOMAIN_PATTERN.match(subdomain):
        raise ValidationError("Must be only alphanumeric and dashes", field="subdomain")

    if not SUBDOMAIN_MIN_LENGTH <= len(subdomain) <= SUBDOMAIN_MAX_LENGTH:
        raise ValidationError(
            f"Must be between {SUBDOMAIN_MIN_LENGTH} and {SUBDOMAIN_MAX_LENGTH} characters",
            field="subdomain",
        )

    if subdomain in RESERVED_SUBDOMAINS:
        raise ValidationError(
            "You chose a restricted word, please try another.", field="subdomain"
        )

    return subdomain


def team_address(base_url: str, subdomain: Optional[str]) -> str:
    """
    Public address of a Team.

    Examples:
        >>> team_address("https://example.com", None)
        'https://example.com'
        >>> team_address("https://example.com/", "acme")
        'https://acme.example.com'
    """
    if not subdomain:
        return base_url

    parts = urlsplit(base_url)
    netloc = f"{subdomain}.{parts.netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)).rstrip("/")


def strip_subdomain(hostname: str) -> str:
    """
    Parent host used as cookie domain.

    Keeps the last two labels of a hostname so cookies set on
    ``acme.example.com`` are visible on ``example.com`` and every Team
    subdomain. Single-label hosts and IP addresses are returned unchanged.

    Examples:
        >>> strip_subdomain("acme.example.com")
        'example.com'
        >>> strip_subdomain("localhost")
        'localhost'
    """
    if not hostname:
        return hostname

    host = hostname.split(":")[0]
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    labels = host.split(".")
    if len(labels) <= 2:
        return host
    return ".".join(labels[-2:])


def tenant_label(domain: str) -> str:
    """First DNS label of a hosted domain, e.g. "acme" for "acme.com"."""
    return domain.split(".")[0]


def team_name_from_domain(domain: str) -> str:
    """Display name for a new Team, e.g. "Acme" for "acme.com"."""
    return tenant_label(domain).capitalize()
