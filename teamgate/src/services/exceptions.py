"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.

Sign-in policy rejections (NoHostedDomain, DomainNotAllowed) are not failures
from the user's point of view: the callback turns them into a redirect that
carries their ``notice`` code.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class SubdomainConflict(ConflictError):
    """Raised when a subdomain is already claimed by another Team."""

    def __init__(self, subdomain: str):
        self.subdomain = subdomain
        super().__init__(f"Subdomain '{subdomain}' is already in use")


class MissingParameter(ServiceError):
    """Raised when a required request parameter is absent."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        self.message = f"{parameter} is required"
        super().__init__(self.message)


class UpstreamAuthError(ServiceError):
    """Raised when the identity provider token or profile exchange fails."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class PolicyRejection(ServiceError):
    """Base class for sign-in attempts rejected by domain policy."""

    notice: str = "signin-rejected"

    def __init__(self, message: str, domain: Optional[str] = None):
        self.message = message
        self.domain = domain
        super().__init__(message)


class NoHostedDomain(PolicyRejection):
    """Raised when the provider assertion carries no hosted domain."""

    notice = "google-hd"

    def __init__(self):
        super().__init__("Account is not part of a hosted domain")


class DomainNotAllowed(PolicyRejection):
    """Raised when the hosted domain is not in the allow-list."""

    notice = "hd-not-allowed"

    def __init__(self, domain: str):
        super().__init__(f"Domain '{domain}' is not allowed to sign in", domain=domain)


class AvatarFetchError(ServiceError):
    """Raised when an avatar image cannot be fetched or stored."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"Could not fetch avatar {url}: {message}")


class LastAdminError(ServiceError):
    """Raised when an operation would leave a Team without an administrator."""

    def __init__(self, team_guid: Optional[str] = None):
        self.team_guid = team_guid
        self.message = "At least one admin is required"
        super().__init__(self.message)


class SelfSuspensionError(ServiceError):
    """Raised when an administrator attempts to suspend themselves."""

    def __init__(self):
        self.message = "Unable to suspend the current user"
        super().__init__(self.message)
