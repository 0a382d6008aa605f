"""
Hosted-domain policy for Google sign-in.

Only Google Workspace accounts (those carrying an ``hd`` claim) can sign in,
because the hosted domain is what identifies the Team. Deployments may
further restrict sign-in to an allow-list of domains.
"""

from typing import Iterable, List, Optional

from teamgate.src.services.exceptions import DomainNotAllowed, NoHostedDomain


class DomainPolicy:
    """
    Accepts or rejects a hosted-domain claim.

    An empty allow-list allows every hosted domain.

    Usage:
        >>> policy = DomainPolicy(["acme.com"])
        >>> policy.check("acme.com")
        'acme.com'
        >>> policy.check("other.com")
        Traceback (most recent call last):
        ...
        DomainNotAllowed: Domain 'other.com' is not allowed to sign in
    """

    def __init__(self, allowed_domains: Optional[Iterable[str]] = None):
        self.allowed_domains: List[str] = [
            d.strip().lower() for d in (allowed_domains or []) if d and d.strip()
        ]

    @property
    def allows_all(self) -> bool:
        return not self.allowed_domains

    def check(self, hosted_domain: Optional[str]) -> str:
        """
        Validate a hosted-domain claim.

        Args:
            hosted_domain: The ``hd`` claim of the assertion

        Returns:
            The hosted domain, to be used as the tenant key

        Raises:
            NoHostedDomain: If the assertion has no hosted domain
            DomainNotAllowed: If an allow-list is set and does not contain it
        """
        if not hosted_domain:
            raise NoHostedDomain()

        if not self.allows_all and hosted_domain.lower() not in self.allowed_domains:
            raise DomainNotAllowed(hosted_domain)

        return hosted_domain
