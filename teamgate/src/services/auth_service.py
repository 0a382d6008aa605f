"""
Google sign-in orchestration.

Handles the business logic of the OAuth callback:
- Exchanging the authorization code for a Google profile
- Applying the hosted-domain policy
- Giving new Teams a generated avatar (the logo lookup runs after the
  response, see refresh_team_avatar)
- Finding or creating the Team and the User
- Seeding a newly created Team (default collection, subdomain)

Policy:
- Only accounts with a hosted domain can sign in; the domain is the Team key
- The first user of a new Team is its admin; later users are not, unless
  the Team has no admin left (its first user was never created)
- Returning users are signed in unchanged
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from teamgate.src.auth.domain_policy import DomainPolicy
from teamgate.src.auth.google_client import PROVIDER, GoogleIdentityExchange, GoogleProfile
from teamgate.src.models import Team, User
from teamgate.src.services.avatar_service import AvatarResolver
from teamgate.src.services.exceptions import PolicyRejection
from teamgate.src.services.team_service import TeamService
from teamgate.src.services.user_service import UserService
from teamgate.src.utils.domains import team_name_from_domain
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("auth")


@dataclass
class SignInResult:
    """
    Result of a sign-in attempt.

    Attributes:
        success: Whether the user is signed in
        team: Team the user signed in to (if success)
        user: Signed-in user (if success)
        team_created: Whether the Team was provisioned by this sign-in
        user_created: Whether the User was provisioned by this sign-in
        notice: Notice code for the sign-in page (if rejected by policy)
        error: Error message (if rejected by policy)
    """
    success: bool
    team: Optional[Team] = None
    user: Optional[User] = None
    team_created: bool = False
    user_created: bool = False
    notice: Optional[str] = None
    error: Optional[str] = None


class GoogleSignInService:
    """
    Service completing Google sign-in callbacks.

    Usage:
        >>> service = GoogleSignInService(db, exchange, policy, resolver)
        >>> result = await service.sign_in(code)
        >>> if result.success:
        ...     token = TokenService(settings).issue_access_token(result.user)
        ... else:
        ...     redirect_with_notice(result.notice)
    """

    def __init__(
        self,
        db: Session,
        exchange: GoogleIdentityExchange,
        policy: DomainPolicy,
        avatar_resolver: AvatarResolver,
    ):
        """
        Initialize sign-in service.

        Args:
            db: SQLAlchemy database session
            exchange: Google code-for-profile exchange
            policy: Hosted-domain policy
            avatar_resolver: Generated avatars for new Teams
        """
        self.db = db
        self.exchange = exchange
        self.policy = policy
        self.avatar_resolver = avatar_resolver
        self.team_service = TeamService(db)
        self.user_service = UserService(db)

    async def sign_in(self, code: Optional[str]) -> SignInResult:
        """
        Complete a sign-in from an authorization code.

        Args:
            code: Authorization code from the callback

        Returns:
            SignInResult; policy rejections are returned with a notice code

        Raises:
            MissingParameter: If code is absent
            UpstreamAuthError: If Google cannot be reached or rejects the code
        """
        profile = await self.exchange.exchange(code)

        try:
            domain = self.policy.check(profile.hd)
        except PolicyRejection as e:
            logger.info(
                f"Sign-in rejected for {profile.email}: {e.message}",
                extra={"event": "auth.signin.rejected", "notice": e.notice, "domain": e.domain},
            )
            return SignInResult(success=False, notice=e.notice, error=e.message)

        return self._provision(profile, domain, team_name_from_domain(domain))

    def _provision(
        self,
        profile: GoogleProfile,
        domain: str,
        team_name: str,
    ) -> SignInResult:
        team, team_created = self.team_service.find_or_create_by_external_id(
            provider=PROVIDER,
            external_tenant_id=domain,
            name=team_name,
            avatar_url=self.avatar_resolver.fallback_url(domain, team_name),
        )

        # A Team whose first user was never created has no admin yet
        grant_admin = team_created or self.team_service.count_admins(team.id) == 0

        user, user_created = self.user_service.find_or_create_by_service_id(
            service=PROVIDER,
            service_id=profile.id,
            team_id=team.id,
            name=profile.name,
            email=profile.email,
            avatar_url=profile.picture,
            is_admin=grant_admin,
        )

        if team_created:
            self.team_service.provision_new_team(team, user)

        logger.info(
            f"User {user.guid} signed in to team {team.guid}",
            extra={
                "event": "auth.signin.success",
                "user_guid": user.guid,
                "team_guid": team.guid,
                "team_created": team_created,
                "user_created": user_created,
            },
        )

        return SignInResult(
            success=True,
            team=team,
            user=user,
            team_created=team_created,
            user_created=user_created,
        )
