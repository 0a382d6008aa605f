"""
Team service for provisioning and administering teams (tenants).

Provides the find-or-create used by federated sign-in, the best-effort steps
that follow the creation of a Team, and the admin operations that keep every
Team administrable.

Design:
- Teams are keyed by (external_provider, external_tenant_id); the database
  unique constraint resolves concurrent first logins
- Subdomain claims and default content are best-effort: a Team is valid
  without either
- Avatars are re-hosted before a Team is saved when storage is given;
  failures keep the old URL. Sign-in creates Teams with the generated
  avatar and refreshes it after the response (refresh_team_avatar)
- A Team with users always keeps at least one admin
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased
from starlette.concurrency import run_in_threadpool

from teamgate.src.models import Collection, CollectionType, Team, User
from teamgate.src.services.avatar_service import AvatarResolver
from teamgate.src.services.avatar_storage import AvatarStorage, AvatarUploadResult
from teamgate.src.services.exceptions import (
    LastAdminError,
    NotFoundError,
    SelfSuspensionError,
    SubdomainConflict,
    ValidationError,
)
from teamgate.src.utils.domains import tenant_label, validate_subdomain
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("services")

DEFAULT_COLLECTION_NAME = "General"
DEFAULT_COLLECTION_DESCRIPTION = "Your first Collection"


@dataclass
class SubdomainClaimResult:
    """
    Outcome of a subdomain claim.

    Attributes:
        success: Whether the subdomain is now set on the Team
        subdomain: Subdomain of the Team after the attempt
        error: Error message (if failed)
        error_code: "invalid", "taken" or "error" (if failed)
    """
    success: bool
    subdomain: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class TeamService:
    """
    Service for managing teams.

    Usage:
        >>> service = TeamService(db_session, AvatarStorage(settings))
        >>> team, created = service.find_or_create_by_external_id(
        ...     provider="google",
        ...     external_tenant_id="acme.com",
        ...     name="Acme",
        ...     avatar_url="https://logo.clearbit.com/acme.com",
        ... )
        >>> print(team.guid)  # ten_ahx2wnkc3a...
    """

    def __init__(self, db: Session, avatar_storage: Optional[AvatarStorage] = None):
        """
        Initialize team service.

        Args:
            db: SQLAlchemy database session
            avatar_storage: Storage used to re-host avatars (None disables re-hosting)
        """
        self.db = db
        self.avatar_storage = avatar_storage

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_id(self, team_id: int) -> Team:
        """
        Get a team by internal ID.

        Raises:
            NotFoundError: If team not found
        """
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise NotFoundError("Team", team_id)
        return team

    def get_by_external_id(self, provider: str, external_tenant_id: str) -> Optional[Team]:
        """Get the team bound to an external tenant, or None."""
        return (
            self.db.query(Team)
            .filter(Team.external_provider == provider)
            .filter(Team.external_tenant_id == external_tenant_id)
            .first()
        )

    def get_by_subdomain(self, subdomain: str) -> Optional[Team]:
        """Get the team that owns a subdomain, or None."""
        return self.db.query(Team).filter(Team.subdomain == subdomain).first()

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def find_or_create_by_external_id(
        self,
        provider: str,
        external_tenant_id: str,
        name: str,
        avatar_url: Optional[str] = None,
    ) -> Tuple[Team, bool]:
        """
        Find the team bound to an external tenant, creating it if absent.

        The insert is guarded by the (external_provider, external_tenant_id)
        unique constraint. When a concurrent sign-in wins the race the
        violation is treated as a lookup.

        Args:
            provider: Federated provider name ("google")
            external_tenant_id: Provider tenant id (hosted domain)
            name: Display name for a new team
            avatar_url: Avatar for a new team

        Returns:
            Tuple of (Team, created). Existing teams are returned unchanged.
        """
        existing = self.get_by_external_id(provider, external_tenant_id)
        if existing:
            return existing, False

        team = Team(
            name=name,
            avatar_url=avatar_url,
            external_provider=provider,
            external_tenant_id=external_tenant_id,
        )
        team.ensure_uuid()
        self._rehost_avatar(team)

        try:
            self.db.add(team)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_by_external_id(provider, external_tenant_id)
            if existing is None:
                raise
            logger.info(
                f"Team for {provider}:{external_tenant_id} created concurrently, using it",
                extra={"event": "team.provision.race", "team_guid": existing.guid},
            )
            return existing, False

        self.db.refresh(team)
        logger.info(
            f"Created team: {team.name} ({team.guid}) for {provider}:{external_tenant_id}",
            extra={"event": "team.provision.created", "team_guid": team.guid},
        )
        return team, True

    def create_first_collection(self, team: Team, user_id: int) -> Collection:
        """Create the default collection of a new team."""
        collection = Collection(
            name=DEFAULT_COLLECTION_NAME,
            description=DEFAULT_COLLECTION_DESCRIPTION,
            type=CollectionType.ATLAS,
            team_id=team.id,
            creator_id=user_id,
        )
        self.db.add(collection)
        self.db.commit()
        self.db.refresh(collection)
        return collection

    def provision_new_team(
        self,
        team: Team,
        user: User,
        subdomain: Optional[str] = None,
    ) -> SubdomainClaimResult:
        """
        Run the best-effort setup of a freshly created team.

        Seeds the default collection owned by the first user and tries to
        claim a subdomain (by default the first label of the tenant domain).
        Neither failure is raised: the team stays valid without them.

        Returns:
            Result of the subdomain claim
        """
        try:
            self.create_first_collection(team, user.id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Could not create first collection for team {team.guid}: {e}",
                extra={"event": "team.provision.collection_failed", "team_guid": team.guid},
            )

        if subdomain is None and team.external_tenant_id:
            subdomain = tenant_label(team.external_tenant_id)
        if not subdomain:
            return SubdomainClaimResult(success=False, subdomain=team.subdomain, error_code="invalid")

        result = self.claim_subdomain(team, subdomain)
        if not result.success:
            logger.info(
                f"Team {team.guid} created without subdomain '{subdomain}': {result.error}",
                extra={
                    "event": "team.subdomain.skipped",
                    "team_guid": team.guid,
                    "reason": result.error_code,
                },
            )
        return result

    # ------------------------------------------------------------------
    # Subdomains
    # ------------------------------------------------------------------

    def update_subdomain(self, team: Team, subdomain: str) -> Team:
        """
        Set the subdomain of a team.

        Raises:
            ValidationError: If the subdomain is not a valid label
            SubdomainConflict: If another team already owns it
        """
        validate_subdomain(subdomain)

        if team.subdomain == subdomain:
            return team

        owner = self.get_by_subdomain(subdomain)
        if owner is not None and owner.id != team.id:
            raise SubdomainConflict(subdomain)

        team.subdomain = subdomain
        self._rehost_avatar(team)

        try:
            self.db.commit()
        except IntegrityError:
            # Rollback expires the team, so it reloads its stored subdomain
            self.db.rollback()
            raise SubdomainConflict(subdomain)

        self.db.refresh(team)
        logger.info(
            f"Team {team.guid} claimed subdomain '{subdomain}'",
            extra={"event": "team.subdomain.claimed", "team_guid": team.guid},
        )
        return team

    def claim_subdomain(self, team: Team, subdomain: str) -> SubdomainClaimResult:
        """
        Try to set the subdomain of a team without raising.

        On failure the team keeps the subdomain it had before the attempt.
        """
        team_guid, previous = team.guid, team.subdomain
        try:
            self.update_subdomain(team, subdomain)
        except ValidationError as e:
            return SubdomainClaimResult(
                success=False,
                subdomain=team.subdomain,
                error=e.message,
                error_code="invalid",
            )
        except SubdomainConflict as e:
            return SubdomainClaimResult(
                success=False,
                subdomain=team.subdomain,
                error=e.message,
                error_code="taken",
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Subdomain claim '{subdomain}' failed for team {team_guid}: {e}",
                extra={"event": "team.subdomain.failed", "team_guid": team_guid},
            )
            return SubdomainClaimResult(
                success=False,
                subdomain=previous,
                error=str(e),
                error_code="error",
            )
        return SubdomainClaimResult(success=True, subdomain=team.subdomain)

    # ------------------------------------------------------------------
    # Avatars
    # ------------------------------------------------------------------

    def _rehost_avatar(self, team: Team) -> Optional[AvatarUploadResult]:
        """Copy the team avatar into our storage before the team is saved."""
        if self.avatar_storage is None or not team.avatar_url:
            return None

        result = self.avatar_storage.rehost(team.avatar_url, team.guid)
        if result.success and result.url != team.avatar_url:
            team.avatar_url = result.url
        return result

    def refresh_avatar(self, team: Team, avatar_url: Optional[str] = None) -> Team:
        """
        Replace and/or re-host the avatar of a team.

        Args:
            team: Team to update
            avatar_url: New avatar URL (None retries re-hosting the current one)
        """
        if avatar_url is not None:
            team.avatar_url = avatar_url
        self._rehost_avatar(team)
        self.db.commit()
        self.db.refresh(team)
        return team

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def count_admins(self, team_id: int, exclude_user_id: Optional[int] = None) -> int:
        """Number of admins in a team, optionally ignoring one user."""
        query = (
            self.db.query(func.count(User.id))
            .filter(User.team_id == team_id)
            .filter(User.is_admin.is_(True))
        )
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.scalar()

    def add_admin(self, user: User) -> User:
        """Promote a user to admin."""
        user.is_admin = True
        self.db.commit()
        self.db.refresh(user)
        logger.info(
            f"User {user.guid} promoted to admin",
            extra={"event": "team.admin.added", "user_guid": user.guid},
        )
        return user

    def remove_admin(self, user: User) -> User:
        """
        Demote an admin.

        The update only applies while another admin exists in the same team,
        so two admins demoting each other concurrently cannot both succeed.

        Raises:
            LastAdminError: If the user is the only admin of the team
        """
        other = aliased(User)
        other_admin_exists = (
            select(other.id)
            .where(other.team_id == user.team_id)
            .where(other.is_admin.is_(True))
            .where(other.id != user.id)
            .exists()
        )
        result = self.db.execute(
            update(User)
            .where(User.id == user.id)
            .where(other_admin_exists)
            .values(is_admin=False, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.db.rollback()
            raise LastAdminError(user.team.guid if user.team else None)

        self.db.commit()
        self.db.refresh(user)
        logger.info(
            f"User {user.guid} is no longer an admin",
            extra={"event": "team.admin.removed", "user_guid": user.guid},
        )
        return user

    def suspend_user(self, user: User, admin: User) -> User:
        """
        Suspend a user on behalf of an admin.

        Raises:
            SelfSuspensionError: If the admin targets themselves
        """
        if user.id == admin.id:
            raise SelfSuspensionError()

        user.suspended_at = datetime.utcnow()
        user.suspended_by_id = admin.id
        self.db.commit()
        self.db.refresh(user)
        logger.info(
            f"User {user.guid} suspended by {admin.guid}",
            extra={"event": "team.user.suspended", "user_guid": user.guid},
        )
        return user

    def activate_user(self, user: User, admin: User) -> User:
        """Lift the suspension of a user."""
        user.suspended_at = None
        user.suspended_by_id = None
        self.db.commit()
        self.db.refresh(user)
        logger.info(
            f"User {user.guid} activated by {admin.guid}",
            extra={"event": "team.user.activated", "user_guid": user.guid},
        )
        return user


async def refresh_team_avatar(
    session_factory: Callable[[], Session],
    avatar_resolver: AvatarResolver,
    avatar_storage: Optional[AvatarStorage],
    team_id: int,
    domain: str,
) -> None:
    """
    Background task resolving and re-hosting the avatar of a new team.

    Runs after the sign-in redirect has been sent, in its own session. The
    team keeps its generated avatar if anything fails.
    """
    db = session_factory()
    try:
        service = TeamService(db, avatar_storage)
        team = service.get_by_id(team_id)
        avatar_url = await avatar_resolver.resolve(domain, team.name)
        # Download and S3 upload are blocking
        await run_in_threadpool(service.refresh_avatar, team, avatar_url)
    except (NotFoundError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(
            f"Failed to refresh avatar for team {team_id}: {e}",
            extra={"event": "team.avatar.refresh_failed", "team_id": team_id},
        )
    finally:
        db.close()
