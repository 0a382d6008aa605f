"""
User service for federated accounts.

Provides the account find-or-create used by sign-in and the lookups needed
by the admin endpoints.

Design:
- Users are keyed by (service, service_id, team_id); the database unique
  constraint resolves concurrent sign-ins of the same person
- Profile fields are copied from the provider on creation only
- The last sign-in timestamp/IP is written after the response, in its own
  session
"""

from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from teamgate.src.models import User
from teamgate.src.services.exceptions import NotFoundError
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("services")


class UserService:
    """
    Service for managing users.

    Usage:
        >>> service = UserService(db_session)
        >>> user, created = service.find_or_create_by_service_id(
        ...     service="google",
        ...     service_id="1234567890",
        ...     team_id=team.id,
        ...     name="Jane Doe",
        ...     email="jane@acme.com",
        ... )
        >>> print(user.guid)  # usr_ahx2wnkc3a...
    """

    def __init__(self, db: Session):
        """
        Initialize user service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get_by_guid(self, guid: str) -> User:
        """
        Get a user by GUID.

        Args:
            guid: User GUID (usr_xxx format)

        Returns:
            User instance

        Raises:
            NotFoundError: If user not found
        """
        try:
            uuid_value = User.parse_guid(guid)
        except ValueError:
            raise NotFoundError("User", guid)

        user = self.db.query(User).filter(User.uuid == uuid_value).first()
        if not user:
            raise NotFoundError("User", guid)

        return user

    def get_by_id(self, user_id: int) -> User:
        """
        Get a user by internal ID.

        Raises:
            NotFoundError: If user not found
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_by_service_id(self, service: str, service_id: str, team_id: int) -> Optional[User]:
        """Get the user bound to a provider identity inside a team, or None."""
        return (
            self.db.query(User)
            .filter(User.service == service)
            .filter(User.service_id == service_id)
            .filter(User.team_id == team_id)
            .first()
        )

    def find_or_create_by_service_id(
        self,
        service: str,
        service_id: str,
        team_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar_url: Optional[str] = None,
        is_admin: bool = False,
    ) -> Tuple[User, bool]:
        """
        Find the user bound to a provider identity, creating it if absent.

        Args:
            service: Identity provider name ("google")
            service_id: Provider user id
            team_id: Team the user signs in to
            name: Display name for a new user
            email: Email for a new user
            avatar_url: Profile picture for a new user
            is_admin: Admin flag for a new user (True for the first user of a new team)

        Returns:
            Tuple of (User, created). Existing users are returned unchanged.
        """
        existing = self.get_by_service_id(service, service_id, team_id)
        if existing:
            return existing, False

        user = User(
            team_id=team_id,
            service=service,
            service_id=service_id,
            name=name[:255] if name else name,
            email=email,
            avatar_url=avatar_url,
            is_admin=is_admin,
        )
        user.ensure_uuid()

        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_by_service_id(service, service_id, team_id)
            if existing is None:
                raise
            logger.info(
                f"User {service}:{service_id} created concurrently, using it",
                extra={"event": "user.provision.race", "user_guid": existing.guid},
            )
            return existing, False

        self.db.refresh(user)
        logger.info(
            f"Created user: {user.email} ({user.guid}) in team {team_id}",
            extra={
                "event": "user.provision.created",
                "user_guid": user.guid,
                "is_admin": user.is_admin,
            },
        )
        return user, True

    def update_signed_in(self, user: User, ip: Optional[str]) -> User:
        """Record a successful sign-in."""
        user.last_signed_in_at = datetime.utcnow()
        user.last_signed_in_ip = ip
        self.db.commit()
        self.db.refresh(user)
        return user


def record_sign_in(session_factory: Callable[[], Session], user_id: int, ip: Optional[str]) -> None:
    """
    Background task storing the last sign-in of a user.

    Runs after the response has been sent, so it opens its own session.
    Failures are logged only; the sign-in has already succeeded.
    """
    db = session_factory()
    try:
        service = UserService(db)
        service.update_signed_in(service.get_by_id(user_id), ip)
    except (NotFoundError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(
            f"Failed to record sign-in for user {user_id}: {e}",
            extra={"event": "user.signin.record_failed", "user_id": user_id},
        )
    finally:
        db.close()
