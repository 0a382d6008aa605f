"""
User model for federated accounts.

Users are created on their first sign-in through an external provider. The
same person signing in to two different Teams gets two User rows.

Design Rationale:
- (service, service_id, team_id) is unique so that re-authentication always
  resolves to the same row, even under concurrent logins
- is_admin is granted to the first user of a freshly provisioned Team only
- suspended_at / suspended_by_id are set and cleared together
- name, email and avatar_url mirror the provider profile at creation time
- last_signed_in_at / last_signed_in_ip are refreshed after every sign-in
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from teamgate.src.models import Base
from teamgate.src.models.mixins import GuidMixin

if TYPE_CHECKING:
    from teamgate.src.models.team import Team


class User(Base, GuidMixin):
    """
    User model representing a federated account inside one Team.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (usr_xxx, inherited from GuidMixin)
        team_id: Team membership (FK to teams)
        service: Identity provider name ("google")
        service_id: Provider user id
        email: Email from the provider profile
        name: Display name from the provider profile
        avatar_url: Profile picture URL from the provider profile
        is_admin: Whether the user administers the Team
        suspended_at: Suspension timestamp (None when active)
        suspended_by_id: Admin who suspended the user (None when active)
        last_signed_in_at: Last successful sign-in timestamp
        last_signed_in_ip: Client IP of the last sign-in
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Constraints:
        - (service, service_id, team_id) must be unique
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint(
            "service",
            "service_id",
            "team_id",
            name="uq_users_service_identity",
        ),
    )

    GUID_PREFIX = "usr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    team_id = Column(
        Integer,
        ForeignKey("teams.id", name="fk_users_team_id"),
        nullable=False,
        index=True
    )

    # Federated identity
    service = Column(String(50), nullable=False)
    service_id = Column(String(255), nullable=False)

    # Profile (copied from the provider on creation)
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)

    is_admin = Column(Boolean, default=False, nullable=False)

    # Suspension
    suspended_at = Column(DateTime, nullable=True)
    suspended_by_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_users_suspended_by_id", ondelete="SET NULL"),
        nullable=True,
    )

    # Sign-in tracking
    last_signed_in_at = Column(DateTime, nullable=True)
    last_signed_in_ip = Column(String(45), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    team = relationship(
        "Team",
        back_populates="users",
        foreign_keys=[team_id],
        lazy="joined"
    )
    suspended_by = relationship(
        "User",
        remote_side=[id],
        foreign_keys=[suspended_by_id],
        lazy="select"
    )

    @property
    def is_suspended(self) -> bool:
        """True while the user is suspended."""
        return self.suspended_at is not None

    def __repr__(self) -> str:
        return (
            f"<User("
            f"id={self.id}, "
            f"service={self.service}:{self.service_id}, "
            f"team_id={self.team_id}, "
            f"admin={self.is_admin}, "
            f"suspended={self.is_suspended}"
            f")>"
        )

    def __str__(self) -> str:
        return self.name or self.email or self.service_id
