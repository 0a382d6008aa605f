"""
Team model for multi-tenancy support.

Teams represent tenancy boundaries. A Team is bound to at most one external
tenant (a Google hosted domain) and is provisioned the first time somebody
from that domain signs in.

Design Rationale:
- (external_provider, external_tenant_id) is the find-or-create key and is
  enforced unique by the database, so concurrent first logins from the same
  domain cannot create two Teams
- subdomain is optional; when unset the Team lives at the base URL
- Teams are never deleted by the sign-in subsystem
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from teamgate.src.models import Base
from teamgate.src.models.mixins import GuidMixin

if TYPE_CHECKING:
    from teamgate.src.models.user import User
    from teamgate.src.models.collection import Collection


class Team(Base, GuidMixin):
    """
    Team model representing a tenancy boundary.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (ten_xxx, inherited from GuidMixin)
        name: Team display name (derived from the hosted domain at creation)
        subdomain: Optional routing label, globally unique
        external_provider: Federated provider that owns the tenant ("google")
        external_tenant_id: Provider tenant identifier (the hosted domain)
        avatar_url: Team logo URL (nullable)
        sharing: Whether public sharing is enabled for the Team
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Relationships:
        users: Users belonging to this team (one-to-many)
        collections: Content collections of this team (one-to-many)
    """

    __tablename__ = "teams"
    __table_args__ = (
        UniqueConstraint(
            "external_provider",
            "external_tenant_id",
            name="uq_teams_external_tenant",
        ),
    )

    GUID_PREFIX = "ten"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    subdomain = Column(String(32), unique=True, nullable=True, index=True)

    # Federated tenant binding
    external_provider = Column(String(50), nullable=True)
    external_tenant_id = Column(String(255), nullable=True, index=True)

    avatar_url = Column(Text, nullable=True)
    sharing = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    users = relationship(
        "User",
        back_populates="team",
        lazy="dynamic",
        foreign_keys="User.team_id",
    )
    collections = relationship(
        "Collection",
        back_populates="team",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return (
            f"<Team("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"subdomain={self.subdomain!r}, "
            f"tenant={self.external_provider}:{self.external_tenant_id}"
            f")>"
        )

    def __str__(self) -> str:
        return self.name
