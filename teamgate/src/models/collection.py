"""
Collection model for Team content.

Only the default collection seeded for a newly provisioned Team is created
by the sign-in subsystem; everything else about collections lives elsewhere.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship

from teamgate.src.models import Base
from teamgate.src.models.mixins import GuidMixin


class CollectionType(enum.Enum):
    """Kind of content collection."""
    ATLAS = "atlas"
    JOURNAL = "journal"


class Collection(Base, GuidMixin):
    """
    Content collection owned by a Team.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (col_xxx, inherited from GuidMixin)
        name: Collection name
        description: Optional description
        type: Collection type (atlas or journal)
        team_id: Owning team (FK to teams)
        creator_id: User that created the collection (FK to users)
        created_at: Creation timestamp
    """

    __tablename__ = "collections"

    GUID_PREFIX = "col"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(
        Enum(CollectionType, name="collection_type", create_constraint=True),
        default=CollectionType.ATLAS,
        nullable=False,
    )

    team_id = Column(
        Integer,
        ForeignKey("teams.id", name="fk_collections_team_id"),
        nullable=False,
        index=True
    )
    creator_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_collections_creator_id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    team = relationship("Team", back_populates="collections")
    creator = relationship("User", foreign_keys=[creator_id], lazy="select")

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, name='{self.name}', team_id={self.team_id})>"
