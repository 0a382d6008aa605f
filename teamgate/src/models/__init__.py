"""
SQLAlchemy models for the teamgate service.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from teamgate.src.models.team import Team
from teamgate.src.models.user import User
from teamgate.src.models.collection import Collection, CollectionType

__all__ = [
    "Base",
    "Team",
    "User",
    "Collection",
    "CollectionType",
]
