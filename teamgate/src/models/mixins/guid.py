"""
GUID mixin for SQLAlchemy models.

Teams, users and collections are never exposed by their integer primary key.
Each row carries a UUIDv7 which is rendered as a prefixed, lowercase Base32
string (RFC 4648 alphabet, padding dropped) for URLs, tokens and storage paths.

GUID Format: {prefix}_{base32_uuid}
Examples:
    - ten_ahx2wnkc3ahgdhoba7qz4m7yja (Team)
    - usr_ahx2wnkc3ahgdhoba7qz4m7yjb (User)
    - col_ahx2wnkc3ahgdhoba7qz4m7yjc (Collection)
"""

import base64
import binascii
import uuid as uuid_module
from typing import ClassVar, Optional

from sqlalchemy import Column, TypeDecorator, LargeBinary
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from uuid_utils.compat import uuid7


GUID_ENCODED_LENGTH = 26
_GUID_PADDING = "======"


class UUIDType(TypeDecorator):
    """
    Platform-independent UUID type.

    Uses PostgreSQL's native UUID type when available,
    otherwise stores as 16-byte LargeBinary for SQLite.
    """

    impl = LargeBinary
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(LargeBinary(16))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == 'postgresql':
            return value if isinstance(value, uuid_module.UUID) else uuid_module.UUID(bytes=value)
        if isinstance(value, uuid_module.UUID):
            return value.bytes
        if isinstance(value, bytes):
            return value
        return uuid_module.UUID(str(value)).bytes

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid_module.UUID):
            return value
        if isinstance(value, bytes):
            return uuid_module.UUID(bytes=value)
        return uuid_module.UUID(str(value))


class GuidMixin:
    """
    Mixin providing GUID support for entities.

    Adds:
    - uuid: UUIDv7 column, generated on insert (or earlier via ensure_uuid)
    - guid: Property returning the prefixed Base32 string
    - parse_guid: Class method decoding a GUID string back to a UUID

    Usage:
        class Team(Base, GuidMixin):
            GUID_PREFIX = "ten"
    """

    GUID_PREFIX: ClassVar[str]

    uuid = Column(
        UUIDType(),
        nullable=False,
        unique=True,
        index=True,
        default=uuid7,
    )

    def ensure_uuid(self) -> uuid_module.UUID:
        """
        Assign the UUID before the row is flushed.

        The column default only fires on INSERT; callers that need the GUID
        beforehand (storage paths, for instance) call this first.
        """
        if self.uuid is None:
            self.uuid = uuid7()
        return self.uuid

    @property
    def guid(self) -> Optional[str]:
        """GUID in format {prefix}_{base32_uuid}, or None before the UUID exists."""
        if self.uuid is None:
            return None

        uuid_bytes = self.uuid if isinstance(self.uuid, bytes) else self.uuid.bytes
        encoded = base64.b32encode(uuid_bytes).decode("ascii").rstrip("=")
        return f"{self.GUID_PREFIX}_{encoded.lower()}"

    @classmethod
    def parse_guid(cls, guid: str) -> uuid_module.UUID:
        """
        Parse a GUID string to a UUID object.

        Raises:
            ValueError: If the GUID format is invalid or prefix doesn't match
        """
        if not guid:
            raise ValueError("GUID cannot be empty")

        expected_prefix = f"{cls.GUID_PREFIX}_"
        if not guid.lower().startswith(expected_prefix):
            raise ValueError(
                f"Invalid prefix for {cls.__name__}. "
                f"Expected '{cls.GUID_PREFIX}', got '{guid.split('_')[0]}'"
            )

        encoded_part = guid[len(expected_prefix):]
        if len(encoded_part) != GUID_ENCODED_LENGTH:
            raise ValueError(
                f"Invalid GUID length. Expected 26 characters after prefix, "
                f"got {len(encoded_part)}"
            )

        try:
            uuid_bytes = base64.b32decode(encoded_part.upper() + _GUID_PADDING)
            return uuid_module.UUID(bytes=uuid_bytes)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")
