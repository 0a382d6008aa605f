"""
User Pydantic schemas for the admin endpoints.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Response Schemas
# ============================================================================


class UserResponse(BaseModel):
    """Response schema for a single user."""

    guid: str = Field(..., description="User GUID (usr_xxx)")
    team_guid: str = Field(..., description="Team GUID (ten_xxx)")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    avatar_url: Optional[str] = Field(None, description="Profile picture URL")
    is_admin: bool = Field(..., description="Whether the user administers the team")
    is_suspended: bool = Field(..., description="Whether the user is suspended")
    suspended_at: Optional[datetime] = Field(None, description="Suspension timestamp")
    last_signed_in_at: Optional[datetime] = Field(None, description="Last sign-in timestamp")
    created_at: datetime = Field(..., description="Creation timestamp")

    class Config:
        """Pydantic config."""
        from_attributes = True
        json_schema_extra = {
            "example": {
                "guid": "usr_ahx2wnkc3ahgdhoba7qz4m7yjb",
                "team_guid": "ten_ahx2wnkc3ahgdhoba7qz4m7yja",
                "name": "Jane Doe",
                "email": "jane@acme.com",
                "avatar_url": "https://lh3.googleusercontent.com/a/photo.jpg",
                "is_admin": True,
                "is_suspended": False,
                "suspended_at": None,
                "last_signed_in_at": "2026-01-15T10:30:00Z",
                "created_at": "2026-01-01T00:00:00Z"
            }
        }


class ErrorResponse(BaseModel):
    """Error detail returned by the admin endpoints."""

    error: str
    error_code: str
    message: str


# ============================================================================
# Adapter Functions
# ============================================================================


def user_to_response(user) -> UserResponse:
    """
    Convert User model to UserResponse schema.

    Args:
        user: User model instance

    Returns:
        UserResponse schema instance
    """
    return UserResponse(
        guid=user.guid,
        team_guid=user.team.guid,
        name=user.name,
        email=user.email,
        avatar_url=user.avatar_url,
        is_admin=user.is_admin,
        is_suspended=user.is_suspended,
        suspended_at=user.suspended_at,
        last_signed_in_at=user.last_signed_in_at,
        created_at=user.created_at,
    )
