"""
Pydantic schemas for API request/response validation.
"""

from teamgate.src.schemas.user import ErrorResponse, UserResponse, user_to_response

__all__ = [
    "ErrorResponse",
    "UserResponse",
    "user_to_response",
]
