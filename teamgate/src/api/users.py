"""
Team user administration endpoints.

Provides admin operations on users of the caller's Team:
- POST /api/users/{guid}/promote - Grant admin
- POST /api/users/{guid}/demote - Revoke admin (a Team keeps at least one)
- POST /api/users/{guid}/suspend - Suspend (not allowed on oneself)
- POST /api/users/{guid}/activate - Lift a suspension

All endpoints require an active admin of the target user's Team.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from teamgate.src.db.database import get_db
from teamgate.src.middleware.auth import require_admin
from teamgate.src.models import User
from teamgate.src.schemas.user import ErrorResponse, UserResponse, user_to_response
from teamgate.src.services.exceptions import LastAdminError, NotFoundError, SelfSuspensionError
from teamgate.src.services.team_service import TeamService
from teamgate.src.services.user_service import UserService
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/users", tags=["Users"])

ERROR_RESPONSES = {
    403: {"description": "Admin privileges required"},
    404: {"model": ErrorResponse, "description": "User not found"},
}


def _get_team_user(db: Session, guid: str, admin: User) -> User:
    """Look up a user in the admin's Team; other Teams' users are not found."""
    try:
        user = UserService(db).get_by_guid(guid)
    except NotFoundError:
        user = None

    if user is None or user.team_id != admin.team_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Not found",
                "error_code": "user_not_found",
                "message": f"User {guid} not found",
            },
        )
    return user


@router.post(
    "/{guid}/promote",
    response_model=UserResponse,
    summary="Promote a user to admin",
    responses=ERROR_RESPONSES,
)
async def promote_user(
    guid: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Grant admin privileges to a user of the caller's Team."""
    user = _get_team_user(db, guid, admin)
    user = TeamService(db).add_admin(user)
    return user_to_response(user)


@router.post(
    "/{guid}/demote",
    response_model=UserResponse,
    summary="Revoke admin privileges",
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse, "description": "Last admin"}},
)
async def demote_user(
    guid: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserResponse:
    """
    Revoke admin privileges.

    Refused when the user is the only admin of the Team.
    """
    user = _get_team_user(db, guid, admin)
    try:
        user = TeamService(db).remove_admin(user)
    except LastAdminError as e:
        logger.info(f"Refused to demote last admin {guid}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "Conflict",
                "error_code": "last_admin",
                "message": e.message,
            },
        )
    return user_to_response(user)


@router.post(
    "/{guid}/suspend",
    response_model=UserResponse,
    summary="Suspend a user",
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse, "description": "Self suspension"}},
)
async def suspend_user(
    guid: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Suspend a user of the caller's Team. Admins cannot suspend themselves."""
    user = _get_team_user(db, guid, admin)
    try:
        user = TeamService(db).suspend_user(user, admin)
    except SelfSuspensionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "Conflict",
                "error_code": "self_suspension",
                "message": e.message,
            },
        )
    return user_to_response(user)


@router.post(
    "/{guid}/activate",
    response_model=UserResponse,
    summary="Activate a suspended user",
    responses=ERROR_RESPONSES,
)
async def activate_user(
    guid: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Lift the suspension of a user of the caller's Team."""
    user = _get_team_user(db, guid, admin)
    user = TeamService(db).activate_user(user, admin)
    return user_to_response(user)
