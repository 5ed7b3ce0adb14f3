"""Profile endpoints for the current user, plus admin user listing."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tasktrack.api.deps import (
    ensure_ownership,
    get_auth_service,
    get_current_user,
    require_admin,
)
from tasktrack.core.database import get_db
from tasktrack.models.user import User
from tasktrack.schemas.auth import CurrentUser, ProfileUpdateRequest, UserOut
from tasktrack.schemas.common import ApiResponse
from tasktrack.services.auth import AuthService

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserOut])
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[UserOut]:
    user = auth.get_profile(current_user.id)
    return ApiResponse[UserOut](
        message="User profile retrieved successfully",
        data=UserOut.model_validate(user),
    )


@router.put("/me", response_model=ApiResponse[UserOut])
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[UserOut]:
    user = auth.update_profile(current_user.id, body)
    return ApiResponse[UserOut](
        message="User profile updated successfully",
        data=UserOut.model_validate(user),
    )


@router.delete("/me", response_model=ApiResponse[None])
def deactivate_account(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[None]:
    """Soft-disable the account. Existing tokens stop working immediately."""
    auth.deactivate(current_user.id)
    return ApiResponse[None](message="User account deactivated successfully")


@router.get("", response_model=ApiResponse[list[UserOut]])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[UserOut]]:
    """List all users (admin only)."""
    users = db.query(User).order_by(User.created_at, User.id).all()
    return ApiResponse[list[UserOut]](
        message="Users retrieved successfully",
        data=[UserOut.model_validate(u) for u in users],
    )


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(
    user_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[UserOut]:
    """A user's profile; visible to that user and to admins."""
    ensure_ownership(user_id, current_user)
    user = auth.get_profile(user_id)
    return ApiResponse[UserOut](
        message="User profile retrieved successfully",
        data=UserOut.model_validate(user),
    )
