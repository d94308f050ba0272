"""
User API endpoints: team listings and profiles.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from watukobu.core.dependencies import get_user_service
from watukobu.core.logging import get_logger
from watukobu.core.security import get_current_user, require_management
from watukobu.models.database import User
from watukobu.models.enums import Role
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse
from watukobu.schemas.user import ProfileUpdate, UserEnvelope, UserListResponse, UserResponse
from watukobu.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}


@router.get(
    "",
    response_model=UserListResponse,
    responses=COMMON_RESPONSES,
    summary="List active users",
)
async def list_users(
    role: Optional[Role] = None,
    user: User = Depends(require_management),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    try:
        users = await user_service.list_users(role)
        return UserListResponse(data=users, count=len(users))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing users", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/me",
    response_model=UserEnvelope,
    responses=COMMON_RESPONSES,
    summary="Current user",
)
async def current_user(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(data=UserResponse.model_validate(user))


@router.get(
    "/{user_id}/profile",
    response_model=UserEnvelope,
    responses={404: {"model": ErrorResponse, "description": "User not found"}, **COMMON_RESPONSES},
    summary="Get profile",
)
async def get_profile(
    user_id: str,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    try:
        profile = await user_service.get_profile(user_id)
        return UserEnvelope(data=UserResponse.model_validate(profile))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error fetching profile", user_id=user_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.put(
    "/{user_id}/profile",
    response_model=UserEnvelope,
    responses={
        400: {"model": ErrorResponse, "description": "Name is required"},
        409: {"model": ErrorResponse, "description": "Email already in use"},
        **COMMON_RESPONSES,
    },
    summary="Update own profile",
)
async def update_profile(
    user_id: str,
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    try:
        profile = await user_service.update_profile(user_id, user, data)
        return UserEnvelope(data=UserResponse.model_validate(profile))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error updating profile", user_id=user_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
