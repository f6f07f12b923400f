"""EventHub Backend — User Profile Routes (/api/users)"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.dependencies import get_current_user
from eventhub.models.user import User
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.schemas.user import ProfileUpdate, PublicUserData, UserData, UserOut, UserPublic
from eventhub.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "/profile",
    response_model=Envelope[UserData],
    response_model_exclude_none=True,
    summary="Own profile",
)
async def get_profile(user: User = Depends(get_current_user)) -> Envelope[UserData]:
    return Envelope(data=UserData(user=UserOut.model_validate(user)))


@router.put(
    "/profile",
    response_model=Envelope[UserData],
    response_model_exclude_none=True,
    summary="Update own profile",
)
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[UserData]:
    updated = await user_service.update_profile(db, user, payload)
    return Envelope(message="Profile updated successfully", data=UserData(user=UserOut.model_validate(updated)))


@router.get(
    "/{user_id}",
    response_model=Envelope[PublicUserData],
    response_model_exclude_none=True,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public profile",
)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> Envelope[PublicUserData]:
    user = await user_service.get_user(db, user_id)
    return Envelope(data=PublicUserData(user=UserPublic.model_validate(user)))
