"""
EventHub Backend — Admin Routes
=================================

What:  /api/admin: platform stats, user management and the all-events table.
Who:   The SPA's admin panel. The whole router requires role ADMIN.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.dependencies import require_roles
from eventhub.models.user import User, UserRole
from eventhub.schemas.admin import (
    AdminStatsData,
    AdminUserCreate,
    AdminUserData,
    AdminUserDetailData,
    AdminUserListData,
    AdminUserOut,
    AdminUserUpdate,
)
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.schemas.event import EventListData
from eventhub.services.admin_service import admin_service
from eventhub.services.event_service import event_service

require_admin = require_roles(UserRole.ADMIN)

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get(
    "/stats",
    response_model=Envelope[AdminStatsData],
    response_model_exclude_none=True,
    summary="Platform counts and newest users",
)
async def stats(db: AsyncSession = Depends(get_db_session)) -> Envelope[AdminStatsData]:
    return Envelope(data=await admin_service.stats(db))


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/users",
    response_model=Envelope[AdminUserListData],
    response_model_exclude_none=True,
    summary="List users",
)
async def list_users(
    role: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AdminUserListData]:
    data = await admin_service.list_users(db, role=role, search=search, page=page, limit=limit)
    return Envelope(data=data)


@router.get(
    "/users/{user_id}",
    response_model=Envelope[AdminUserDetailData],
    response_model_exclude_none=True,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="User detail with activity counts",
)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> Envelope[AdminUserDetailData]:
    return Envelope(data=AdminUserDetailData(user=await admin_service.get_user_detail(db, user_id)))


@router.post(
    "/users",
    status_code=201,
    response_model=Envelope[AdminUserData],
    response_model_exclude_none=True,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create a user with any role",
)
async def create_user(payload: AdminUserCreate, db: AsyncSession = Depends(get_db_session)) -> Envelope[AdminUserData]:
    user = await admin_service.create_user(db, payload)
    return Envelope(message="User created successfully", data=AdminUserData(user=AdminUserOut.model_validate(user)))


@router.put(
    "/users/{user_id}",
    response_model=Envelope[AdminUserData],
    response_model_exclude_none=True,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
    },
    summary="Update a user",
)
async def update_user(
    user_id: uuid.UUID,
    payload: AdminUserUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AdminUserData]:
    user = await admin_service.update_user(db, user_id, payload)
    return Envelope(message="User updated successfully", data=AdminUserData(user=AdminUserOut.model_validate(user)))


@router.delete(
    "/users/{user_id}",
    response_model=Envelope[None],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Attempt to delete own account", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Delete a user and everything they own",
)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[None]:
    await admin_service.delete_user(db, admin, user_id)
    return Envelope(message="User deleted successfully")


# ══════════════════════════════════════════════════════════════════════════
# Events
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/events",
    response_model=Envelope[EventListData],
    response_model_exclude_none=True,
    summary="All events",
)
async def list_events(
    search: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    category_id: Optional[str] = Query(default=None, alias="categoryId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[EventListData]:
    data = await event_service.list_events(
        db,
        category=category_id,
        search=search,
        status=status,
        sort="newest",
        page=page,
        limit=limit,
    )
    return Envelope(data=data)
