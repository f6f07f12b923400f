"""
EventHub Backend — Event Routes
=================================

What:  /api/events: public listing and detail, host listing, and
       create/update/delete for hosts and admins.

Route order matters: /my-events is declared before /{id_or_slug} so it is
not captured as a slug.

Query Parameters (GET /api/events):
    category   category id or slug
    search     case-insensitive match on title or description
    status     DRAFT | UPCOMING | ONGOING | COMPLETED | CANCELLED (others ignored)
    minPrice, maxPrice
    sort       date_asc (default) | date_desc | price_asc | price_desc
    page       1-based, default 1
    limit      default 20, max 100
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.dependencies import require_roles
from eventhub.models.user import User, UserRole
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.schemas.event import EventCreate, EventData, EventListData, EventUpdate
from eventhub.services.event_service import DEFAULT_SORT, event_service

router = APIRouter(prefix="/api/events", tags=["Events"])


@router.get(
    "",
    response_model=Envelope[EventListData],
    response_model_exclude_none=True,
    summary="List events",
)
async def list_events(
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    min_price: Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(default=None, alias="maxPrice", ge=0),
    sort: str = Query(default=DEFAULT_SORT),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[EventListData]:
    data = await event_service.list_events(
        db,
        category=category,
        search=search,
        status=status,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        page=page,
        limit=limit,
    )
    return Envelope(data=data)


@router.get(
    "/my-events",
    response_model=Envelope[EventListData],
    response_model_exclude_none=True,
    summary="Events hosted by the caller",
)
async def my_events(
    search: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(require_roles(UserRole.HOST, UserRole.VENDOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[EventListData]:
    data = await event_service.list_events(
        db,
        host_id=user.id,
        search=search,
        status=status,
        sort="newest",
        page=page,
        limit=limit,
    )
    return Envelope(data=data)


@router.get(
    "/{id_or_slug}",
    response_model=Envelope[EventData],
    response_model_exclude_none=True,
    responses={404: {"description": "Event not found", "model": ErrorResponse}},
    summary="Event detail by id or slug",
)
async def get_event(id_or_slug: str, db: AsyncSession = Depends(get_db_session)) -> Envelope[EventData]:
    return Envelope(data=EventData(event=await event_service.get_event(db, id_or_slug)))


@router.post(
    "",
    status_code=201,
    response_model=Envelope[EventData],
    response_model_exclude_none=True,
    summary="Create an event",
)
async def create_event(
    payload: EventCreate,
    user: User = Depends(require_roles(UserRole.HOST, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[EventData]:
    event = await event_service.create_event(db, user, payload)
    return Envelope(message="Event created successfully", data=EventData(event=event))


@router.put(
    "/{event_id}",
    response_model=Envelope[EventData],
    response_model_exclude_none=True,
    responses={403: {"description": "Not the host", "model": ErrorResponse}},
    summary="Update an event",
)
async def update_event(
    event_id: uuid.UUID,
    payload: EventUpdate,
    user: User = Depends(require_roles(UserRole.HOST, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[EventData]:
    event = await event_service.update_event(db, user, event_id, payload)
    return Envelope(message="Event updated successfully", data=EventData(event=event))


@router.delete(
    "/{event_id}",
    response_model=Envelope[None],
    response_model_exclude_none=True,
    responses={403: {"description": "Not the host", "model": ErrorResponse}},
    summary="Delete an event",
)
async def delete_event(
    event_id: uuid.UUID,
    user: User = Depends(require_roles(UserRole.HOST, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[None]:
    await event_service.delete_event(db, user, event_id)
    return Envelope(message="Event deleted successfully")
