"""
EventHub Backend — Event Service
==================================

What:  Listing, lookup, creation, update and deletion of events, including
       their nested features, FAQs and schedule items.
Who:   routes/events.py, routes/admin.py (all-events table), VendorService.

Listing:
    Filters are AND-ed. `search` is a case-insensitive substring match on
    title OR description. `category` accepts a category id or a category
    slug. Attendee counts come from one grouped COUNT query per page rather
    than loading every attendee row.

Ownership:
    Only the event's host or an ADMIN may update or delete it.

Async loading:
    Every relationship a response serializes is loaded with selectinload.
    After a write the event is re-read with populate_existing so children
    replaced in this session show their new state.
"""

import logging
import re
import secrets
import string
import unicodedata
import uuid
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventhub.database import LIKE_ESCAPE, contains_pattern
from eventhub.exceptions import AuthorizationError, NotFoundError, ValidationError
from eventhub.models.category import Category
from eventhub.models.event import (
    Event,
    EventAttendee,
    EventFaq,
    EventFeature,
    EventReview,
    EventScheduleItem,
    EventStatus,
)
from eventhub.models.user import User, UserRole, as_utc
from eventhub.schemas.common import AttendeeCount, Pagination
from eventhub.schemas.event import (
    EventCreate,
    EventDetail,
    EventListData,
    EventSummary,
    EventUpdate,
    FaqIn,
    FeatureIn,
    ScheduleItemIn,
)

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "date_asc": Event.start_datetime.asc(),
    "date_desc": Event.start_datetime.desc(),
    "price_asc": Event.price.asc(),
    "price_desc": Event.price.desc(),
    "newest": Event.created_at.desc(),
}
DEFAULT_SORT = "date_asc"

_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_SLUG_SUFFIX_LENGTH = 5
_SLUG_ATTEMPTS = 5


# ══════════════════════════════════════════════════════════════════════════
# Slugs
# ══════════════════════════════════════════════════════════════════════════


def slugify(text: str) -> str:
    """'Jazz Night @ Blue Frog!' → 'jazz-night-blue-frog'"""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "event"


def make_event_slug(title: str) -> str:
    suffix = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(_SLUG_SUFFIX_LENGTH))
    return f"{slugify(title)}-{suffix}"


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _parse_status(value: Optional[str]) -> Optional[EventStatus]:
    if not value:
        return None
    try:
        return EventStatus(value.upper())
    except ValueError:
        return None


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class EventService:

    # ── Loading helpers ───────────────────────────────────────────────────

    @staticmethod
    def _summary_options() -> list:
        return [selectinload(Event.category), selectinload(Event.host)]

    @staticmethod
    def _detail_options() -> list:
        return [
            selectinload(Event.category),
            selectinload(Event.host),
            selectinload(Event.attendees).selectinload(EventAttendee.user),
            selectinload(Event.reviews).selectinload(EventReview.user),
            selectinload(Event.features),
            selectinload(Event.faqs),
            selectinload(Event.schedule_items),
        ]

    async def attendee_counts(self, db: AsyncSession, event_ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not event_ids:
            return {}
        result = await db.execute(
            select(EventAttendee.event_id, func.count(EventAttendee.id))
            .where(EventAttendee.event_id.in_(event_ids))
            .group_by(EventAttendee.event_id)
        )
        return {event_id: count for event_id, count in result.all()}

    async def _summaries(self, db: AsyncSession, events: Sequence[Event]) -> List[EventSummary]:
        counts = await self.attendee_counts(db, [e.id for e in events])
        return [
            EventSummary.model_validate(e).model_copy(
                update={"count": AttendeeCount(attendees=counts.get(e.id, 0))}
            )
            for e in events
        ]

    async def _load_detail(self, db: AsyncSession, event_id: uuid.UUID) -> Event:
        result = await db.execute(
            select(Event)
            .where(Event.id == event_id)
            .options(*self._detail_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    @staticmethod
    def _to_detail(event: Event) -> EventDetail:
        return EventDetail.model_validate(event).model_copy(
            update={"count": AttendeeCount(attendees=len(event.attendees))}
        )

    # ── Listing ───────────────────────────────────────────────────────────

    def _filters(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        host_id: Optional[uuid.UUID] = None,
    ) -> list:
        conditions = []
        if category:
            category_id = _parse_uuid(category)
            if category_id is not None:
                conditions.append(Event.category_id == category_id)
            else:
                conditions.append(
                    Event.category_id.in_(select(Category.id).where(Category.slug == category))
                )
        if search:
            pattern = contains_pattern(search)
            conditions.append(
                or_(
                    Event.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Event.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        parsed_status = _parse_status(status)
        if parsed_status is not None:
            conditions.append(Event.status == parsed_status)
        if min_price is not None:
            conditions.append(Event.price >= min_price)
        if max_price is not None:
            conditions.append(Event.price <= max_price)
        if host_id is not None:
            conditions.append(Event.host_id == host_id)
        return conditions

    async def list_events(
        self,
        db: AsyncSession,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        host_id: Optional[uuid.UUID] = None,
        sort: str = DEFAULT_SORT,
        page: int = 1,
        limit: int = 20,
    ) -> EventListData:
        """
        One page of events plus pagination metadata.

        An unknown `sort` value falls back to date_asc. Ties are broken by id
        so pages never overlap.
        """
        conditions = self._filters(
            category=category,
            search=search,
            status=status,
            min_price=min_price,
            max_price=max_price,
            host_id=host_id,
        )

        total = await db.scalar(select(func.count(Event.id)).where(*conditions)) or 0

        stmt: Select = (
            select(Event)
            .where(*conditions)
            .options(*self._summary_options())
            .order_by(SORT_ORDERS.get(sort, SORT_ORDERS[DEFAULT_SORT]), Event.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        events = list((await db.execute(stmt)).scalars().all())

        return EventListData(
            events=await self._summaries(db, events),
            pagination=Pagination.build(total=total, page=page, limit=limit),
        )

    # ── Lookup ────────────────────────────────────────────────────────────

    async def get_event(self, db: AsyncSession, id_or_slug: str) -> EventDetail:
        event_id = _parse_uuid(id_or_slug)
        condition = Event.id == event_id if event_id is not None else Event.slug == id_or_slug

        result = await db.execute(select(Event).where(condition).options(*self._detail_options()))
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError(resource="Event", resource_id=id_or_slug)
        return self._to_detail(event)

    async def _unique_slug(self, db: AsyncSession, title: str) -> str:
        for _ in range(_SLUG_ATTEMPTS):
            slug = make_event_slug(title)
            taken = await db.scalar(select(Event.id).where(Event.slug == slug))
            if taken is None:
                return slug
        # Practically unreachable with 36^5 suffixes; the unique index still guards it
        logger.warning("Slug collisions for title %r after %d attempts", title, _SLUG_ATTEMPTS)
        return make_event_slug(title)

    async def _require_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        if await db.get(Category, category_id) is None:
            raise ValidationError("Category not found", field="categoryId")

    # ── Nested children ───────────────────────────────────────────────────

    @staticmethod
    def _build_features(items: List[FeatureIn]) -> List[EventFeature]:
        return [EventFeature(name=item.name) for item in items]

    @staticmethod
    def _build_faqs(items: List[FaqIn]) -> List[EventFaq]:
        return [
            EventFaq(question=item.question, answer=item.answer, order=item.order if item.order is not None else i)
            for i, item in enumerate(items)
        ]

    @staticmethod
    def _build_schedule(items: List[ScheduleItemIn]) -> List[EventScheduleItem]:
        return [
            EventScheduleItem(time=item.time, activity=item.activity, order=item.order if item.order is not None else i)
            for i, item in enumerate(items)
        ]

    # ── Create ────────────────────────────────────────────────────────────

    async def create_event(self, db: AsyncSession, host: User, payload: EventCreate) -> EventDetail:
        await self._require_category(db, payload.category_id)
        start, end = payload.resolved_window()

        event = Event(
            slug=await self._unique_slug(db, payload.title),
            title=payload.title,
            description=payload.description,
            long_description=payload.long_description,
            category_id=payload.category_id,
            host_id=host.id,
            location=payload.location,
            address=payload.address,
            latitude=payload.latitude,
            longitude=payload.longitude,
            start_datetime=start,
            end_datetime=end,
            capacity=payload.capacity,
            price=payload.price,
            currency=payload.currency.upper(),
            images=payload.images or [],
            tags=payload.tags or [],
            status=payload.status or EventStatus.UPCOMING,
            features=self._build_features(payload.features or []),
            faqs=self._build_faqs(payload.faqs or []),
            schedule_items=self._build_schedule(payload.schedule_items or []),
        )
        db.add(event)
        await db.flush()

        logger.info("Event %s (%s) created by %s", event.id, event.slug, host.id)
        return self._to_detail(await self._load_detail(db, event.id))

    # ── Update / Delete ───────────────────────────────────────────────────

    async def _get_owned(self, db: AsyncSession, user: User, event_id: uuid.UUID, action: str) -> Event:
        result = await db.execute(
            select(Event)
            .where(Event.id == event_id)
            .options(
                selectinload(Event.features),
                selectinload(Event.faqs),
                selectinload(Event.schedule_items),
            )
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError(resource="Event", resource_id=str(event_id))
        if event.host_id != user.id and user.role != UserRole.ADMIN:
            raise AuthorizationError(f"Not authorized to {action} this event")
        return event

    async def update_event(
        self, db: AsyncSession, user: User, event_id: uuid.UUID, payload: EventUpdate
    ) -> EventDetail:
        """
        Partial update.

        Only fields present in the body are applied. Non-nullable columns
        ignore an explicit null. A present nested list replaces the existing
        children; the removed rows are deleted as orphans.
        """
        event = await self._get_owned(db, user, event_id, "update")

        changes = payload.model_dump(
            exclude_unset=True,
            exclude={
                "start_datetime", "end_datetime", "date", "start_time", "end_time",
                "features", "faqs", "schedule_items",
            },
        )
        for required in ("title", "description", "category_id", "address", "price", "currency", "images", "tags", "status"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        if "category_id" in changes and changes["category_id"] != event.category_id:
            await self._require_category(db, changes["category_id"])

        if "title" in changes and changes["title"] != event.title:
            event.slug = await self._unique_slug(db, changes["title"])

        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()

        start, end = payload.resolved_window()
        new_start = start or as_utc(event.start_datetime)
        new_end = end or as_utc(event.end_datetime)
        if new_end < new_start:
            raise ValidationError("End time must not be before start time", field="endDatetime")
        event.start_datetime = new_start
        event.end_datetime = new_end

        for field, value in changes.items():
            setattr(event, field, value)

        if payload.features is not None:
            event.features = self._build_features(payload.features)
        if payload.faqs is not None:
            event.faqs = self._build_faqs(payload.faqs)
        if payload.schedule_items is not None:
            event.schedule_items = self._build_schedule(payload.schedule_items)

        await db.flush()

        logger.info("Event %s updated by %s", event.id, user.id)
        return self._to_detail(await self._load_detail(db, event.id))

    async def delete_event(self, db: AsyncSession, user: User, event_id: uuid.UUID) -> None:
        event = await self._get_owned(db, user, event_id, "delete")
        await db.delete(event)
        await db.flush()
        logger.info("Event %s deleted by %s", event_id, user.id)


# ── Singleton Instance ────────────────────────────────────────────────────
event_service = EventService()
