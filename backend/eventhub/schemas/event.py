"""
EventHub Backend — Event Schemas
==================================

What:  Request bodies for creating/updating events and the listing/detail
       shapes returned by /api/events.

Date handling:
    The SPA's create form sends a calendar `date` plus `startTime`/`endTime`
    ("2025-03-01", "18:00", "23:00"); other clients send full ISO
    `startDatetime`/`endDatetime`. Both are accepted and resolved to a pair
    of timezone-aware UTC datetimes before the service sees the request.
    Naive values are taken as UTC.

Nested lists:
    features / faqs / scheduleItems are optional on both create and update.
    On update, a list that is present replaces every existing child row; a
    list that is absent leaves the children alone.
"""

import uuid
from datetime import date as date_type
from datetime import datetime, time
from typing import List, Optional, Tuple

from pydantic import Field, field_validator, model_validator

from eventhub.models.event import AttendeeStatus, EventStatus
from eventhub.models.user import as_utc
from eventhub.schemas.category import CategoryOut
from eventhub.schemas.common import AttendeeCount, CamelModel, Pagination
from eventhub.schemas.user import HostDetail, UserSummary


def _combine(day: Optional[date_type], at: Optional[time]) -> Optional[datetime]:
    if day is None or at is None:
        return None
    return datetime.combine(day, at)


# ══════════════════════════════════════════════════════════════════════════
# Nested Children — Request Models
# ══════════════════════════════════════════════════════════════════════════


class FeatureIn(CamelModel):
    name: str = Field(min_length=1, max_length=255)


class FaqIn(CamelModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    order: Optional[int] = None


class ScheduleItemIn(CamelModel):
    time: str = Field(min_length=1, max_length=20)
    activity: str = Field(min_length=1, max_length=500)
    order: Optional[int] = None


# ══════════════════════════════════════════════════════════════════════════
# Create / Update
# ══════════════════════════════════════════════════════════════════════════


class _EventFields(CamelModel):
    """Fields shared by create and update; all optional at this level."""
    long_description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    date: Optional[date_type] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    capacity: Optional[int] = Field(default=None, ge=1)
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    status: Optional[EventStatus] = None

    features: Optional[List[FeatureIn]] = None
    faqs: Optional[List[FaqIn]] = None
    schedule_items: Optional[List[ScheduleItemIn]] = None

    def resolved_window(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """(start, end) in UTC, preferring explicit datetimes over date + time."""
        start = self.start_datetime or _combine(self.date, self.start_time)
        end = self.end_datetime or _combine(self.date, self.end_time)
        return as_utc(start), as_utc(end)


class EventCreate(_EventFields):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    category_id: uuid.UUID
    address: str = Field(min_length=1, max_length=500)
    price: float = Field(default=0, ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)

    @field_validator("title", "description", "address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @model_validator(mode="after")
    def check_window(self) -> "EventCreate":
        start, end = self.resolved_window()
        if start is None or end is None:
            raise ValueError(
                "Start and end are required: send startDatetime/endDatetime or date with startTime/endTime"
            )
        if end < start:
            raise ValueError("End time must not be before start time")
        return self


class EventUpdate(_EventFields):
    """Partial update; the service applies only the fields that were sent."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[uuid.UUID] = None
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class FeatureOut(CamelModel):
    id: uuid.UUID
    name: str


class FaqOut(CamelModel):
    id: uuid.UUID
    question: str
    answer: str
    order: int


class ScheduleItemOut(CamelModel):
    id: uuid.UUID
    time: str
    activity: str
    order: int


class AttendeeOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    status: AttendeeStatus
    registered_at: datetime
    user: UserSummary


class ReviewOut(CamelModel):
    id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: UserSummary


class EventBrief(CamelModel):
    """Just enough of an event to render a card or a table row."""
    id: uuid.UUID
    slug: str
    title: str
    start_datetime: datetime
    end_datetime: datetime
    price: float
    currency: str
    images: List[str] = []
    status: EventStatus


class EventSummary(EventBrief):
    """
    What:  One item of an event listing.
    Who:   GET /api/events, /api/events/my-events, /api/admin/events.

    `_count.attendees` is not an ORM attribute; the service fills it from a
    grouped count query after validation.
    """
    description: str
    category_id: uuid.UUID
    category: CategoryOut
    host_id: uuid.UUID
    host: UserSummary
    location: Optional[str] = None
    address: str
    capacity: Optional[int] = None
    tags: List[str] = []
    created_at: datetime
    count: AttendeeCount = Field(default_factory=AttendeeCount, alias="_count")


class EventDetail(EventSummary):
    long_description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    updated_at: datetime
    host: HostDetail
    attendees: List[AttendeeOut] = []
    reviews: List[ReviewOut] = []
    features: List[FeatureOut] = []
    faqs: List[FaqOut] = []
    schedule_items: List[ScheduleItemOut] = []


class EventListData(CamelModel):
    events: List[EventSummary]
    pagination: Pagination


class EventData(CamelModel):
    event: EventDetail
