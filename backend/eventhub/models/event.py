"""
EventHub Backend — Event SQLAlchemy Models
============================================

What:  The `events` table and its child tables (features, FAQs, schedule
       items, attendees, reviews).
Who:   Used by EventService, VendorService and AdminService.

Table Design Rationale:
    - slug is unique and derived from the title plus a random suffix, so two
      events with the same title still get distinct URLs.
    - images and tags are JSON lists: they are always read and written as a
      whole with the event, never queried individually.
    - Child rows cascade on delete, both in the ORM and in the foreign keys.

Index on start_datetime:
    The default public listing sorts by start date ascending.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventhub.database import Base
from eventhub.models.user import utcnow

if TYPE_CHECKING:
    from eventhub.models.category import Category
    from eventhub.models.user import User
    from eventhub.models.vendor import ServiceBid


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AttendeeStatus(str, enum.Enum):
    REGISTERED = "REGISTERED"
    CANCELLED = "CANCELLED"
    ATTENDED = "ATTENDED"


class Event(Base):
    """
    An event listed on the marketplace.

    Lifecycle:
        DRAFT → UPCOMING → ONGOING → COMPLETED, or CANCELLED at any point.
        Status changes are plain updates by the host; nothing transitions
        automatically.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    long_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    host_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.UPCOMING,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # ── Relationships ─────────────────────────────────────────────────────
    category: Mapped["Category"] = relationship()
    host: Mapped["User"] = relationship(back_populates="hosted_events")
    features: Mapped[List["EventFeature"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    faqs: Mapped[List["EventFaq"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", order_by="EventFaq.order"
    )
    schedule_items: Mapped[List["EventScheduleItem"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", order_by="EventScheduleItem.order"
    )
    attendees: Mapped[List["EventAttendee"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    reviews: Mapped[List["EventReview"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    bids: Mapped[List["ServiceBid"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_events_start_datetime", "start_datetime"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug='{self.slug}', status='{self.status.value}')>"


class EventFeature(Base):
    __tablename__ = "event_features"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    event: Mapped["Event"] = relationship(back_populates="features")


class EventFaq(Base):
    __tablename__ = "event_faqs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    event: Mapped["Event"] = relationship(back_populates="faqs")


class EventScheduleItem(Base):
    __tablename__ = "event_schedule_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    time: Mapped[str] = mapped_column(String(20), nullable=False)
    activity: Mapped[str] = mapped_column(String(500), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    event: Mapped["Event"] = relationship(back_populates="schedule_items")


class EventAttendee(Base):
    """A user's registration for an event. One row per (event, user)."""

    __tablename__ = "event_attendees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[AttendeeStatus] = mapped_column(
        Enum(AttendeeStatus, name="attendee_status"),
        nullable=False,
        default=AttendeeStatus.REGISTERED,
    )
    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    event: Mapped["Event"] = relationship(back_populates="attendees")
    user: Mapped["User"] = relationship(back_populates="attended_events")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )


class EventReview(Base):
    __tablename__ = "event_reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    event: Mapped["Event"] = relationship(back_populates="reviews")
    user: Mapped["User"] = relationship(back_populates="reviews")
