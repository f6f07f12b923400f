"""
EventHub Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table: credentials, profile and role.
Who:   Used by auth, user, admin and vendor services.

Table Design Rationale:
    - email is unique and stored lower-cased; lookups are exact matches.
    - password_hash is NULL-free: social accounts get an unusable random hash.
    - Verification and reset tokens are stored as SHA-256 digests, never raw,
      so a database leak does not hand out working links.
    - Deleting a user cascades to everything they own (events, attendances,
      reviews, vendor services, bids).
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventhub.database import Base

if TYPE_CHECKING:
    from eventhub.models.event import Event, EventAttendee, EventReview
    from eventhub.models.vendor import ServiceBid, VendorService


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite returns them) and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserRole(str, enum.Enum):
    USER = "USER"
    HOST = "HOST"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"


class AuthProvider(str, enum.Enum):
    EMAIL = "email"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    APPLE = "apple"


class User(Base):
    """
    A marketplace account.

    Roles:
        USER   — browses and attends events
        HOST   — creates and manages their own events
        VENDOR — offers services and bids on events; has a vendor dashboard
        ADMIN  — full access to the admin API
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.USER,
    )
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    preferences: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auth_provider: Mapped[AuthProvider] = mapped_column(
        Enum(AuthProvider, name="auth_provider"),
        nullable=False,
        default=AuthProvider.EMAIL,
    )
    verification_token_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    verification_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_token_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    reset_token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # ── Relationships ─────────────────────────────────────────────────────
    hosted_events: Mapped[List["Event"]] = relationship(
        back_populates="host", cascade="all, delete-orphan"
    )
    attended_events: Mapped[List["EventAttendee"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    reviews: Mapped[List["EventReview"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    vendor_services: Mapped[List["VendorService"]] = relationship(
        back_populates="vendor", cascade="all, delete-orphan"
    )
    service_bids: Mapped[List["ServiceBid"]] = relationship(
        back_populates="vendor", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
