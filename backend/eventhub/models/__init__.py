"""
EventHub Backend — ORM Models
===============================

Importing this package registers every table with `Base.metadata`, which
Alembic autogenerate and the test suite's create_all rely on.
"""

from eventhub.models.category import Category
from eventhub.models.event import (
    AttendeeStatus,
    Event,
    EventAttendee,
    EventFaq,
    EventFeature,
    EventReview,
    EventScheduleItem,
    EventStatus,
)
from eventhub.models.user import AuthProvider, User, UserRole
from eventhub.models.vendor import BidStatus, ServiceBid, VendorService

__all__ = [
    "AttendeeStatus",
    "AuthProvider",
    "BidStatus",
    "Category",
    "Event",
    "EventAttendee",
    "EventFaq",
    "EventFeature",
    "EventReview",
    "EventScheduleItem",
    "EventStatus",
    "ServiceBid",
    "User",
    "UserRole",
    "VendorService",
]
