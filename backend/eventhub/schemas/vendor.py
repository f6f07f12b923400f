"""EventHub Backend — Vendor Dashboard Schemas"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from eventhub.models.vendor import BidStatus
from eventhub.schemas.common import AttendeeCount, CamelModel
from eventhub.schemas.event import EventBrief


class VendorServiceOut(CamelModel):
    id: uuid.UUID
    vendor_id: uuid.UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    base_price: Optional[float] = None
    created_at: datetime


class ServiceBidOut(CamelModel):
    id: uuid.UUID
    event_id: uuid.UUID
    vendor_id: uuid.UUID
    service_id: Optional[uuid.UUID] = None
    amount: float
    message: Optional[str] = None
    status: BidStatus
    created_at: datetime
    event: EventBrief


class VendorEventOut(EventBrief):
    count: AttendeeCount = Field(default_factory=AttendeeCount, alias="_count")


class VendorDashboardData(CamelModel):
    events: List[VendorEventOut]
    services: List[VendorServiceOut]
    bids: List[ServiceBidOut]
