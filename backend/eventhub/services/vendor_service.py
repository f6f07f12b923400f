"""
EventHub Backend — Vendor Dashboard Service
=============================================

What:  Aggregates what a vendor sees on their dashboard: the events they
       host, the services they offer and the bids they have placed.
Who:   routes/vendor.py (VENDOR and ADMIN callers).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventhub.models.event import Event
from eventhub.models.user import User
from eventhub.models.vendor import ServiceBid, VendorService
from eventhub.schemas.common import AttendeeCount
from eventhub.schemas.vendor import (
    ServiceBidOut,
    VendorDashboardData,
    VendorEventOut,
    VendorServiceOut,
)
from eventhub.services.event_service import event_service

logger = logging.getLogger(__name__)


class VendorDashboardService:

    async def dashboard(self, db: AsyncSession, vendor: User) -> VendorDashboardData:
        events = list(
            (
                await db.execute(
                    select(Event).where(Event.host_id == vendor.id).order_by(Event.start_datetime.desc())
                )
            ).scalars().all()
        )
        counts = await event_service.attendee_counts(db, [e.id for e in events])

        services = (
            await db.execute(
                select(VendorService)
                .where(VendorService.vendor_id == vendor.id)
                .order_by(VendorService.created_at.desc())
            )
        ).scalars().all()

        bids = (
            await db.execute(
                select(ServiceBid)
                .where(ServiceBid.vendor_id == vendor.id)
                .options(selectinload(ServiceBid.event))
                .order_by(ServiceBid.created_at.desc())
            )
        ).scalars().all()

        logger.debug(
            "Dashboard for %s: %d events, %d services, %d bids", vendor.id, len(events), len(services), len(bids)
        )
        return VendorDashboardData(
            events=[
                VendorEventOut.model_validate(e).model_copy(
                    update={"count": AttendeeCount(attendees=counts.get(e.id, 0))}
                )
                for e in events
            ],
            services=[VendorServiceOut.model_validate(s) for s in services],
            bids=[ServiceBidOut.model_validate(b) for b in bids],
        )


# ── Singleton Instance ────────────────────────────────────────────────────
vendor_dashboard_service = VendorDashboardService()
