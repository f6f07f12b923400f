"""EventHub Backend — Vendor Routes (/api/vendor)"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.dependencies import require_roles
from eventhub.models.user import User, UserRole
from eventhub.schemas.common import Envelope
from eventhub.schemas.vendor import VendorDashboardData
from eventhub.services.vendor_service import vendor_dashboard_service

router = APIRouter(prefix="/api/vendor", tags=["Vendor"])


@router.get(
    "/dashboard",
    response_model=Envelope[VendorDashboardData],
    response_model_exclude_none=True,
    summary="Vendor dashboard: own events, services and bids",
)
async def dashboard(
    user: User = Depends(require_roles(UserRole.VENDOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[VendorDashboardData]:
    return Envelope(data=await vendor_dashboard_service.dashboard(db, user))
