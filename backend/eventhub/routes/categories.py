"""EventHub Backend — Category Routes (/api/categories)"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.schemas.category import CategoryListData, CategoryOut
from eventhub.schemas.common import Envelope
from eventhub.services.category_service import category_service

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get(
    "",
    response_model=Envelope[CategoryListData],
    response_model_exclude_none=True,
    summary="All categories, ordered by name",
)
async def list_categories(db: AsyncSession = Depends(get_db_session)) -> Envelope[CategoryListData]:
    categories = await category_service.list_categories(db)
    return Envelope(data=CategoryListData(categories=[CategoryOut.model_validate(c) for c in categories]))
