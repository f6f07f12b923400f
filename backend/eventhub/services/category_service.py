"""EventHub Backend — Category Service"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.models.category import Category


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        result = await db.execute(select(Category).order_by(Category.name.asc()))
        return list(result.scalars().all())


# ── Singleton Instance ────────────────────────────────────────────────────
category_service = CategoryService()
