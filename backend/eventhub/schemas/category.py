"""EventHub Backend — Category Schemas"""

import uuid
from typing import List, Optional

from eventhub.schemas.common import CamelModel


class CategoryOut(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    icon: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None


class CategoryListData(CamelModel):
    categories: List[CategoryOut]
