"""
EventHub Backend — AI Assistant Schemas
=========================================

What:  Request bodies for /api/ai and the structured event draft that
       Gemini is asked to produce.

The draft model is deliberately lenient: every field has a default, and the
suggested price/capacity accept either numbers or numeric strings, because
the model's JSON is not under our control. A response that is not a JSON
object at all is rejected by the Gemini service.
"""

from typing import Any, List, Optional

from pydantic import Field, field_validator

from eventhub.schemas.common import CamelModel

MAX_IMAGE_PROMPTS = 3


class GenerateContentRequest(CamelModel):
    event_description: str = Field(min_length=20, max_length=4000)
    category: Optional[str] = Field(default=None, max_length=100)
    location: Optional[str] = Field(default=None, max_length=255)
    date: Optional[str] = Field(default=None, max_length=50)


class GeneratedScheduleItem(CamelModel):
    time: str = ""
    activity: str = ""


class GeneratedFaq(CamelModel):
    question: str = ""
    answer: str = ""


class GeneratedEventContent(CamelModel):
    title: str = ""
    description: str = ""
    long_description: str = ""
    tags: List[str] = []
    features: List[str] = []
    schedule: List[GeneratedScheduleItem] = []
    faqs: List[GeneratedFaq] = []
    suggested_price: Optional[str] = None
    suggested_capacity: Optional[str] = None
    image_prompts: List[str] = []

    @field_validator("suggested_price", "suggested_capacity", mode="before")
    @classmethod
    def stringify_number(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class GenerateImagesRequest(CamelModel):
    prompts: List[str] = Field(min_length=1)
    event_title: str = Field(default="", max_length=255)

    @field_validator("prompts")
    @classmethod
    def drop_blank(cls, v: List[str]) -> List[str]:
        cleaned = [p.strip() for p in v if p and p.strip()]
        if not cleaned:
            raise ValueError("Image prompts are required")
        return cleaned


class ImageUrlsData(CamelModel):
    urls: List[str]
