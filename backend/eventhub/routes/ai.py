"""
EventHub Backend — AI Assistant Routes
========================================

What:  /api/ai: draft an event from a description, and render event images.
Who:   The SPA's create-event wizard. Any authenticated user may call these;
       the rate limiter and the Gemini circuit breaker bound the cost.
"""

import logging

from fastapi import APIRouter, Depends

from eventhub.dependencies import get_current_user
from eventhub.models.user import User
from eventhub.schemas.ai import (
    GenerateContentRequest,
    GeneratedEventContent,
    GenerateImagesRequest,
    ImageUrlsData,
)
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.services.gemini_service import gemini_service
from eventhub.services.image_service import event_image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI"])

_AI_ERRORS = {503: {"description": "AI service unavailable", "model": ErrorResponse}}


@router.post(
    "/generate-event-content",
    response_model=Envelope[GeneratedEventContent],
    response_model_exclude_none=True,
    responses=_AI_ERRORS,
    summary="Draft a full event listing from a short description",
)
async def generate_event_content(
    payload: GenerateContentRequest,
    user: User = Depends(get_current_user),
) -> Envelope[GeneratedEventContent]:
    logger.info("User %s requested AI event content", user.id)
    content = await gemini_service.generate_event_content(payload)
    return Envelope(data=content)


@router.post(
    "/generate-event-images",
    response_model=Envelope[ImageUrlsData],
    response_model_exclude_none=True,
    responses=_AI_ERRORS,
    summary="Generate up to three event images",
)
async def generate_event_images(
    payload: GenerateImagesRequest,
    user: User = Depends(get_current_user),
) -> Envelope[ImageUrlsData]:
    logger.info("User %s requested %d AI image(s)", user.id, len(payload.prompts))
    urls = await event_image_service.generate_event_images(payload.prompts, payload.event_title)
    return Envelope(data=ImageUrlsData(urls=urls))
