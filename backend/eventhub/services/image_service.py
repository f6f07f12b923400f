"""
EventHub Backend — Event Image Service (Upload + AI Orchestrator)
===================================================================

What:  Turns uploaded files and AI image prompts into stored images with
       public URLs.
Who:   routes/upload.py and routes/ai.py.

Orchestration Flow (POST /api/ai/generate-event-images):
    ┌──────────┐    ┌──────────────┐    ┌─────────────┐    ┌──────────┐
    │ Prompts  │───▶│ Expand (max  │───▶│ Gemini      │───▶│  Store   │
    │ (Route)  │    │ 3) + title   │    │ (gathered)  │    │  (Files) │
    └──────────┘    └──────────────┘    └─────────────┘    └──────────┘

All-or-nothing:
    A batch either returns every URL or raises. Files already written for
    a failed batch (upload or generation) are removed before the error
    propagates, so no orphaned images are left on disk.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from eventhub.schemas.ai import MAX_IMAGE_PROMPTS
from eventhub.services.file_service import file_service
from eventhub.services.gemini_service import build_image_prompt, gemini_service

logger = logging.getLogger(__name__)

# (filename, content, declared size)
UploadItem = Tuple[str, bytes, Optional[int]]


class EventImageService:

    async def _discard(self, stored: Sequence[Tuple[str, str]]) -> None:
        for absolute_path, _ in stored:
            await file_service.cleanup_file(absolute_path)

    async def upload_images(self, items: Sequence[UploadItem]) -> List[str]:
        """
        Validate and store each uploaded file.

        Returns:
            Public URLs in upload order.

        Raises:
            ValidationError: the first invalid file; nothing from the batch is kept.
        """
        stored: List[Tuple[str, str]] = []
        try:
            for filename, content, declared_size in items:
                stored.append(
                    await file_service.validate_and_store(
                        filename=filename,
                        content=content,
                        content_length=declared_size,
                    )
                )
        except Exception:
            await self._discard(stored)
            raise

        logger.info("Stored %d uploaded event image(s)", len(stored))
        return [file_service.public_url(relative) for _, relative in stored]

    async def generate_event_images(self, prompts: Sequence[str], event_title: str) -> List[str]:
        """
        Render up to MAX_IMAGE_PROMPTS images concurrently and store them.

        Raises:
            LLMServiceError / CircuitBreakerOpenError from the provider.
        """
        expanded = [build_image_prompt(p, event_title) for p in list(prompts)[:MAX_IMAGE_PROMPTS]]

        results = await asyncio.gather(
            *(gemini_service.generate_image(p) for p in expanded),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.warning("%d of %d image generations failed", len(failures), len(expanded))
            raise failures[0]

        stored: List[Tuple[str, str]] = []
        try:
            for data, mime_type in results:
                stored.append(await file_service.store_bytes(data, mime_type))
        except Exception:
            await self._discard(stored)
            raise

        logger.info("Generated and stored %d event image(s) for '%s'", len(stored), event_title)
        return [file_service.public_url(relative) for _, relative in stored]


# ── Singleton Instance ────────────────────────────────────────────────────
event_image_service = EventImageService()
