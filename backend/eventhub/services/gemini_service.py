"""
EventHub Backend — Google Gemini Service Implementation
=========================================================

What:  Concrete LLM service that drafts event listings with a Gemini text
       model and renders event images with an Imagen model.
Why:   Hosts describe an event in a sentence or two; the assistant turns it
       into a full listing (copy, schedule, FAQs, tags) they can edit.
How:   google-genai async client, JSON response mode, wrapped in tenacity
       retries and a circuit breaker.
Who:   Singleton used by routes/ai.py, EventImageService and /health.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker to fail fast while Gemini is down
    3. Detailed logging (duration, response size) per call

Output Parsing:
    JSON response mode makes the reply a JSON document, but models still
    occasionally wrap it in ``` fences. Fences are stripped; anything that is
    not a JSON object afterwards, or an object whose fields have the wrong
    types, is an LLMServiceError. Parse failures are not retried and do not
    count against the circuit breaker: the provider answered, it just
    answered badly.
"""

import json
import logging
import re
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from google import genai
from google.genai import types
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from eventhub.config import settings
from eventhub.exceptions import CircuitBreakerOpenError, LLMServiceError
from eventhub.schemas.ai import GenerateContentRequest, GeneratedEventContent
from eventhub.services.llm_base import LLMService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════


class CircuitBreaker:
    """
    Fails fast while Gemini keeps failing, then lets a single trial call probe
    for recovery.

    States:
        closed     every call proceeds; consecutive failures are counted and
                   the breaker opens once they reach `failure_threshold`
        open       calls raise CircuitBreakerOpenError until
                   `recovery_timeout` seconds have passed since the last failure
        half_open  exactly one trial call is admitted; concurrent callers are
                   refused until it reports back. Success closes the breaker,
                   failure reopens it. A trial that never reports back (a
                   cancelled request) is replaced after `recovery_timeout`.

    Plain attributes, no lock: uvicorn runs one event loop per process and
    nothing here awaits.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None
        self.trial_started_at: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Admit or refuse one call.

        Raises:
            CircuitBreakerOpenError: open and still cooling down, or half-open
                with the trial call still in flight.
        """
        if self.state == self.CLOSED:
            return True

        now = time.time()
        if self.state == self.OPEN:
            elapsed = now - (self.last_failure_time or 0)
            if elapsed < self.recovery_timeout:
                raise CircuitBreakerOpenError(recovery_time=int(self.recovery_timeout - elapsed))
            logger.info("Circuit breaker HALF_OPEN after %.1fs, admitting one trial call", elapsed)
            self.state = self.HALF_OPEN
            self.trial_started_at = now
            return True

        waited = now - (self.trial_started_at or 0)
        if waited >= self.recovery_timeout:
            logger.warning("Circuit breaker trial call never reported back, admitting another")
            self.trial_started_at = now
            return True
        raise CircuitBreakerOpenError(recovery_time=max(1, int(self.recovery_timeout - waited)))

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker CLOSED, trial call succeeded")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None
        self.trial_started_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()
        self.trial_started_at = None

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker back to OPEN, trial call failed")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning("Circuit breaker OPENING after %d consecutive failures", self.failure_count)
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Prompts
# ══════════════════════════════════════════════════════════════════════════

SYSTEM_INSTRUCTION = (
    "You are an expert event planner assistant. Generate comprehensive, engaging event "
    "content in JSON format. Be creative, professional, and detailed."
)

CONTENT_TEMPLATE = """Create a detailed event based on this description: "{description}"

Category: {category}
Location: {location}
Date: {date}

Generate a JSON response with the following structure:
{{
  "title": "Catchy event title (max 100 chars)",
  "description": "Brief description (2-3 sentences, max 300 chars)",
  "longDescription": "Detailed HTML description with sections (500-800 words). Use <h3>, <p>, <ul>, <li> tags.",
  "tags": ["tag1", "tag2", "tag3", "tag4", "tag5"],
  "features": ["feature1", "feature2", "feature3", "feature4", "feature5"],
  "schedule": [
    {{"time": "10:00 AM", "activity": "Activity description"}}
  ],
  "faqs": [
    {{"question": "Question?", "answer": "Answer"}}
  ],
  "suggestedPrice": "Price in INR (number only)",
  "suggestedCapacity": "Number of attendees (number only)",
  "imagePrompts": ["Prompt for image 1", "Prompt for image 2", "Prompt for image 3"]
}}"""

IMAGE_TEMPLATE = "Professional event photography: {prompt}. High quality, vibrant, engaging. Event: {title}"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_content_prompt(request: GenerateContentRequest) -> str:
    return CONTENT_TEMPLATE.format(
        description=request.event_description.strip(),
        category=request.category or "General",
        location=request.location or "TBD",
        date=request.date or "TBD",
    )


def build_image_prompt(prompt: str, event_title: str) -> str:
    return IMAGE_TEMPLATE.format(prompt=prompt.strip(), title=event_title.strip())


def parse_event_json(raw: str) -> Dict[str, Any]:
    """
    Decode the model's reply into a dict.

    Raises:
        LLMServiceError: empty reply, invalid JSON, or JSON that is not an object.
    """
    text = _FENCE_RE.sub("", (raw or "").strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Gemini returned unparseable JSON (%d chars): %s", len(text), e.msg)
        raise LLMServiceError(
            message="Failed to parse AI response. Please try again.",
            context={"reason": "invalid_json"},
        )
    if not isinstance(data, dict):
        raise LLMServiceError(
            message="Failed to parse AI response. Please try again.",
            context={"reason": "not_an_object", "type": type(data).__name__},
        )
    return data


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════


class GeminiService(LLMService):
    """
    Google Gemini implementation of the event assistant.

    Error Handling Chain:
        API call fails → tenacity retries (with backoff)
        → All retries fail → record circuit breaker failure → LLMServiceError
        → Circuit breaker threshold reached → future calls rejected instantly
        → Recovery timeout → allow test call (HALF_OPEN)
        → Test succeeds → resume normal operation (CLOSED)
    """

    def __init__(self):
        # Built lazily; genai.Client refuses to construct without a key
        self._client: Optional[genai.Client] = None

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, image_model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            settings.gemini_image_model,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(settings.gemini_api_key) or self._client is not None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not settings.gemini_api_key:
                raise LLMServiceError(
                    message="AI assistant is not configured. Set GEMINI_API_KEY.",
                    context={"reason": "not_configured"},
                )
            self._client = genai.Client(api_key=settings.gemini_api_key)
        return self._client

    # ── Guarded execution ─────────────────────────────────────────────────

    async def _guarded(self, operation: str, call, *args):
        """
        Run a retried provider call behind the circuit breaker.

        Any exception that survives tenacity counts as one breaker failure
        and is wrapped in LLMServiceError.
        """
        request_id = str(uuid.uuid4())[:8]
        client = self.client
        self.circuit_breaker.can_execute()

        try:
            result = await call(client, *args, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini %s failed after retries: %s", request_id, operation, str(e))
            raise LLMServiceError(
                message=f"AI {operation} failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={
                    "request_id": request_id,
                    "attempts": settings.retry_max_attempts,
                    "error_type": type(e).__name__,
                },
            )

        self.circuit_breaker.record_success()
        return result

    # ── Content ───────────────────────────────────────────────────────────

    async def generate_event_content(self, request: GenerateContentRequest) -> GeneratedEventContent:
        raw = await self._guarded("content generation", self._generate_text, build_content_prompt(request))
        data = parse_event_json(raw)
        try:
            return GeneratedEventContent.model_validate(data)
        except PydanticValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            logger.warning("Gemini reply has the wrong shape: %s", ", ".join(fields))
            raise LLMServiceError(
                message="Failed to parse AI response. Please try again.",
                context={"reason": "invalid_shape", "fields": fields},
            )

    @retry(
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _generate_text(self, client: genai.Client, prompt: str, request_id: str) -> str:
        start_time = time.time()
        try:
            response = await client.aio.models.generate_content(
                model=settings.gemini_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    temperature=settings.gemini_temperature,
                ),
            )
        except Exception as e:
            logger.warning(
                "[%s] Gemini content call failed after %.0fms: %s",
                request_id,
                (time.time() - start_time) * 1000,
                str(e),
            )
            raise

        text = response.text or ""
        logger.info(
            "[%s] Gemini content generated in %.0fms, %d chars",
            request_id,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    # ── Images ────────────────────────────────────────────────────────────

    async def generate_image(self, prompt: str) -> Tuple[bytes, str]:
        return await self._guarded("image generation", self._generate_image, prompt)

    @retry(
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _generate_image(self, client: genai.Client, prompt: str, request_id: str) -> Tuple[bytes, str]:
        start_time = time.time()
        response = await client.aio.models.generate_images(
            model=settings.gemini_image_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(number_of_images=1),
        )
        image = response.generated_images[0].image if response.generated_images else None
        if image is None or not image.image_bytes:
            raise ValueError("Image model returned no image")

        data = image.image_bytes
        logger.info(
            "[%s] Gemini image generated in %.0fms, %d bytes",
            request_id,
            (time.time() - start_time) * 1000,
            len(data),
        )
        return data, image.mime_type or "image/png"

    # ── Health ────────────────────────────────────────────────────────────

    async def health_check(self) -> bool:
        """Fetch the configured model's metadata; costs no tokens."""
        try:
            await self.client.aio.models.get(model=settings.gemini_model)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker state, which must be shared across requests.
gemini_service = GeminiService()
