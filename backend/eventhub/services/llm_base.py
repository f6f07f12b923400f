"""
EventHub Backend — Abstract LLM Service Interface
===================================================

What:  Abstract base class defining the contract for the AI event assistant.
Why:   Routes and the image pipeline depend on this interface, not on the
       Gemini SDK, so a provider can be swapped (or mocked in tests) without
       touching calling code.
How:   Concrete implementations inherit from LLMService and implement the
       three methods below.
Who:   GeminiService is the only implementation; routes/ai.py and
       EventImageService call it.

Design Decision:
    Why an abstract class instead of just using GeminiService directly:
    1. Testing: a fake LLMService can be handed to EventImageService
    2. The health endpoint only needs health_check(), whatever the provider
    3. Provider-specific errors never leak past the implementation; they are
       wrapped in LLMServiceError
"""

from abc import ABC, abstractmethod
from typing import Tuple

from eventhub.schemas.ai import GenerateContentRequest, GeneratedEventContent


class LLMService(ABC):
    """
    Abstract interface for AI-assisted event authoring.

    Contract:
        - Implementations handle their own retry logic and error translation
        - All implementation-specific errors are wrapped in LLMServiceError
        - CircuitBreakerOpenError is raised untouched while the provider is
          being given time to recover
    """

    @abstractmethod
    async def generate_event_content(self, request: GenerateContentRequest) -> GeneratedEventContent:
        """
        Draft a complete event listing from a short free-text description.

        Returns:
            GeneratedEventContent: title, descriptions, tags, features,
            schedule, FAQs, suggested price/capacity and image prompts.

        Raises:
            LLMServiceError: provider failure after all retries, or a reply
                that is not a JSON object.
            CircuitBreakerOpenError: too many recent consecutive failures.
        """
        ...

    @abstractmethod
    async def generate_image(self, prompt: str) -> Tuple[bytes, str]:
        """
        Render one image for a fully expanded prompt.

        Returns:
            (image bytes, MIME type)
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the LLM service is reachable and operational.

        Lightweight: must not consume generation quota.
        """
        ...
