"""Content generator capability and its LLM-backed implementation.

A ``ContentGenerator`` exposes exactly one method, ``generate``, which
never raises: any failure is reported through ``GenerationResult.error``.
"""

import logging
from typing import Optional, Protocol

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import ContentPromptBuilder
from llm_synthesis.retry import ContentRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import ContentGenerationRequest, GenerationResult
from llm_synthesis.validator import ContentValidationError

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    """Produces values for missing product fields."""

    name: str

    def generate(self, request: ContentGenerationRequest) -> GenerationResult:
        ...


class LLMContentGenerator:
    """Content generator backed by an LLM adapter.

    Formatting errors are retried; transport errors and exhausted retries
    become a failed ``GenerationResult``.
    """

    name = "llm"

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: Optional[ContentPromptBuilder] = None,
        max_retries: int = 1,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or ContentPromptBuilder()
        self._max_retries = max(0, max_retries)

    def generate(self, request: ContentGenerationRequest) -> GenerationResult:
        """Ask the LLM for the missing fields of one product.

        Args:
            request: Existing fields, missing field specs and marketplace.

        Returns:
            Validated values, or a failure describing why none were produced.
        """
        if not request.missing_fields:
            return GenerationResult(values={}, source=self.name)

        prompt = self._prompt_builder.build_prompt(request)
        try:
            values = generate_with_retry(
                self._adapter,
                prompt,
                request,
                max_retries=self._max_retries,
            )
        except (ContentValidationError, ContentRetryExhaustedError) as exc:
            logger.warning("LLM content rejected marketplace=%s: %s", request.marketplace, exc)
            return GenerationResult.failure(self.name, str(exc))
        except Exception as exc:  # transport errors from the provider SDK
            logger.warning(
                "LLM content generation failed marketplace=%s error=%s",
                request.marketplace,
                exc,
                exc_info=True,
            )
            return GenerationResult.failure(self.name, f"{type(exc).__name__}: {exc}")

        return GenerationResult(values=values, source=self.name)
