"""Bounded re-asking when generated content is malformed."""

import logging
from typing import Any, Dict, List, Sequence

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.schema import ContentGenerationRequest
from llm_synthesis.validator import ContentValidationError, validate_generated_content

logger = logging.getLogger(__name__)

RETRYABLE_STAGES = frozenset({"json_parse", "schema"})


class ContentRetryExhaustedError(RuntimeError):
    """Every allowed attempt produced content that failed validation.

    ``history`` holds one validation error per attempt, oldest first.
    """

    def __init__(self, history: Sequence[ContentValidationError]) -> None:
        self.history: List[ContentValidationError] = list(history)
        self.attempts = len(self.history)
        self.last_error = self.history[-1]
        super().__init__(
            f"Generated content failed validation after {self.attempts} attempt(s): {self.last_error}"
        )


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    request: ContentGenerationRequest,
    max_retries: int = 1,
) -> Dict[str, Any]:
    """Ask ``adapter`` until its answer validates against ``request``.

    Unparseable or wrongly shaped answers are retried up to ``max_retries``
    extra times. An answer that names none of the requested fields is not
    retried, and adapter errors propagate untouched.
    """
    allowed = 1 + max(0, max_retries)
    history: List[ContentValidationError] = []

    while len(history) < allowed:
        raw = adapter.generate(prompt)
        try:
            values = validate_generated_content(raw, request)
        except ContentValidationError as exc:
            if exc.stage not in RETRYABLE_STAGES:
                raise
            history.append(exc)
            logger.warning(
                "Generated content rejected marketplace=%s attempt=%d/%d stage=%s",
                request.marketplace,
                len(history),
                allowed,
                exc.stage,
            )
            continue

        if history:
            logger.info(
                "Generated content accepted marketplace=%s after %d rejected attempt(s)",
                request.marketplace,
                len(history),
            )
        return values

    raise ContentRetryExhaustedError(history)
