"""Text-generation backends for product content.

``BaseLLMAdapter`` is the one seam the content generator talks to: a prompt
goes in, raw model text comes out. Parsing and validation happen upstream.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import OpenAI

CATALOG_COPYWRITER_PROMPT = (
    "You write product listing content for online marketplaces. Use only the "
    "facts supplied for the product, keep every value within the stated "
    "limits, and answer with a single JSON object."
)

DEFAULT_MOCK_CONTENT: Dict[str, Any] = {
    "description": "Mock product description for testing purposes.",
    "keywords": "mock, test, product",
}


class BaseLLMAdapter(ABC):
    """Backend that turns one prompt into raw response text."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's raw answer, expected to be a JSON object."""


class OpenAILLMAdapter(BaseLLMAdapter):
    """Chat-completions backend for OpenAI and compatible endpoints.

    The SDK's own retries are disabled; the per-call timeout bounds how long
    one batch item can wait on the provider.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2000,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
        temperature: float = 0.7,
    ) -> None:
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    def generate(self, prompt: str) -> str:
        completion = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": CATALOG_COPYWRITER_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            response_format={"type": "json_object"},
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""


class MockLLMAdapter(BaseLLMAdapter):
    """Offline backend answering every prompt with the same JSON object.

    Prompts are kept in ``prompts`` so tests can inspect what was asked.
    """

    def __init__(self, response: Optional[Dict[str, Any]] = None) -> None:
        content = DEFAULT_MOCK_CONTENT if response is None else response
        self._answer = json.dumps(content)
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._answer
