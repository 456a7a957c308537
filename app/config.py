"""
app/config.py

Application-level configuration helpers.

Every tunable of mapping, adaptation, ingestion and content generation is
read from the environment once and cached. The mapping and confidence
parameters are heuristics; their defaults are the values the scoring tests
pin down.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import TypeVar

from db.config import load_env_files

_ALLOWED_CONTENT_GENERATORS = {"rules", "openai", "mock"}
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

_Number = TypeVar("_Number", int, float)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_optional_str_env(name: str) -> str | None:
    """
    Stripped value of `name`, or None when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def _get_str_env(name: str, default: str) -> str:
    return _get_optional_str_env(name) or default


def _get_bool_env(name: str, default: bool) -> bool:
    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    return raw_value.lower() in _TRUE_VALUES


def _get_number_env(name: str, default: _Number, cast: Callable[[str], _Number]) -> _Number:
    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    try:
        return cast(raw_value)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    return _get_number_env(name, default, int)


def _get_float_env(name: str, default: float) -> float:
    return _get_number_env(name, default, float)


@dataclass(frozen=True)
class MappingSettings:
    """
    Scoring parameters of the field-mapping engine.
    """

    acceptance_threshold: float = 50.0
    fuzzy_similarity_threshold: float = 0.5
    semantic_confidence: float = 95.0
    fuzzy_weight: float = 70.0
    required_boost: float = 10.0


@dataclass(frozen=True)
class AdaptationSettings:
    """
    Confidence and issue-reporting parameters of template adaptation.
    """

    new_attribute_penalty: float = 5.0
    removed_attribute_penalty: float = 3.0
    low_confidence_threshold: int = 60
    null_rate_threshold: float = 0.3


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for spreadsheet ingestion.
    """

    max_upload_bytes: int = 50 * 1024 * 1024
    log_validation_errors: bool = True


@dataclass(frozen=True)
class ContentGenerationSettings:
    """
    Optional external content generator settings.
    """

    generator: str = "rules"
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 20.0
    max_retries: int = 1
    max_tokens: int = 2000


@lru_cache(maxsize=1)
def get_mapping_settings() -> MappingSettings:
    """
    Return cached field-mapping settings from environment variables.
    """

    return MappingSettings(
        acceptance_threshold=max(0.0, _get_float_env("MAPPING_ACCEPTANCE_THRESHOLD", 50.0)),
        fuzzy_similarity_threshold=min(
            1.0, max(0.0, _get_float_env("MAPPING_FUZZY_SIMILARITY_THRESHOLD", 0.5))
        ),
        semantic_confidence=min(100.0, max(0.0, _get_float_env("MAPPING_SEMANTIC_CONFIDENCE", 95.0))),
        fuzzy_weight=min(100.0, max(0.0, _get_float_env("MAPPING_FUZZY_WEIGHT", 70.0))),
        required_boost=max(0.0, _get_float_env("MAPPING_REQUIRED_BOOST", 10.0)),
    )


@lru_cache(maxsize=1)
def get_adaptation_settings() -> AdaptationSettings:
    """
    Return cached adaptation settings from environment variables.
    """

    return AdaptationSettings(
        new_attribute_penalty=max(0.0, _get_float_env("ADAPTATION_NEW_ATTRIBUTE_PENALTY", 5.0)),
        removed_attribute_penalty=max(0.0, _get_float_env("ADAPTATION_REMOVED_ATTRIBUTE_PENALTY", 3.0)),
        low_confidence_threshold=max(0, _get_int_env("ADAPTATION_LOW_CONFIDENCE_THRESHOLD", 60)),
        null_rate_threshold=min(1.0, max(0.0, _get_float_env("ADAPTATION_NULL_RATE_THRESHOLD", 0.3))),
    )


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return IngestionSettings(
        max_upload_bytes=max(1, _get_int_env("INGEST_MAX_UPLOAD_BYTES", 50 * 1024 * 1024)),
        log_validation_errors=_get_bool_env("INGEST_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_content_generation_settings() -> ContentGenerationSettings:
    """
    Return cached content generator settings.

    Raises RuntimeError when CONTENT_GENERATOR names an unknown generator.
    """

    generator = _get_str_env("CONTENT_GENERATOR", "rules").lower()
    if generator not in _ALLOWED_CONTENT_GENERATORS:
        raise RuntimeError(
            f"CONTENT_GENERATOR '{generator}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_CONTENT_GENERATORS)}."
        )
    return ContentGenerationSettings(
        generator=generator,
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 20.0)),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", 1)),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 2000)),
    )
