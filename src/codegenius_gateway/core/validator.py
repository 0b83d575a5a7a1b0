"""Result validator.

Turns sanitized model text into a guaranteed-shape result. Malformed
JSON is an expected, common case, so it is reported as a value rather
than an exception: every validator returns either ``Usable`` or
``Degraded``, both carrying a complete result object with defaults filled
in. The orchestrator decides whether a degraded result is worth another
attempt.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..models.results import DebugResult, ExplanationResult, TranslationResult
from ..utils.logging import LogEventNames
from ..utils.security import preview_for_logging

log = structlog.get_logger()

ResultT = TypeVar("ResultT")

DEFAULT_EXPLANATION = "No explanation provided"
DEFAULT_OVERVIEW = "No overview provided"
DEFAULT_DETAILED_EXPLANATION = "No detailed explanation provided"

PARSE_FAILURE_ISSUE = "Unable to analyze code due to response parsing error"
PARSE_FAILURE_EXPLANATION = (
    "The AI response could not be parsed into a structured result. Please try again."
)
TRANSLATION_FAILURE_EXPLANATION = (
    "The translation could not be parsed from the AI response; the original code is shown."
)
EXPLANATION_FAILURE_OVERVIEW = "Unable to explain code due to response parsing error"


@dataclass(frozen=True)
class Usable(Generic[ResultT]):
    """The model answered with the primary field filled in."""

    value: ResultT


@dataclass(frozen=True)
class Degraded(Generic[ResultT]):
    """Structurally valid but semantically empty result."""

    value: ResultT
    reason: str


ValidationOutcome = Usable[ResultT] | Degraded[ResultT]


# =============================================================================
# Coercion helpers
# =============================================================================


def _as_text(value: Any) -> str | None:
    """Coerce a JSON value to text; None for absent or blank values."""
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    return json.dumps(value, ensure_ascii=False)


def _as_code(value: Any) -> str | None:
    """Accept only non-blank strings as code."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]


class _LenientResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DebugResponse(_LenientResponse):
    """Debug reply as sent by the model."""

    issues: list[str] = Field(default_factory=list)
    explanation: str | None = None
    corrected_code: str | None = Field(default=None, alias="correctedCode")

    @field_validator("issues", mode="before")
    @classmethod
    def coerce_issues(cls, v: Any) -> list[str]:
        return _as_text_list(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def coerce_explanation(cls, v: Any) -> str | None:
        return _as_text(v)

    @field_validator("corrected_code", mode="before")
    @classmethod
    def coerce_code(cls, v: Any) -> str | None:
        return _as_code(v)


class TranslationResponse(_LenientResponse):
    """Translation reply as sent by the model."""

    translated_code: str | None = Field(default=None, alias="translatedCode")
    explanation: str | None = None

    @field_validator("translated_code", mode="before")
    @classmethod
    def coerce_code(cls, v: Any) -> str | None:
        return _as_code(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def coerce_explanation(cls, v: Any) -> str | None:
        return _as_text(v)


class ExplanationResponse(_LenientResponse):
    """Explanation reply as sent by the model."""

    overview: str | None = None
    detailed_explanation: str | None = Field(default=None, alias="detailedExplanation")
    key_components: list[str] = Field(default_factory=list, alias="keyComponents")

    @field_validator("overview", "detailed_explanation", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        return _as_text(v)

    @field_validator("key_components", mode="before")
    @classmethod
    def coerce_components(cls, v: Any) -> list[str]:
        return _as_text_list(v)


# =============================================================================
# Fallbacks
# =============================================================================


def debug_fallback(code: str) -> DebugResult:
    return DebugResult(
        issues=(PARSE_FAILURE_ISSUE,),
        explanation=PARSE_FAILURE_EXPLANATION,
        corrected_code=code,
    )


def translation_fallback(code: str) -> TranslationResult:
    return TranslationResult(translated_code=code, explanation=TRANSLATION_FAILURE_EXPLANATION)


def explanation_fallback() -> ExplanationResult:
    return ExplanationResult(
        overview=EXPLANATION_FAILURE_OVERVIEW,
        detailed_explanation=PARSE_FAILURE_EXPLANATION,
        key_components=(),
    )


def _parse_object(text: str) -> dict[str, Any] | None:
    """Strictly parse ``text`` as a JSON object; None on any failure."""
    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        # JSONDecodeError is a ValueError; deeply nested replies exhaust the stack
        log.warning(
            LogEventNames.RESPONSE_PARSE_FAILED,
            error=str(e),
            response_preview=preview_for_logging(text if isinstance(text, str) else ""),
        )
        return None

    if not isinstance(data, dict):
        log.warning(LogEventNames.RESPONSE_PARSE_FAILED, error="top-level value is not an object")
        return None
    return data


def _model_validate(model: type[_LenientResponse], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        log.warning(LogEventNames.RESPONSE_PARSE_FAILED, error=str(e))
        return None


# =============================================================================
# Validators
# =============================================================================


def validate_debug(sanitized: str, code: str) -> ValidationOutcome[DebugResult]:
    """Coerce a sanitized debug reply into a ``DebugResult``.

    Usable only when the model supplied an explanation.
    """
    data = _parse_object(sanitized)
    response = _model_validate(DebugResponse, data) if data is not None else None
    if response is None:
        return Degraded(debug_fallback(code), reason="unparseable_response")

    result = DebugResult(
        issues=tuple(response.issues),
        explanation=response.explanation or DEFAULT_EXPLANATION,
        corrected_code=response.corrected_code or code,
    )
    if result.explanation == DEFAULT_EXPLANATION:
        return Degraded(result, reason="missing_explanation")
    return Usable(result)


def validate_translation(sanitized: str, code: str) -> ValidationOutcome[TranslationResult]:
    """Coerce a sanitized translation reply into a ``TranslationResult``.

    Usable only when the model supplied translated code.
    """
    data = _parse_object(sanitized)
    response = _model_validate(TranslationResponse, data) if data is not None else None
    if response is None:
        return Degraded(translation_fallback(code), reason="unparseable_response")

    result = TranslationResult(
        translated_code=response.translated_code or code,
        explanation=response.explanation or DEFAULT_EXPLANATION,
    )
    if response.translated_code is None:
        return Degraded(result, reason="missing_translated_code")
    return Usable(result)


def validate_explanation(sanitized: str) -> ValidationOutcome[ExplanationResult]:
    """Coerce a sanitized explanation reply into an ``ExplanationResult``.

    Usable only when both the overview and the detailed explanation are present.
    """
    data = _parse_object(sanitized)
    response = _model_validate(ExplanationResponse, data) if data is not None else None
    if response is None:
        return Degraded(explanation_fallback(), reason="unparseable_response")

    result = ExplanationResult(
        overview=response.overview or DEFAULT_OVERVIEW,
        detailed_explanation=response.detailed_explanation or DEFAULT_DETAILED_EXPLANATION,
        key_components=tuple(response.key_components),
    )
    if result.overview == DEFAULT_OVERVIEW:
        return Degraded(result, reason="missing_overview")
    if result.detailed_explanation == DEFAULT_DETAILED_EXPLANATION:
        return Degraded(result, reason="missing_detailed_explanation")
    return Usable(result)
