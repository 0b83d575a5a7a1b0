"""Data models for operation results.

Results are immutable and serialize to the camelCase shape the web
client consumes.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DebugResult:
    """Debugging feedback for a code submission."""

    issues: tuple[str, ...]
    explanation: str
    corrected_code: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": list(self.issues),
            "explanation": self.explanation,
            "correctedCode": self.corrected_code,
        }


@dataclass(frozen=True)
class TranslationResult:
    """Code translated into another language."""

    translated_code: str
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "translatedCode": self.translated_code,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ExplanationResult:
    """Natural-language explanation of a code submission."""

    overview: str
    detailed_explanation: str
    key_components: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "overview": self.overview,
            "detailedExplanation": self.detailed_explanation,
            "keyComponents": list(self.key_components),
        }
