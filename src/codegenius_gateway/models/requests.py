"""Data models for gateway requests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CodeRequest:
    """Code submitted for debugging or explanation."""

    code: str
    language: str


@dataclass(frozen=True)
class TranslationRequest:
    """Code submitted for translation between two languages."""

    code: str
    from_language: str
    to_language: str

    @property
    def is_identity(self) -> bool:
        """True when source and target language are the same."""
        return self.from_language.strip().lower() == self.to_language.strip().lower()


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options for a single-shot generation call."""

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
