"""Protocol definitions for pluggable adapters."""

from .llm import ModelProvider

__all__ = ["ModelProvider"]
