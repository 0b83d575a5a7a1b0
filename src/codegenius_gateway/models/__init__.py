"""Data models and transfer objects."""

from .chat import ChatMessage, ChatRole
from .requests import CodeRequest, GenerationOptions, TranslationRequest
from .results import DebugResult, ExplanationResult, TranslationResult

__all__ = [
    # Request models
    "CodeRequest",
    "TranslationRequest",
    "GenerationOptions",
    # Result models
    "DebugResult",
    "TranslationResult",
    "ExplanationResult",
    # Chat models
    "ChatRole",
    "ChatMessage",
]
