"""Core gateway components.

- prompts: Prompt builders for each operation
- sanitizer: Extracts the JSON substring from raw model replies
- validator: Coerces parsed replies into typed results with defaults
- assistant: CodeAssistant orchestrating the four public operations
"""

from codegenius_gateway.core.assistant import CodeAssistant, OperationKind, create_assistant
from codegenius_gateway.core.prompts import (
    build_chat_system_instruction,
    build_debug_prompt,
    build_explanation_prompt,
    build_translation_prompt,
)
from codegenius_gateway.core.sanitizer import sanitize
from codegenius_gateway.core.validator import (
    Degraded,
    Usable,
    validate_debug,
    validate_explanation,
    validate_translation,
)

__all__ = [
    "CodeAssistant",
    "Degraded",
    "OperationKind",
    "Usable",
    "build_chat_system_instruction",
    "build_debug_prompt",
    "build_explanation_prompt",
    "build_translation_prompt",
    "create_assistant",
    "sanitize",
    "validate_debug",
    "validate_explanation",
    "validate_translation",
]
