"""Prompt builders for each operation.

Pure functions: given validated input they render the exact instruction
text sent to the model, including the JSON shape the reply must follow.
Code is embedded verbatim; length limits are enforced by the caller.
"""

from __future__ import annotations

DEFAULT_CHAT_SYSTEM_INSTRUCTION = (
    "You are CodeGenius, an AI programming assistant. You're helpful, friendly, "
    "and knowledgeable about coding, software development, and technology. "
    "Provide accurate, concise answers with code examples when relevant. "
    "Be supportive and encouraging, and avoid giving incorrect or misleading information."
)

# Shared by every JSON-returning prompt
_JSON_DISCIPLINE = (
    "Return a single valid JSON object only. Do not wrap it in markdown code fences "
    "and do not add any text before or after it."
)


def _fenced(code: str, language: str) -> str:
    return f"```{language}\n{code}\n```"


def build_debug_prompt(code: str, language: str) -> str:
    """Render the debugging instruction for ``code`` written in ``language``."""
    return f"""You are an expert code debugger. Analyze this {language} code and provide debugging feedback.

Code to analyze:
{_fenced(code, language)}

Respond using exactly this JSON shape:
{{
  "issues": ["Each specific issue found, one entry per issue"],
  "explanation": "A detailed technical explanation of all issues and how to fix them",
  "correctedCode": "The complete fixed code that resolves all issues"
}}

Requirements:
1. {_JSON_DISCIPLINE}
2. List all syntax errors, logical errors, and best practice violations
3. Provide the complete corrected code, not a fragment
4. Use proper code formatting in the correctedCode field
5. Don't escape quotes in correctedCode unless JSON requires it
6. Keep the corrected code in {language}"""


def build_translation_prompt(code: str, from_language: str, to_language: str) -> str:
    """Render the translation instruction from ``from_language`` to ``to_language``."""
    return f"""As an expert programmer, translate this code from {from_language} to {to_language}.

Original code ({from_language}):
{_fenced(code, from_language)}

Respond using exactly this JSON shape:
{{
  "translatedCode": "The complete translated code",
  "explanation": "Explanation of the key differences and changes made during translation"
}}

Requirements:
1. {_JSON_DISCIPLINE}
2. Maintain the same functionality and logic
3. Use idiomatic patterns for {to_language}
4. Include any necessary imports or setup code
5. Explain any significant changes or language-specific adaptations
6. Inside JSON strings escape every double quote as \\" and every newline as \\n; \
never emit raw control characters or unescaped backslashes"""


def build_explanation_prompt(code: str, language: str) -> str:
    """Render the explanation instruction for ``code`` written in ``language``."""
    return f"""As an expert programmer, provide a detailed explanation of this {language} code.

Code to explain:
{_fenced(code, language)}

Respond using exactly this JSON shape:
{{
  "overview": "Brief overview of what the code does",
  "detailedExplanation": "Section-by-section explanation in plain text, without markdown",
  "keyComponents": ["Important functions, variables, or concepts used"]
}}

Requirements:
1. {_JSON_DISCIPLINE}
2. Explain the purpose and functionality
3. Break down complex logic
4. Highlight important programming concepts used
5. Include best practices and potential improvements
6. Use plain text in every field and avoid escaping quotes unless JSON requires it"""


def build_chat_system_instruction(custom_prompt: str | None = None) -> str:
    """Return ``custom_prompt`` verbatim when it has content, else the default persona."""
    if custom_prompt and custom_prompt.strip():
        return custom_prompt
    return DEFAULT_CHAT_SYSTEM_INSTRUCTION
