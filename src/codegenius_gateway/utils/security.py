"""Secret handling and input checks.

Code pasted into the gateway regularly carries live credentials (API keys
in config snippets, connection strings, private keys). None of it may leak
into logs, so every log event is passed through ``SecretRedactor``. The
redactor fails closed: a broken pattern raises ``RedactionError`` instead
of letting text through unredacted.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, NamedTuple

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """A secret pattern could not be compiled or applied."""


# Language identifiers are short lowercase tokens such as "cpp" or "c#"
LANGUAGE_PATTERN = re.compile(r"^[a-z][a-z0-9+#._-]{0,31}$")

# Everything below 0x20 except tab/newline/CR, plus DEL
CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
ANSI_ESCAPES = re.compile(r"\x1b\[[0-9;]*m")

SENSITIVE_KEY_PARTS = ("key", "token", "secret", "password", "credential")


class SecretPattern(NamedTuple):
    """A named regular expression for one kind of secret."""

    kind: str
    regex: str


# Ordered so that specific formats are replaced before the generic rule
DEFAULT_SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    # Model providers
    SecretPattern("google_api_key", r"AIza[0-9A-Za-z\-_]{35}"),
    SecretPattern("google_oauth_token", r"ya29\.[0-9A-Za-z\-_]+"),
    SecretPattern("google_oauth_secret", r"GOCSPX-[a-zA-Z0-9_-]+"),
    SecretPattern("anthropic_api_key", r"sk-ant-[\w-]{40,}"),
    SecretPattern("openai_project_key", r"sk-proj-[a-zA-Z0-9]{20,}"),
    SecretPattern("openai_api_key", r"sk-[a-zA-Z0-9]{48}"),
    # Secrets common in pasted application code
    SecretPattern("github_token", r"gh[pousr]_[a-zA-Z0-9]{36}"),
    SecretPattern("github_fine_grained_token", r"github_pat_[a-zA-Z0-9_]{22,}"),
    SecretPattern("aws_access_key_id", r"AKIA[0-9A-Z]{16}"),
    SecretPattern("slack_token", r"xox[baprs]-[\w-]+"),
    SecretPattern("stripe_secret_key", r"sk_live_[a-zA-Z0-9]{24,}"),
    SecretPattern("jwt", r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*"),
    SecretPattern(
        "connection_string",
        r"(?i)\b(?:postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^:\s]+:[^@\s]+@\S+",
    ),
    SecretPattern(
        "private_key",
        r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
    ),
    SecretPattern(
        "assigned_secret",
        r"(?i)(?:api[_-]?key|secret|token|password|passwd|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
    ),
)


class SecretRedactor:
    """Finds and replaces secrets in free text.

    Example:
        redactor = SecretRedactor()
        redactor.redact('API_KEY = "AIza..."')   # 'API_KEY = "[REDACTED]"'
        redactor.find_kinds(code)               # ['google_api_key']
    """

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        extra_patterns: Sequence[SecretPattern | tuple[str, str]] = (),
    ) -> None:
        """Compile the default patterns plus ``extra_patterns``.

        Raises:
            RedactionError: If a pattern is not a valid regular expression.
        """
        self.placeholder = placeholder
        self._compiled: list[tuple[str, re.Pattern[str]]] = []

        for kind, regex in (*DEFAULT_SECRET_PATTERNS, *extra_patterns):
            try:
                self._compiled.append((kind, re.compile(regex)))
            except re.error as e:
                log.error("secret_pattern_invalid", kind=kind, error=str(e))
                raise RedactionError(f"Invalid secret pattern for {kind!r}: {e}") from e

    @property
    def kinds(self) -> list[str]:
        """Names of all active patterns, in application order."""
        return [kind for kind, _ in self._compiled]

    def redact(self, text: str) -> str:
        """Replace every secret in ``text`` with the placeholder.

        Raises:
            RedactionError: If a pattern fails while being applied.
        """
        if not text:
            return text

        try:
            for _, pattern in self._compiled:
                text = pattern.sub(self.placeholder, text)
        except (re.error, RecursionError) as e:
            raise RedactionError(f"Redaction failed: {e}") from e
        return text

    def find_kinds(self, text: str) -> list[str]:
        """Return the kinds of secret present in ``text`` (never the values)."""
        if not text:
            return []
        return [kind for kind, pattern in self._compiled if pattern.search(text)]

    def has_secrets(self, text: str) -> bool:
        return bool(self.find_kinds(text))


def normalize_language(language: str) -> str:
    """Lowercase and trim a language identifier."""
    return language.strip().lower()


def validate_language(language: str, allowed: Iterable[str]) -> bool:
    """Check a client-supplied language identifier against the allow-list.

    Args:
        language: Language identifier from the request.
        allowed: Configured allow-list (already normalized).

    Returns:
        True if the identifier is well-formed and allow-listed.
    """
    if not isinstance(language, str) or not language.strip():
        return False

    normalized = normalize_language(language)
    return bool(LANGUAGE_PATTERN.match(normalized)) and normalized in set(allowed)


def preview_for_logging(text: str, limit: int = 200) -> str:
    """Short, log-safe excerpt of untrusted text.

    Removes ANSI escapes and control characters and truncates to ``limit``.
    Secrets are removed afterwards by the logging processor chain.
    """
    if not text:
        return text

    text = CONTROL_CHARACTERS.sub("", ANSI_ESCAPES.sub("", text))
    return text if len(text) <= limit else text[:limit] + "..."


def mask_config_value(key: str, value: str) -> str:
    """Mask a config value whose key looks sensitive, keeping four chars at each end."""
    if not any(part in key.lower() for part in SENSITIVE_KEY_PARTS):
        return value
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


@lru_cache(maxsize=1)
def default_redactor() -> SecretRedactor:
    """Process-wide redactor with the default patterns."""
    return SecretRedactor()
