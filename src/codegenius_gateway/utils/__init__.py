"""Utility functions and helpers.

- async_helpers: Exception hierarchy, async retry with backoff
- logging: Structured logging with secret sanitization
- security: Secret redaction, language allow-list checks
"""

from codegenius_gateway.utils.async_helpers import (
    ExhaustedRetriesError,
    GatewayError,
    InvalidInputError,
    LLMRequestError,
    RateLimitError,
    TimeoutError,
    UpstreamTransientError,
    retry_async,
)
from codegenius_gateway.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from codegenius_gateway.utils.security import (
    RedactionError,
    SecretPattern,
    SecretRedactor,
    SecurityError,
    validate_language,
)

__all__ = [
    # Errors
    "ExhaustedRetriesError",
    "GatewayError",
    "InvalidInputError",
    "LLMRequestError",
    "RateLimitError",
    "TimeoutError",
    "UpstreamTransientError",
    # Retry
    "retry_async",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Security
    "RedactionError",
    "SecretPattern",
    "SecretRedactor",
    "SecurityError",
    "validate_language",
]
