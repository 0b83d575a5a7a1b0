"""Structured logging for the gateway.

structlog renders every event (JSON for aggregation, console for local
runs) through the stdlib ``logging`` bridge so uvicorn and the provider
SDKs end up in the same stream. Submitted code and model replies are
untrusted text that may carry credentials, so every event passes through
``secret_sanitizer`` before it is rendered.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.typing import Processor, WrappedLogger

from codegenius_gateway.utils.security import default_redactor

SERVICE_NAME = "codegenius-gateway"

# Third-party loggers that are routed through our handlers instead of their own
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "httpx", "anthropic", "google_genai")

# Requests are already logged by the HTTP middleware
_QUIET_LOGGERS = ("uvicorn.access",)


class LogFormat(StrEnum):
    """Renderer used for log output."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Accepted log level names."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def sanitize_log_value(value: Any) -> Any:
    """Return ``value`` with secrets redacted from every string inside it.

    Dicts, lists and tuples are walked recursively and keep their type;
    anything else is returned untouched.
    """
    if isinstance(value, str):
        return default_redactor().redact(value)
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor: redact secrets from the whole event."""
    return cast(MutableMapping[str, Any], sanitize_log_value(event_dict))


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor: stamp the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    try:
        from codegenius_gateway._version import __version__
    except (ImportError, RuntimeError):
        return event_dict

    event_dict.setdefault("version", __version__)
    return event_dict


def _processors(log_format: LogFormat) -> list[Processor]:
    renderer: Processor
    if log_format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(), exception_formatter=structlog.dev.plain_traceback
        )

    return [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # Runs after exception formatting so tracebacks are redacted too
        secret_sanitizer,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _handlers(level: int, file_path: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(file_path))
        except OSError as e:
            # Console logging still works without the file
            logging.getLogger(__name__).warning("cannot open log file %s: %s", file_path, e)

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; the CLI calls it with flag values first
    and again once the config file has been read.

    Args:
        level: Minimum level, case-insensitive.
        log_format: ``json`` or ``console``, case-insensitive.
        file_path: Extra log file, used only when ``file_enabled`` is set.
        file_enabled: Whether to also write to ``file_path``.
    """
    level = LogLevel(str(level).upper())
    log_format = LogFormat(str(log_format).lower())
    numeric_level: int = getattr(logging, level.value)

    structlog.configure(
        processors=_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_file = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_handlers(numeric_level, log_file),
        force=True,
    )

    for name in _ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers.clear()
        routed.propagate = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> WrappedLogger:
    """Return a structlog logger, optionally named."""
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every log event of the current task.

    Example:
        bind_context(request_id="3f2a9c")
        log.info("operation_start", operation="debug")  # carries request_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogEventNames:
    """Event names shared across modules."""

    # Service lifecycle
    GATEWAY_STARTING = "gateway_starting"
    GATEWAY_STOPPED = "gateway_stopped"
    GATEWAY_INTERRUPTED = "gateway_interrupted"
    GATEWAY_FATAL_ERROR = "gateway_fatal_error"
    DRY_RUN_COMPLETE = "dry_run_complete"

    # Configuration
    CONFIGURATION_LOADED = "configuration_loaded"
    CONFIGURATION_NOT_FOUND = "configuration_not_found"
    CONFIGURATION_INVALID = "configuration_invalid"

    # HTTP layer
    HTTP_REQUEST = "http_request"
    HTTP_REQUEST_REJECTED = "http_request_rejected"
    HTTP_REQUEST_FAILED = "http_request_failed"

    # Operations
    OPERATION_START = "operation_start"
    OPERATION_COMPLETE = "operation_complete"
    INPUT_REJECTED = "input_rejected"
    INPUT_CONTAINS_SECRETS = "input_contains_secrets"
    TRANSLATION_SHORT_CIRCUITED = "translation_short_circuited"

    # Model calls
    LLM_REQUEST_START = "llm_request_start"
    LLM_REQUEST_COMPLETE = "llm_request_complete"
    LLM_REQUEST_ERROR = "llm_request_error"
    LLM_RETRIES_EXHAUSTED = "llm_retries_exhausted"
    RATE_LIMIT_HIT = "rate_limit_hit"

    # Response handling
    RESPONSE_PARSE_FAILED = "response_parse_failed"
    RESULT_DEGRADED = "result_degraded"
