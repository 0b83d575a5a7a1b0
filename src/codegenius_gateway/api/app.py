"""FastAPI application exposing the gateway operations over HTTP.

Routes:
    POST /api/debug      {code, language}                -> DebugResult
    POST /api/translate  {code, fromLanguage, toLanguage} -> TranslationResult
    POST /api/explain    {code, language}                -> ExplanationResult
    POST /api/chat       {messages, systemPrompt?}       -> ChatMessage
    GET  /health

Error mapping: invalid input -> 400, upstream failure -> 500. Degraded
results are ordinary 200 responses so the client always has content to show.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .._version import __version__
from ..config.schema import LimitsConfig
from ..core.assistant import CodeAssistant
from ..utils.async_helpers import (
    ExhaustedRetriesError,
    GatewayError,
    InvalidInputError,
    UpstreamTransientError,
)
from ..utils.logging import LogEventNames, bind_context, unbind_context
from ..utils.security import validate_language
from .schemas import ChatBody, CodeBody, ErrorBody, TranslateBody

log = structlog.get_logger()

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorBody, "description": "Invalid input"},
    500: {"model": ErrorBody, "description": "Model provider failure"},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(message=message).model_dump())


def create_app(assistant: CodeAssistant, limits: LimitsConfig | None = None) -> FastAPI:
    """Build the FastAPI application around an assistant.

    Args:
        assistant: Gateway used by every route
        limits: Language allow-list and code length limits

    Returns:
        Configured FastAPI application
    """
    limits = limits or LimitsConfig()
    app = FastAPI(title="CodeGenius Gateway", version=__version__)

    def check_language(*languages: str) -> None:
        for language in languages:
            if not validate_language(language, limits.allowed_languages):
                raise InvalidInputError(f"Unsupported language: {language}")

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        bind_context(request_id=uuid.uuid4().hex[:12])
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                LogEventNames.HTTP_REQUEST,
                method=request.method,
                path=request.url.path,
                status=500,
                duration_ms=round((time.perf_counter() - start) * 1000),
                error_type=type(e).__name__,
            )
            raise
        else:
            log.info(
                LogEventNames.HTTP_REQUEST,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000),
            )
            return response
        finally:
            unbind_context("request_id")

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
        log.info(LogEventNames.HTTP_REQUEST_REJECTED, path=request.url.path, fields=fields)
        return _error(400, f"Invalid request body: {fields}" if fields else "Invalid request body")

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        log.info(LogEventNames.HTTP_REQUEST_REJECTED, path=request.url.path, reason=str(exc))
        return _error(400, str(exc))

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        cause = exc.last_error if isinstance(exc, ExhaustedRetriesError) else exc
        log.error(
            LogEventNames.HTTP_REQUEST_FAILED,
            path=request.url.path,
            error_type=type(cause).__name__,
            error=str(exc),
            upstream=isinstance(cause, UpstreamTransientError),
        )
        return _error(500, str(exc) or "Request failed")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "model": assistant.model_name}

    @app.post("/api/debug", responses=ERROR_RESPONSES)
    async def debug(body: CodeBody) -> dict[str, Any]:
        check_language(body.language)
        result = await assistant.analyze_code(body.code, body.language)
        return result.to_dict()

    @app.post("/api/translate", responses=ERROR_RESPONSES)
    async def translate(body: TranslateBody) -> dict[str, Any]:
        check_language(body.from_language, body.to_language)
        result = await assistant.translate_code(body.code, body.from_language, body.to_language)
        return result.to_dict()

    @app.post("/api/explain", responses=ERROR_RESPONSES)
    async def explain(body: CodeBody) -> dict[str, Any]:
        check_language(body.language)
        result = await assistant.explain_code(body.code, body.language)
        return result.to_dict()

    @app.post("/api/chat", responses=ERROR_RESPONSES)
    async def chat(body: ChatBody) -> dict[str, str]:
        messages = [m.to_message() for m in body.messages]
        reply = await assistant.chat_with_model(messages, body.system_prompt)
        return reply.to_dict()

    return app
