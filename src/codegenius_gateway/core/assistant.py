"""Operation orchestrators.

``CodeAssistant`` exposes the four public operations. Each one validates
its input, builds a prompt, calls the injected model provider, sanitizes
and validates the reply, and retries through ``retry_async``:

    Idle -> Building Prompt -> Invoking Model -> Sanitizing -> Validating
         -> Usable: Done | Degraded: retry or return degraded result
         -> transport failure on every attempt: ExhaustedRetriesError

Code operations degrade gracefully when the reply cannot be salvaged;
chat has no safe fallback reply and raises instead.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeVar, cast

import structlog

from codegenius_gateway.config.schema import LimitsConfig, RetryConfig
from codegenius_gateway.core.prompts import (
    build_chat_system_instruction,
    build_debug_prompt,
    build_explanation_prompt,
    build_translation_prompt,
)
from codegenius_gateway.core.sanitizer import sanitize
from codegenius_gateway.core.validator import (
    Degraded,
    ValidationOutcome,
    validate_debug,
    validate_explanation,
    validate_translation,
)
from codegenius_gateway.models.chat import ChatMessage, ChatRole
from codegenius_gateway.models.requests import CodeRequest, TranslationRequest
from codegenius_gateway.models.results import DebugResult, ExplanationResult, TranslationResult
from codegenius_gateway.utils.async_helpers import (
    ExhaustedRetriesError,
    InvalidInputError,
    LLMRequestError,
    UpstreamTransientError,
    retry_async,
)
from codegenius_gateway.utils.logging import LogEventNames
from codegenius_gateway.utils.security import default_redactor

if TYPE_CHECKING:
    from codegenius_gateway.config.schema import GatewayConfig
    from codegenius_gateway.interfaces.llm import ModelProvider

log = structlog.get_logger()

ResultT = TypeVar("ResultT")

IDENTITY_TRANSLATION_EXPLANATION = (
    "Source and target languages are the same; no translation was needed."
)


class OperationKind(StrEnum):
    """Operation names used in logs and error messages."""

    DEBUG = "debug"
    TRANSLATE = "translate"
    EXPLAIN = "explain"
    CHAT = "chat"


@dataclass
class _Attempts:
    """Per-call attempt counter and the most recent degraded outcome."""

    count: int = 0
    last_degraded: Degraded[Any] | None = None


class CodeAssistant:
    """Stateless gateway between the web layer and a model provider.

    Instances hold only configuration and the provider; concurrent calls
    share nothing else.

    Example:
        assistant = CodeAssistant(GeminiAdapter(config.llm.gemini), config.retry)
        result = await assistant.analyze_code("def f(:", "python")
        print(result.issues)
    """

    def __init__(
        self,
        provider: ModelProvider,
        retry: RetryConfig | None = None,
        limits: LimitsConfig | None = None,
    ) -> None:
        """Initialize the assistant.

        Args:
            provider: Model provider adapter
            retry: Retry policy (defaults to RetryConfig())
            limits: Input limits (defaults to LimitsConfig())
        """
        self._provider = provider
        self._retry = retry or RetryConfig()
        self._limits = limits or LimitsConfig()

    @property
    def model_name(self) -> str:
        """Return the model identifier of the underlying provider."""
        return self._provider.model_name

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def analyze_code(self, code: str, language: str) -> DebugResult:
        """Return debugging feedback for ``code``.

        Raises:
            InvalidInputError: If code or language is missing or code is too long.
            ExhaustedRetriesError: If the provider failed on every attempt.
        """
        request = CodeRequest(code=self._check_code(code), language=self._check_language(language))
        prompt = build_debug_prompt(request.code, request.language)
        return await self._run_code_operation(
            OperationKind.DEBUG,
            prompt,
            lambda text: validate_debug(text, request.code),
        )

    async def translate_code(
        self,
        code: str,
        from_language: str,
        to_language: str,
    ) -> TranslationResult:
        """Translate ``code`` between languages.

        Equal source and target languages return the code unchanged without
        calling the provider.

        Raises:
            InvalidInputError: If code or a language is missing or code is too long.
            ExhaustedRetriesError: If the provider failed on every attempt.
        """
        request = TranslationRequest(
            code=self._check_code(code),
            from_language=self._check_language(from_language),
            to_language=self._check_language(to_language),
        )
        if request.is_identity:
            log.info(LogEventNames.TRANSLATION_SHORT_CIRCUITED, language=request.to_language)
            return TranslationResult(
                translated_code=request.code,
                explanation=IDENTITY_TRANSLATION_EXPLANATION,
            )

        prompt = build_translation_prompt(request.code, request.from_language, request.to_language)
        return await self._run_code_operation(
            OperationKind.TRANSLATE,
            prompt,
            lambda text: validate_translation(text, request.code),
        )

    async def explain_code(self, code: str, language: str) -> ExplanationResult:
        """Return a natural-language explanation of ``code``.

        Raises:
            InvalidInputError: If code or language is missing or code is too long.
            ExhaustedRetriesError: If the provider failed on every attempt.
        """
        request = CodeRequest(code=self._check_code(code), language=self._check_language(language))
        prompt = build_explanation_prompt(request.code, request.language)
        return await self._run_code_operation(OperationKind.EXPLAIN, prompt, validate_explanation)

    async def chat_with_model(
        self,
        messages: Sequence[ChatMessage],
        system_prompt: str | None = None,
    ) -> ChatMessage:
        """Answer the final user turn of a transcript.

        All but the last message become session history; the last one is
        sent as the new turn.

        Raises:
            InvalidInputError: If the transcript is empty, malformed, or does
                not end with a user turn.
            ExhaustedRetriesError: If the provider failed on every attempt.
        """
        transcript = self._check_transcript(messages)
        history, final = transcript[:-1], transcript[-1]
        system_instruction = build_chat_system_instruction(system_prompt)
        attempts = _Attempts()

        async def attempt() -> str:
            attempts.count += 1
            reply = await self._provider.chat(history, system_instruction, final.content)
            if not reply or not reply.strip():
                raise LLMRequestError("Empty response from model")
            return reply

        start = time.perf_counter()
        log.info(LogEventNames.OPERATION_START, operation=OperationKind.CHAT, turns=len(transcript))
        reply = await self._with_retries(OperationKind.CHAT, attempt, attempts)
        log.info(
            LogEventNames.OPERATION_COMPLETE,
            operation=OperationKind.CHAT,
            attempts=attempts.count,
            duration_ms=round((time.perf_counter() - start) * 1000),
        )
        return ChatMessage(role=ChatRole.ASSISTANT, content=reply)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _run_code_operation(
        self,
        kind: OperationKind,
        prompt: str,
        validate: Callable[[str], ValidationOutcome[ResultT]],
    ) -> ResultT:
        """Prompt -> provider -> sanitize -> validate, under the retry policy."""
        attempts = _Attempts()

        async def attempt() -> ValidationOutcome[ResultT]:
            attempts.count += 1
            log.debug(LogEventNames.LLM_REQUEST_START, operation=kind, attempt=attempts.count)
            raw = await self._provider.generate(prompt)
            log.debug(
                LogEventNames.LLM_REQUEST_COMPLETE,
                operation=kind,
                attempt=attempts.count,
                response_length=len(raw or ""),
            )
            outcome = validate(sanitize(raw))
            if isinstance(outcome, Degraded):
                attempts.last_degraded = outcome
                log.warning(
                    LogEventNames.RESULT_DEGRADED,
                    operation=kind,
                    attempt=attempts.count,
                    reason=outcome.reason,
                )
            return outcome

        start = time.perf_counter()
        log.info(LogEventNames.OPERATION_START, operation=kind)
        outcome = await self._with_retries(kind, attempt, attempts, self._should_retry_outcome)
        log.info(
            LogEventNames.OPERATION_COMPLETE,
            operation=kind,
            attempts=attempts.count,
            degraded=isinstance(outcome, Degraded),
            duration_ms=round((time.perf_counter() - start) * 1000),
        )
        return outcome.value

    async def _with_retries(
        self,
        kind: OperationKind,
        operation: Callable[[], Awaitable[ResultT]],
        attempts: _Attempts,
        retry_on_result: Callable[[ResultT], bool] | None = None,
    ) -> ResultT:
        """Run ``operation`` under the configured retry policy.

        A transport failure on the final attempt falls back to the last
        degraded outcome when an earlier attempt produced one. Otherwise
        every attempt failed in transport, and the final upstream error is
        wrapped in ``ExhaustedRetriesError``.
        """
        try:
            return await retry_async(
                operation,
                max_retries=self._retry.max_attempts,
                base_delay=self._retry.base_delay,
                max_jitter=self._retry.max_jitter,
                max_delay=self._retry.max_delay,
                retry_on=(UpstreamTransientError,),
                retry_on_result=retry_on_result,
            )
        except UpstreamTransientError as e:
            if attempts.last_degraded is not None:
                log.warning(
                    LogEventNames.RESULT_DEGRADED,
                    operation=kind,
                    attempts=attempts.count,
                    reason="upstream_error_after_degraded",
                    error_type=type(e).__name__,
                )
                return cast(ResultT, attempts.last_degraded)

            log.error(
                LogEventNames.LLM_RETRIES_EXHAUSTED,
                operation=kind,
                attempts=attempts.count,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ExhaustedRetriesError(
                f"{kind} failed after {attempts.count} attempts: {e}",
                last_error=e,
                attempts=attempts.count,
            ) from e

    def _should_retry_outcome(self, outcome: ValidationOutcome[Any]) -> bool:
        return self._retry.retry_degraded and isinstance(outcome, Degraded)

    # -------------------------------------------------------------------------
    # Input checks
    # -------------------------------------------------------------------------

    def _check_code(self, code: Any) -> str:
        if not isinstance(code, str) or not code.strip():
            log.info(LogEventNames.INPUT_REJECTED, reason="empty_code")
            raise InvalidInputError("Code is required")
        if len(code.strip()) > self._limits.max_code_length:
            log.info(LogEventNames.INPUT_REJECTED, reason="code_too_long", length=len(code))
            raise InvalidInputError(
                f"Code exceeds maximum length of {self._limits.max_code_length} characters"
            )
        secret_kinds = default_redactor().find_kinds(code)
        if secret_kinds:
            # Still forwarded; only logs are redacted
            log.warning(LogEventNames.INPUT_CONTAINS_SECRETS, kinds=secret_kinds)
        return code

    def _check_language(self, language: Any) -> str:
        if not isinstance(language, str) or not language.strip():
            log.info(LogEventNames.INPUT_REJECTED, reason="empty_language")
            raise InvalidInputError("Language is required")
        return language.strip()

    def _check_transcript(self, messages: Sequence[ChatMessage]) -> list[ChatMessage]:
        if not messages:
            log.info(LogEventNames.INPUT_REJECTED, reason="empty_transcript")
            raise InvalidInputError("At least one message is required")

        transcript = list(messages)
        for message in transcript:
            if not isinstance(message, ChatMessage) or not isinstance(message.content, str):
                raise InvalidInputError(
                    "Invalid message format. Each message needs a role and string content"
                )
            if message.role not in (ChatRole.USER, ChatRole.ASSISTANT):
                raise InvalidInputError(f"Unsupported message role: {message.role}")

        final = transcript[-1]
        if not final.is_user:
            log.info(LogEventNames.INPUT_REJECTED, reason="last_turn_not_user")
            raise InvalidInputError("The last message must come from the user")
        if not final.content.strip():
            raise InvalidInputError("The last message must not be empty")
        return transcript


def create_assistant(config: GatewayConfig) -> CodeAssistant:
    """Factory function to create a CodeAssistant with its provider adapter.

    Raises:
        ValueError: If the provider is unsupported or its config is missing
    """
    return CodeAssistant(_create_provider(config), config.retry, config.limits)


def _create_provider(config: GatewayConfig) -> ModelProvider:
    provider = config.llm.provider

    if provider == "gemini":
        if not config.llm.gemini:
            raise ValueError("Gemini configuration required when provider is 'gemini'")
        # Import here to avoid loading unnecessary SDKs
        from codegenius_gateway.adapters.llm.gemini import GeminiAdapter

        return GeminiAdapter(config.llm.gemini)

    if provider == "anthropic":
        if not config.llm.anthropic:
            raise ValueError("Anthropic configuration required when provider is 'anthropic'")
        from codegenius_gateway.adapters.llm.anthropic import AnthropicAdapter

        return AnthropicAdapter(config.llm.anthropic)

    raise ValueError(f"Unsupported LLM provider: {provider}")
