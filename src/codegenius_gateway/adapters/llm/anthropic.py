"""Anthropic Claude model adapter.

Talks to the async Messages API. The SDK client is built with
``max_retries=0`` so that ``retry_async`` is the only place attempts are
counted; SDK failures are mapped onto ``UpstreamTransientError`` subclasses.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import anthropic
import structlog

from ...config.schema import AnthropicConfig
from ...models.chat import ChatMessage
from ...models.requests import GenerationOptions
from ...utils.async_helpers import (
    LLMRequestError,
    RateLimitError,
    TimeoutError,
    UpstreamTransientError,
)
from ...utils.logging import LogEventNames

log = structlog.get_logger()

# Maximum response length in characters
MAX_RESPONSE_LENGTH = 50000


class AnthropicAdapter:
    """ModelProvider backed by Claude.

    ``generate`` sends the prompt as a single user turn. ``chat`` replays the
    transcript as alternating messages with the system instruction passed
    separately, which is how the Messages API expects it.

    Example:
        adapter = AnthropicAdapter(AnthropicConfig(api_key="sk-ant-..."))
        reply = await adapter.chat([], "You are helpful.", "What is a closure?")
    """

    def __init__(
        self,
        config: AnthropicConfig,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._config = config
        self._client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.request_timeout,
            max_retries=0,
        )

    @property
    def model_name(self) -> str:
        return self._config.model

    @property
    def default_options(self) -> GenerationOptions:
        return GenerationOptions(
            temperature=self._config.temperature,
            max_output_tokens=self._config.max_tokens,
        )

    def _sampling_kwargs(self, options: GenerationOptions) -> dict[str, Any]:
        # max_tokens is mandatory for the Messages API; the rest are optional
        kwargs: dict[str, Any] = {"max_tokens": options.max_output_tokens or self._config.max_tokens}
        for name in ("temperature", "top_p", "top_k"):
            value = getattr(options, name)
            if value is not None:
                kwargs[name] = value
        return kwargs

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> str:
        """Return the model's reply to a single ``prompt``.

        Raises:
            RateLimitError: HTTP 429 from the API.
            TimeoutError: The request exceeded ``request_timeout``.
            LLMRequestError: Any other API failure, or a reply over
                ``MAX_RESPONSE_LENGTH`` characters.
        """
        return await self._send(
            messages=[{"role": "user", "content": prompt}],
            **self._sampling_kwargs(options or self.default_options),
        )

    async def chat(
        self,
        history: Sequence[ChatMessage],
        system_instruction: str,
        message: str,
    ) -> str:
        """Return the reply to ``message`` given the earlier turns in ``history``.

        Raises the same errors as ``generate``.
        """
        messages = [{"role": str(turn.role), "content": turn.content} for turn in history]
        messages.append({"role": "user", "content": message})
        return await self._send(
            messages=messages,
            system=system_instruction,
            **self._sampling_kwargs(self.default_options),
        )

    async def _send(self, **kwargs: Any) -> str:
        try:
            response = await self._client.messages.create(model=self._config.model, **kwargs)
        except anthropic.APIError as e:
            raise self._map_error(e) from e
        return self._extract_text(response)

    def _extract_text(self, response: anthropic.types.Message) -> str:
        # Tool-use and thinking blocks carry no text
        text = "".join(block.text for block in response.content if hasattr(block, "text"))
        if len(text) > MAX_RESPONSE_LENGTH:
            raise LLMRequestError(f"Response exceeds maximum length: {len(text)}")
        return text

    def _map_error(self, error: anthropic.APIError) -> UpstreamTransientError:
        """Translate SDK errors into gateway errors."""
        if isinstance(error, anthropic.RateLimitError):
            retry_after = _retry_after_seconds(error.response)
            log.warning(
                LogEventNames.RATE_LIMIT_HIT,
                provider="anthropic",
                retry_after=retry_after,
                error=str(error),
            )
            return RateLimitError(
                f"Anthropic rate limit exceeded: {error}", retry_after=retry_after
            )

        if isinstance(error, anthropic.APITimeoutError):
            log.error(LogEventNames.LLM_REQUEST_ERROR, provider="anthropic", error_type="timeout")
            return TimeoutError(f"Anthropic request timed out: {error}")

        log.error(LogEventNames.LLM_REQUEST_ERROR, provider="anthropic", error=str(error))
        return LLMRequestError(f"Anthropic API error: {error}")


def _retry_after_seconds(response: Any) -> int | None:
    header = response.headers.get("retry-after")
    if header is None or not header.isdigit():
        return None
    return int(header)
