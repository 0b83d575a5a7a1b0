"""Google Gemini model adapter.

Implements the ModelProvider protocol on top of the ``google-genai`` SDK's
async client. Provider errors are mapped onto the gateway's
``UpstreamTransientError`` hierarchy so the retry controller can act on
them; the SDK's own retries are left disabled.
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ...config.schema import GeminiConfig
from ...models.chat import ChatMessage, ChatRole
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

# Gemini names the assistant side of a conversation "model"
_ROLE_MAP = {ChatRole.USER: "user", ChatRole.ASSISTANT: "model"}


class GeminiAdapter:
    """Gemini adapter implementing the ModelProvider protocol.

    Example:
        config = GeminiConfig(api_key="...")
        adapter = GeminiAdapter(config)

        text = await adapter.generate("Explain this code ...")
    """

    def __init__(self, config: GeminiConfig, client: genai.Client | None = None) -> None:
        """Initialize the Gemini adapter.

        Args:
            config: Gemini-specific configuration.
            client: Pre-built SDK client. If None, one is created from config.
        """
        self._config = config
        self._client = client or genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=int(config.request_timeout * 1000)),
        )

    @property
    def model_name(self) -> str:
        """Return the model identifier being used."""
        return self._config.model

    @property
    def default_options(self) -> GenerationOptions:
        """Sampling options taken from configuration."""
        return GenerationOptions(
            temperature=self._config.temperature,
            top_p=self._config.top_p,
            top_k=self._config.top_k,
            max_output_tokens=self._config.max_output_tokens,
        )

    def _build_config(
        self,
        options: GenerationOptions,
        system_instruction: str | None = None,
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=options.temperature,
            top_p=options.top_p,
            top_k=options.top_k,
            max_output_tokens=options.max_output_tokens,
        )

    @staticmethod
    def _to_content(message: ChatMessage) -> types.Content:
        return types.Content(
            role=_ROLE_MAP[ChatRole(message.role)],
            parts=[types.Part(text=message.content)],
        )

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> str:
        """Run a single-shot generation.

        Raises:
            RateLimitError: If the quota is exhausted (HTTP 429).
            TimeoutError: If the request times out.
            LLMRequestError: For any other API failure or an oversized reply.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._config.model,
                contents=prompt,
                config=self._build_config(options or self.default_options),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise self._map_error(e) from e

        return self._extract_text(response)

    async def chat(
        self,
        history: Sequence[ChatMessage],
        system_instruction: str,
        message: str,
    ) -> str:
        """Replay ``history`` into a fresh chat session and send ``message``.

        Raises:
            RateLimitError: If the quota is exhausted (HTTP 429).
            TimeoutError: If the request times out.
            LLMRequestError: For any other API failure or an oversized reply.
        """
        session = self._client.aio.chats.create(
            model=self._config.model,
            config=self._build_config(self.default_options, system_instruction),
            history=[self._to_content(m) for m in history],
        )
        try:
            response = await session.send_message(message)
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise self._map_error(e) from e

        return self._extract_text(response)

    def _extract_text(self, response: types.GenerateContentResponse) -> str:
        text = response.text or ""
        if len(text) > MAX_RESPONSE_LENGTH:
            raise LLMRequestError(f"Response exceeds maximum length: {len(text)}")
        return text

    def _map_error(self, error: Exception) -> UpstreamTransientError:
        """Translate SDK and transport errors into gateway errors."""
        if isinstance(error, httpx.TimeoutException):
            log.error(LogEventNames.LLM_REQUEST_ERROR, provider="gemini", error_type="timeout")
            return TimeoutError(f"Gemini request timed out: {error}")

        if isinstance(error, genai_errors.APIError) and error.code == 429:
            log.warning(LogEventNames.RATE_LIMIT_HIT, provider="gemini", error=str(error))
            return RateLimitError(f"Gemini rate limit exceeded: {error}")

        log.error(LogEventNames.LLM_REQUEST_ERROR, provider="gemini", error=str(error))
        return LLMRequestError(f"Gemini API error: {error}")
