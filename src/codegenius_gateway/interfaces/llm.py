"""Abstract interface for model provider integrations."""

from collections.abc import Sequence
from typing import Protocol

from ..models.chat import ChatMessage
from ..models.requests import GenerationOptions


class ModelProvider(Protocol):
    """Abstract interface for generative text providers.

    This protocol defines the contract that all provider adapters
    (Gemini, Anthropic, ...) must implement. Adapters return best-effort
    text with no schema guarantee; structure is enforced downstream.
    """

    @property
    def model_name(self) -> str:
        """Return the model identifier being used."""
        ...

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> str:
        """
        Run a single-shot generation.

        Args:
            prompt: Complete instruction text
            options: Sampling options; None uses the adapter's configured defaults

        Returns:
            Raw response text

        Raises:
            RateLimitError: If rate limit exceeded
            TimeoutError: If request times out
            LLMRequestError: For any other provider failure
        """
        ...

    async def chat(
        self,
        history: Sequence[ChatMessage],
        system_instruction: str,
        message: str,
    ) -> str:
        """
        Open a chat session seeded with history and send one new user turn.

        Args:
            history: Prior turns, oldest first, excluding the new message
            system_instruction: Persona / behavior instruction for the session
            message: The user turn being answered

        Returns:
            The assistant reply text

        Raises:
            RateLimitError: If rate limit exceeded
            TimeoutError: If request times out
            LLMRequestError: For any other provider failure
        """
        ...
