"""Shared test fixtures for the CodeGenius gateway."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from codegenius_gateway.config.schema import LimitsConfig, RetryConfig
from codegenius_gateway.core.assistant import CodeAssistant


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry policy with no backoff so tests never sleep."""
    return RetryConfig(max_attempts=3, base_delay=0.0, max_jitter=0.0)


@pytest.fixture
def mock_provider() -> MagicMock:
    """Create a mock model provider."""
    provider = MagicMock()
    provider.model_name = "test-model"
    provider.generate = AsyncMock()
    provider.chat = AsyncMock()
    return provider


@pytest.fixture
def assistant(mock_provider: MagicMock, fast_retry: RetryConfig) -> CodeAssistant:
    """Create an assistant wired to the mock provider."""
    return CodeAssistant(mock_provider, fast_retry, LimitsConfig())


@pytest.fixture
def sample_debug_payload() -> dict[str, Any]:
    return {
        "issues": ["missing braces"],
        "explanation": "The function body must be wrapped in braces.",
        "correctedCode": "function f(x) { return x + 1; }",
    }
