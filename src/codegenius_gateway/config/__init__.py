"""Configuration loading and validation."""

from .loader import find_config_path, load_config, substitute_env_vars
from .schema import (
    AnthropicConfig,
    GatewayConfig,
    GeminiConfig,
    LimitsConfig,
    LLMConfig,
    LoggingConfig,
    RetryConfig,
    ServerConfig,
)

__all__ = [
    # Loader
    "find_config_path",
    "load_config",
    "substitute_env_vars",
    # Root config
    "GatewayConfig",
    # Sections
    "LLMConfig",
    "LimitsConfig",
    "LoggingConfig",
    "RetryConfig",
    "ServerConfig",
    # Provider-specific configs
    "AnthropicConfig",
    "GeminiConfig",
]
