"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_LANGUAGES = [
    "javascript",
    "typescript",
    "python",
    "java",
    "cpp",
    "c",
    "csharp",
    "go",
    "rust",
    "ruby",
    "php",
    "kotlin",
    "swift",
]


class GeminiConfig(BaseModel):
    """Google Gemini configuration."""

    api_key: str
    model: str = "gemini-2.0-flash"
    temperature: float = Field(0.2, ge=0.0, le=2.0)
    top_p: float = Field(0.8, ge=0.0, le=1.0)
    top_k: int = Field(40, ge=1)
    max_output_tokens: int = Field(8192, ge=1)
    request_timeout: float = Field(60.0, gt=0, description="Transport timeout in seconds")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject blank API keys."""
        if not v.strip():
            raise ValueError("Gemini API key must not be empty")
        return v


class AnthropicConfig(BaseModel):
    """Anthropic-specific configuration."""

    api_key: str
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = Field(4096, ge=1)
    temperature: float = Field(0.3, ge=0.0, le=1.0)
    request_timeout: float = Field(60.0, gt=0, description="Transport timeout in seconds")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate Anthropic API key format."""
        if not v.startswith("sk-ant-"):
            raise ValueError("Anthropic API key must start with sk-ant-")
        return v


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: Literal["gemini", "anthropic"] = "gemini"
    gemini: GeminiConfig | None = None
    anthropic: AnthropicConfig | None = None


class RetryConfig(BaseModel):
    """Retry configuration for model calls."""

    max_attempts: int = Field(3, ge=1, le=10)
    base_delay: float = Field(1.0, ge=0.0, le=10.0, description="Backoff base in seconds")
    max_jitter: float = Field(1.0, ge=0.0, le=10.0, description="Random jitter upper bound")
    max_delay: float = Field(30.0, ge=1.0, le=300.0)
    retry_degraded: bool = Field(
        True, description="Re-run attempts whose response could not be salvaged"
    )


class LimitsConfig(BaseModel):
    """Input limits enforced before any model call."""

    max_code_length: int = Field(50_000, ge=1, le=1_000_000)
    allowed_languages: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_LANGUAGES))

    @field_validator("allowed_languages")
    @classmethod
    def normalize_languages(cls, v: list[str]) -> list[str]:
        """Store language identifiers lowercased and trimmed."""
        normalized = [lang.strip().lower() for lang in v if lang.strip()]
        if not normalized:
            raise ValueError("At least one language must be allowed")
        return normalized


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = Field(5000, ge=1, le=65535)


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/codegenius-gateway/gateway.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class GatewayConfig(BaseSettings):
    """Root configuration for the CodeGenius gateway."""

    llm: LLMConfig
    retry: RetryConfig = RetryConfig()
    limits: LimitsConfig = LimitsConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
    )
