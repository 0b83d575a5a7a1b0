"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from codegenius_gateway.config.loader import (
    DEFAULT_CONFIG_PATH,
    find_config_path,
    load_config,
    substitute_env_vars,
    validate_config,
)
from codegenius_gateway.config.schema import (
    DEFAULT_ALLOWED_LANGUAGES,
    AnthropicConfig,
    GatewayConfig,
    GeminiConfig,
    LimitsConfig,
    LLMConfig,
    RetryConfig,
    ServerConfig,
)

EXAMPLE_CONFIG = Path(__file__).parents[2] / "config" / "config.example.yaml"


class TestSubstituteEnvVars:
    """Test environment variable substitution."""

    def test_substitute_single_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting a single environment variable."""
        monkeypatch.setenv("TEST_VAR", "test_value")
        assert substitute_env_vars("Value is ${TEST_VAR}") == "Value is test_value"

    def test_substitute_multiple_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting multiple environment variables."""
        monkeypatch.setenv("VAR1", "value1")
        monkeypatch.setenv("VAR2", "value2")
        assert substitute_env_vars("${VAR1} and ${VAR2}") == "value1 and value2"

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that missing environment variables raise ValueError."""
        monkeypatch.delenv("MISSING", raising=False)
        with pytest.raises(ValueError, match="Environment variable MISSING not found"):
            substitute_env_vars("Value is ${MISSING}")

    def test_fallback_used_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test ${NAME:-fallback} for unset variables."""
        monkeypatch.delenv("GEMINI_MODEL", raising=False)
        assert substitute_env_vars("${GEMINI_MODEL:-gemini-2.0-flash}") == "gemini-2.0-flash"

    def test_fallback_ignored_when_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the environment wins over the fallback."""
        monkeypatch.setenv("GEMINI_MODEL", "gemini-1.5-pro")
        assert substitute_env_vars("${GEMINI_MODEL:-gemini-2.0-flash}") == "gemini-1.5-pro"

    def test_all_missing_vars_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test every unset variable is named in one error."""
        monkeypatch.delenv("MISSING_A", raising=False)
        monkeypatch.delenv("MISSING_B", raising=False)
        with pytest.raises(ValueError, match="MISSING_A, MISSING_B"):
            substitute_env_vars("${MISSING_B} ${MISSING_A} ${MISSING_B}")

    def test_comment_lines_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test references inside full-line comments are not expanded."""
        monkeypatch.delenv("UNSET_IN_COMMENT", raising=False)
        text = "# api_key: ${UNSET_IN_COMMENT}\nmodel: x\n"
        assert substitute_env_vars(text) == text

    def test_no_substitution_needed(self) -> None:
        """Test text without environment variables passes through unchanged."""
        assert substitute_env_vars("plain text without vars") == "plain text without vars"


class TestProviderConfig:
    """Test provider configuration models."""

    def test_gemini_defaults(self) -> None:
        """Test Gemini sampling defaults."""
        config = GeminiConfig(api_key="key")
        assert config.model == "gemini-2.0-flash"
        assert config.temperature == 0.2
        assert config.top_p == 0.8
        assert config.top_k == 40
        assert config.max_output_tokens == 8192

    def test_gemini_blank_key_rejected(self) -> None:
        """Test that a blank Gemini key is rejected."""
        with pytest.raises(ValidationError, match="must not be empty"):
            GeminiConfig(api_key="  ")

    def test_anthropic_key_prefix(self) -> None:
        """Test that Anthropic keys must start with sk-ant-."""
        with pytest.raises(ValidationError, match="sk-ant-"):
            AnthropicConfig(api_key="invalid")

    def test_gemini_temperature_bounds(self) -> None:
        """Test temperature range validation."""
        with pytest.raises(ValidationError):
            GeminiConfig(api_key="key", temperature=3.0)


class TestRetryConfig:
    """Test RetryConfig validation."""

    def test_defaults(self) -> None:
        """Test the default retry policy."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 1.0
        assert config.max_jitter == 1.0
        assert config.retry_degraded is True

    def test_zero_attempts_rejected(self) -> None:
        """Test that at least one attempt is required."""
        with pytest.raises(ValidationError):
            RetryConfig(max_attempts=0)

    def test_negative_delay_rejected(self) -> None:
        """Test that delays cannot be negative."""
        with pytest.raises(ValidationError):
            RetryConfig(base_delay=-1)


class TestLimitsConfig:
    """Test LimitsConfig validation."""

    def test_defaults(self) -> None:
        """Test the default limits."""
        config = LimitsConfig()
        assert config.max_code_length == 50_000
        assert config.allowed_languages == DEFAULT_ALLOWED_LANGUAGES

    def test_languages_normalized(self) -> None:
        """Test that languages are lowercased and trimmed."""
        config = LimitsConfig(allowed_languages=[" Python ", "JAVA", ""])
        assert config.allowed_languages == ["python", "java"]

    def test_empty_language_list_rejected(self) -> None:
        """Test that an empty allow-list is rejected."""
        with pytest.raises(ValidationError, match="At least one language"):
            LimitsConfig(allowed_languages=[])


class TestGatewayConfig:
    """Test the root configuration."""

    def test_section_defaults(self) -> None:
        """Test that only llm is required."""
        config = GatewayConfig(llm=LLMConfig(gemini=GeminiConfig(api_key="key")))
        assert config.server == ServerConfig()
        assert config.server.port == 5000
        assert config.logging.format == "json"

    def test_invalid_provider_rejected(self) -> None:
        """Test that unknown providers are rejected."""
        with pytest.raises(ValidationError):
            LLMConfig(provider="openai")  # type: ignore[arg-type]


class TestLoadConfig:
    """Test loading configuration files."""

    def test_load_example_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the shipped example config loads."""
        monkeypatch.setenv("GEMINI_API_KEY", "example-key")

        config = load_config(EXAMPLE_CONFIG)

        assert config.llm.provider == "gemini"
        assert config.llm.gemini is not None
        assert config.llm.gemini.api_key == "example-key"
        assert config.limits.allowed_languages == ["javascript", "typescript", "python", "java", "cpp"]

    def test_load_anthropic_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading a config that selects Anthropic."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-abc")
        path = tmp_path / "config.yaml"
        path.write_text(
            "llm:\n"
            "  provider: anthropic\n"
            "  anthropic:\n"
            "    api_key: ${ANTHROPIC_API_KEY}\n"
            "retry:\n"
            "  max_attempts: 5\n"
        )

        config = load_config(path)

        assert config.llm.anthropic is not None
        assert config.llm.anthropic.api_key == "sk-ant-abc"
        assert config.retry.max_attempts == 5

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        """Test that a YAML list at the root is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_selected_provider_section_required(self, tmp_path: Path) -> None:
        """Test that the selected provider must have its section."""
        path = tmp_path / "config.yaml"
        path.write_text("llm:\n  provider: gemini\n")

        with pytest.raises(ValueError, match="gemini config missing"):
            load_config(path)


class TestValidateConfig:
    """Test validate_config."""

    def test_anthropic_section_missing(self) -> None:
        """Test that Anthropic must be configured when selected."""
        config = GatewayConfig(llm=LLMConfig(provider="anthropic"))
        with pytest.raises(ValueError, match="anthropic config missing"):
            validate_config(config)

    def test_valid(self) -> None:
        """Test a complete config passes."""
        config = GatewayConfig(llm=LLMConfig(gemini=GeminiConfig(api_key="key")))
        validate_config(config)


class TestFindConfigPath:
    """Test config path resolution."""

    def test_cli_path_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an explicit path beats the environment."""
        monkeypatch.setenv("CODEGENIUS_CONFIG", "/etc/env.yaml")
        assert find_config_path(Path("cli.yaml")) == Path("cli.yaml")

    def test_env_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CODEGENIUS_CONFIG is used without a flag."""
        monkeypatch.setenv("CODEGENIUS_CONFIG", "/etc/env.yaml")
        assert find_config_path() == Path("/etc/env.yaml")

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default location."""
        monkeypatch.delenv("CODEGENIUS_CONFIG", raising=False)
        assert find_config_path() == DEFAULT_CONFIG_PATH
