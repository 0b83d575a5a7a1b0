"""Load the gateway configuration from YAML.

``${NAME}`` references in the file are replaced from the environment
before parsing; ``${NAME:-fallback}`` supplies a value for unset names.
API keys are normally provided this way rather than written to disk.
"""

import os
import re
from pathlib import Path

import yaml

from .schema import GatewayConfig

CONFIG_PATH_ENV = "CODEGENIUS_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/config.yaml")

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in ``text``.

    Full-line ``#`` comments are left as they are, so commented-out
    sections may reference variables that are not set.

    Raises:
        ValueError: Listing every referenced variable that is unset and has
            no fallback.
    """
    missing: list[str] = []

    def expand(match: re.Match[str]) -> str:
        name, fallback = match.group("name"), match.group("fallback")
        value = os.environ.get(name, fallback)
        if value is None:
            missing.append(name)
            return match.group(0)
        return value

    lines = [
        line if line.lstrip().startswith("#") else _ENV_REFERENCE.sub(expand, line)
        for line in text.splitlines(keepends=True)
    ]
    if missing:
        names = ", ".join(sorted(set(missing)))
        raise ValueError(f"Environment variable {names} not found")
    return "".join(lines)


def find_config_path(cli_path: Path | None = None) -> Path:
    """Pick the config file: CLI flag, then ``$CODEGENIUS_CONFIG``, then the default."""
    if cli_path is not None:
        return cli_path
    env_path = os.environ.get(CONFIG_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def load_config(path: Path) -> GatewayConfig:
    """Read, expand and validate the configuration at ``path``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If a variable is unset, the YAML root is not a mapping,
            or the selected provider has no section.
        pydantic.ValidationError: If a value fails schema validation.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    data = yaml.safe_load(substitute_env_vars(path.read_text(encoding="utf-8")))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    config = GatewayConfig.model_validate(data)
    validate_config(config)
    return config


def validate_config(config: GatewayConfig) -> None:
    """Check cross-section rules the schema cannot express.

    Raises:
        ValueError: If the selected provider has no configuration section.
    """
    provider = config.llm.provider
    if getattr(config.llm, provider) is None:
        raise ValueError(
            f"{provider.capitalize()} provider selected but {provider} config missing"
        )
