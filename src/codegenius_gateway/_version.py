"""Package version, from installed metadata or the source tree's pyproject.toml."""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as distribution_version
from pathlib import Path

DISTRIBUTION_NAME = "codegenius-gateway"
PYPROJECT_PATH = Path(__file__).resolve().parents[2] / "pyproject.toml"


def resolve_version() -> str:
    """Return the installed distribution version, else ``project.version``.

    Raises:
        RuntimeError: Neither source is available.
    """
    try:
        return distribution_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        pass

    if not PYPROJECT_PATH.is_file():
        raise RuntimeError(f"{DISTRIBUTION_NAME} is not installed and {PYPROJECT_PATH} is missing")
    with PYPROJECT_PATH.open("rb") as f:
        return str(tomllib.load(f)["project"]["version"])


__version__ = resolve_version()

__all__ = ["__version__"]
