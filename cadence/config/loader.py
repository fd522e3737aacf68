"""Layered TOML configuration.

A config directory holds ``default.toml`` and optional per-environment
files such as ``production.toml``. Layers are applied in that order, each
deep-merged over the previous one. Every layer is optional: an application
embedding the scheduler can run on model defaults and ``CADENCE_*``
environment variables alone.
"""

import os
import tomllib
from functools import reduce
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CADENCE_CONFIG_DIR"
ENVIRONMENT_ENV = "CADENCE_ENV"
DEFAULT_ENVIRONMENT = "development"
SEARCH_DEPTH = 5


def find_config_dir() -> Path | None:
    """Locate the config directory.

    ``CADENCE_CONFIG_DIR`` wins and must exist. Otherwise the first
    ``config/`` directory found walking up from the working directory is
    used, or None when there is none.

    Raises:
        FileNotFoundError: If CADENCE_CONFIG_DIR names a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return None


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def config_layers(config_dir: Path, environment: str) -> list[Path]:
    """Existing layer files of ``config_dir``, lowest precedence first."""
    names = ["default.toml"]
    if environment != "default":
        names.append(f"{environment}.toml")
    return [config_dir / name for name in names if (config_dir / name).is_file()]


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` over ``base`` without mutating either.

    Tables present on both sides merge key by key; any other value in
    ``override`` replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def load_config(config_dir: Path | None = None, environment: str | None = None) -> dict[str, Any]:
    """Load and merge every configuration layer.

    Args:
        config_dir: Directory to read; located with find_config_dir if omitted
        environment: Environment layer to apply; CADENCE_ENV if omitted

    Returns:
        The merged configuration, empty when no layer exists
    """
    directory = config_dir if config_dir is not None else find_config_dir()
    if directory is None:
        return {}

    layers = config_layers(directory, environment or get_environment())
    return reduce(deep_merge, (load_toml(path) for path in layers), {})
