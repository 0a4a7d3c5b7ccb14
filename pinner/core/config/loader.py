"""
Configuration loader — reads pinner.yml into a Settings model.

The file is optional: without one every setting takes its default.
It is searched upward from the working directory so commands work
from anywhere inside a repository.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "pinner.yml"


class ConfigError(Exception):
    """Raised when pinner configuration is invalid."""


class Settings(BaseModel):
    """Run-wide settings.

    ``cache_dir`` is the repository root holding ``.github/aw/actions-lock.json``;
    relative paths are taken from the config file's directory.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    cache_dir: Path = Field(default=Path("."), alias="cache-dir")
    strict: bool = False
    force_refresh: bool = Field(default=False, alias="force-refresh")
    resolve_timeout: int = Field(default=20, alias="resolve-timeout", gt=0)
    runtimes: dict[str, Any] = Field(default_factory=dict)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for pinner.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to pinner.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, *, search: bool = True) -> Settings:
    """Load and validate pinner configuration.

    Args:
        path: Explicit path to pinner.yml.  If None and ``search`` is set,
            searches upward from the working directory.

    Returns:
        Validated Settings (defaults when no file exists).

    Raises:
        ConfigError: An explicit path is missing, or the file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found — using defaults", CONFIG_FILE)
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid pinner configuration: {e}") from e

    if not settings.cache_dir.is_absolute():
        settings.cache_dir = (path.parent / settings.cache_dir).resolve()

    logger.info("Loaded settings from %s (strict=%s)", path, settings.strict)
    return settings
