"""
Configuration loader — reads ``config.yaml`` into ``KindlingConfig``.

A missing file is not an error: it means "never configured" and
yields defaults. Malformed YAML or values that fail validation are.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from kindling.core.models.config import KindlingConfig
from kindling.core.errors import KindlingError

logger = logging.getLogger(__name__)


class ConfigError(KindlingError):
    """Raised when a config file cannot be read or is invalid."""


def load_config(path: Path) -> KindlingConfig:
    """Load and validate a kindling config file.

    Args:
        path: Path to ``config.yaml``.

    Returns:
        Validated config; defaults if the file does not exist.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return KindlingConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return KindlingConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = KindlingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return config


def dump_config(config: KindlingConfig) -> str:
    """Serialize a config to YAML, omitting unset optional sections."""
    data = config.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def save_config(path: Path, config: KindlingConfig) -> None:
    """Write ``config`` to ``path``, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_config(config), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}") from e
    logger.info("Saved config to %s", path)


def save_auto_install(path: Path, value: bool) -> KindlingConfig:
    """Remember the user's answer to the first-run install prompt.

    Keeps every other key. An unreadable existing file is replaced
    with defaults rather than blocking the user's decision.
    """
    try:
        config = load_config(path)
    except ConfigError as e:
        logger.warning("Replacing unreadable config: %s", e)
        config = KindlingConfig()

    updated = config.model_copy(update={"auto_install": value})
    save_config(path, updated)
    return updated
