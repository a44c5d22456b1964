"""Configuration management for presswatch."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from pydantic import ValidationError

from presswatch.constants import DEFAULT_CONFIG_DIR
from presswatch.models.thresholds import AlertThresholds

logger = logging.getLogger(__name__)

THRESHOLDS_SECTION = "thresholds"


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        Path to ~/.presswatch/config.toml
    """
    return DEFAULT_CONFIG_DIR / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Args:
        config: Configuration dictionary to save

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def load_thresholds() -> AlertThresholds:
    """
    Build alert thresholds from defaults overlaid with the [thresholds] table.

    Invalid overrides are logged and ignored so a bad config never blocks
    analysis.

    Returns:
        AlertThresholds instance
    """
    overrides = load_config().get(THRESHOLDS_SECTION, {})
    if not isinstance(overrides, dict) or not overrides:
        return AlertThresholds()

    known = {k: v for k, v in overrides.items() if k in AlertThresholds.model_fields}
    unknown = sorted(set(overrides) - set(known))
    if unknown:
        logger.warning(f"Ignoring unknown threshold settings: {', '.join(unknown)}")

    try:
        return AlertThresholds(**known)
    except ValidationError as e:
        logger.warning(f"Invalid threshold settings in config, using defaults: {e}")
        return AlertThresholds()


def set_threshold(name: str, value: float) -> AlertThresholds:
    """
    Persist a single threshold override.

    Args:
        name: AlertThresholds field name
        value: New limit

    Returns:
        The effective thresholds after the change

    Raises:
        ValueError: If the name is unknown or the value is out of range
    """
    if name not in AlertThresholds.model_fields:
        valid = ", ".join(AlertThresholds.model_fields)
        raise ValueError(f"Unknown threshold '{name}'. Valid names are: {valid}")

    config = load_config()
    section = dict(config.get(THRESHOLDS_SECTION, {}))
    section[name] = value

    try:
        thresholds = AlertThresholds(**section)
    except ValidationError as e:
        raise ValueError(f"Invalid value for {name}: {value} ({e.errors()[0]['msg']})") from None

    config[THRESHOLDS_SECTION] = section
    save_config(config)
    return thresholds


def reset_thresholds() -> None:
    """
    Remove all threshold overrides.

    If the thresholds table was the only setting, deletes the config file.
    """
    config = load_config()

    if THRESHOLDS_SECTION not in config:
        return

    del config[THRESHOLDS_SECTION]

    if not config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
    else:
        save_config(config)
