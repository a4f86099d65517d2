"""Configuration management for drivemon."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from drivemon.analysis.calibration import DEFAULT_MODE, DetectionConfig, get_config
from drivemon.constants import DEFAULT_CONFIG_FILE, DEFAULT_DATA_DIR

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        Path to ~/.drivemon/config.toml
    """
    return DEFAULT_DATA_DIR / DEFAULT_CONFIG_FILE


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


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name, {})
    return value if isinstance(value, dict) else {}


def get_detection_mode() -> str:
    """Calibration preset name from config, or the default preset."""
    mode: str = _section(load_config(), "detection").get("mode", DEFAULT_MODE)
    return mode


def set_detection_mode(mode: str) -> None:
    """
    Persist the calibration preset name.

    Raises:
        ValueError: If the preset does not exist
    """
    get_config(mode)
    config = load_config()
    config.setdefault("detection", {})["mode"] = mode
    save_config(config)


def get_threshold_overrides() -> dict[str, Any]:
    return dict(_section(load_config(), "thresholds"))


def get_speed_limit_overrides() -> dict[str, Any]:
    return dict(_section(load_config(), "speed_limits"))


def set_threshold_override(name: str, value: float) -> None:
    """
    Persist a threshold override after validating it against the current mode.

    Raises:
        ValueError: If the name is unknown or the value invalid
    """
    overrides = {**get_threshold_overrides(), name: value}
    get_config(get_detection_mode()).with_overrides(thresholds=overrides)

    config = load_config()
    config.setdefault("thresholds", {})[name] = value
    save_config(config)


def unset_threshold_override(name: str) -> bool:
    """
    Remove a threshold override.

    If this was the only override, removes the section.

    Returns:
        True if an override was removed
    """
    config = load_config()
    thresholds = config.get("thresholds", {})
    if name not in thresholds:
        return False

    del thresholds[name]
    if not thresholds:
        del config["thresholds"]
    save_config(config)
    return True


def load_detection_config(mode: str | None = None) -> DetectionConfig:
    """
    Build the effective calibration: preset plus user overrides.

    Args:
        mode: Preset name; defaults to the configured mode

    Returns:
        DetectionConfig

    Raises:
        ValueError: If the mode is unknown or overrides are invalid
    """
    preset = get_config(mode or get_detection_mode())
    return preset.with_overrides(
        thresholds=get_threshold_overrides(),
        speed_limits=get_speed_limit_overrides(),
    )
