"""Configuration management for Paystub Tracker.

Settings live in settings.json in the config directory:
   - rules_path: path to a custom YAML rule catalogue (optional; the
     bundled processors/parsers/default.yaml is used otherwise)
   - reconcile_tolerance: residual below which a stub counts as balanced,
     as a decimal string (default "0.01")

Config directory resolution:
1. PAYSTUB_TRACKER_CONFIG_PATH environment variable (if set)
2. ~/.config/paystub-tracker/ (XDG_CONFIG_HOME fallback)
"""

import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional


APP_NAME = "paystub-tracker"
SETTINGS_FILENAME = "settings.json"
DEFAULT_TOLERANCE = "0.01"

KNOWN_SETTINGS = {
    "rules_path": "Path to a custom YAML rule catalogue",
    "reconcile_tolerance": "Largest residual still treated as balanced (exclusive)",
}


class ConfigError(Exception):
    """Raised when a setting is unknown or has an invalid value."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. PAYSTUB_TRACKER_CONFIG_PATH environment variable
    2. ~/.config/paystub-tracker/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("PAYSTUB_TRACKER_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {settings_file}: {e}") from e


def save_settings(settings: dict) -> Path:
    """Save settings to settings.json.

    Args:
        settings: Settings dictionary to save

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    return load_settings().get(key, default)


def _parse_tolerance(value: Any) -> Decimal:
    try:
        tolerance = Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigError(f"reconcile_tolerance must be a decimal amount, got '{value}'") from e
    if tolerance < 0:
        raise ConfigError(f"reconcile_tolerance must not be negative, got '{value}'")
    return tolerance


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Args:
        key: Setting key (one of KNOWN_SETTINGS)
        value: Value to set

    Returns:
        Path to the saved settings file

    Raises:
        ConfigError: unknown key or invalid value
    """
    if key not in KNOWN_SETTINGS:
        raise ConfigError(f"Unknown setting '{key}'. Known settings: {', '.join(KNOWN_SETTINGS)}")

    if key == "reconcile_tolerance":
        value = str(_parse_tolerance(value))
    elif key == "rules_path":
        value = str(Path(value).expanduser())

    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_rules_path() -> Optional[Path]:
    """Get the custom rule catalogue path, or None for the bundled one."""
    rules_path = get_setting("rules_path")
    return Path(rules_path) if rules_path else None


def get_tolerance() -> Decimal:
    """Get the reconciliation tolerance."""
    return _parse_tolerance(get_setting("reconcile_tolerance", DEFAULT_TOLERANCE))
