"""Configuration management for Wage Calc.

Configuration lives in a single machine-specific settings.json:

- timezone: IANA zone used to bucket timecard events into days
  (e.g. "Asia/Tokyo"); unset means the machine's local zone
- tax_year: withholding table year used when a command doesn't pass one
- tax_rules_dir: directory holding YYYY.yaml withholding tables
  (defaults to the tables bundled with the package)

Only the CLI reads settings. SDK calculations take the timezone, table
year and rules directory as arguments.

Config directory resolution:
1. WAGE_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/wage-calc/ (XDG_CONFIG_HOME fallback)
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from .taxes.rules import BUNDLED_RULES_DIR

APP_NAME = "wage-calc"
SETTINGS_FILENAME = "settings.json"
TAX_RULES_ENV = "WAGE_CALC_TAX_RULES_DIR"
SETTING_KEYS = ("timezone", "tax_year", "tax_rules_dir")


class SettingsError(ValueError):
    """Raised when settings.json exists but can't be used."""
    pass


def get_config_dir() -> Path:
    """WAGE_CALC_CONFIG_PATH, else $XDG_CONFIG_HOME/wage-calc."""
    env_path = os.environ.get("WAGE_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings.json ({} if it doesn't exist).

    Raises:
        SettingsError: If the file isn't a JSON object
    """
    settings_file = get_settings_path()
    if not settings_file.exists():
        return {}

    try:
        with open(settings_file, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsError(f"{settings_file}: invalid JSON ({e})") from e

    if not isinstance(settings, dict):
        raise SettingsError(f"{settings_file}: expected a JSON object")
    return settings


def set_setting(key: str, value: Any) -> Path:
    """Write one key into settings.json, keeping the others.

    Returns:
        Path to the saved settings file
    """
    if key not in SETTING_KEYS:
        raise SettingsError(f"Unknown setting '{key}' (known: {', '.join(SETTING_KEYS)})")

    settings = load_settings()
    settings[key] = value

    settings_file = get_settings_path()
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_file, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2, ensure_ascii=False)
    return settings_file


def get_tax_rules_dir(settings: Optional[dict] = None) -> Path:
    """Directory holding YYYY.yaml withholding tables.

    Resolution order:
    1. WAGE_CALC_TAX_RULES_DIR environment variable
    2. settings "tax_rules_dir"
    3. Tables bundled with the package
    """
    env_path = os.environ.get(TAX_RULES_ENV)
    if env_path:
        return Path(env_path).expanduser()

    configured = (settings or {}).get("tax_rules_dir")
    if configured:
        return Path(configured).expanduser()

    return BUNDLED_RULES_DIR
