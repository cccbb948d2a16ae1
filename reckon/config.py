"""Configuration file management for reckon."""

import os
import tomllib
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import tomli_w

DEFAULT_LEDGER_CONFIG: dict[str, Any] = {
    "currency": "USD",
    "locale": "en_US",
    "correction_window_hours": 72,
    "default_page_limit": 20,
    "max_page_limit": 100,
}


@dataclass(frozen=True)
class Settings:
    """Immutable ledger settings."""

    currency: str = "USD"
    locale: str = "en_US"
    correction_window_hours: int = 72
    default_page_limit: int = 20
    max_page_limit: int = 100

    @property
    def correction_window(self) -> timedelta:
        return timedelta(hours=self.correction_window_hours)


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "reckon" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config: dict[str, Any] = {
        "ledger": dict(DEFAULT_LEDGER_CONFIG),
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(default_config, f)

    os.chmod(config_path, 0o600)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Build Settings from a config dictionary, validating the [ledger] table.

    Raises:
        ValueError: If a setting has the wrong type or is out of range.
    """
    ledger = {**DEFAULT_LEDGER_CONFIG, **config.get("ledger", {})}

    currency = ledger["currency"]
    if not isinstance(currency, str) or len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"ledger.currency must be a 3-letter code, got {currency!r}")

    for key in ("correction_window_hours", "default_page_limit", "max_page_limit"):
        value = ledger[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"ledger.{key} must be a non-negative integer, got {value!r}")

    if not 1 <= ledger["default_page_limit"] <= ledger["max_page_limit"]:
        raise ValueError("ledger.default_page_limit must be between 1 and ledger.max_page_limit")

    return Settings(
        currency=currency.upper(),
        locale=str(ledger["locale"]),
        correction_window_hours=ledger["correction_window_hours"],
        default_page_limit=ledger["default_page_limit"],
        max_page_limit=ledger["max_page_limit"],
    )


def load_settings(config_path: Path | None = None) -> Settings:
    """Load ledger settings, using defaults when the config file is missing.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Settings.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        return Settings()
    return settings_from_config(config)


def set_ledger_option(key: str, value: Any, config_path: Path | None = None) -> None:
    """Update one [ledger] setting, creating the config file if needed.

    Args:
        key: Setting name (e.g., "currency").
        value: New value.
        config_path: Path to config file. If None, uses default location.

    Raises:
        KeyError: If the setting name is unknown.
        ValueError: If the new value is invalid.
    """
    if key not in DEFAULT_LEDGER_CONFIG:
        raise KeyError(f"Unknown setting: {key}")

    try:
        config = load_config(config_path)
    except FileNotFoundError:
        config = {}

    ledger = dict(config.get("ledger", {}))
    ledger[key] = value
    updated = {**config, "ledger": ledger}

    # Validate before writing
    settings_from_config(updated)
    if config_path is None:
        config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    save_config(updated, config_path)
