"""Configuration loader for Universal Ledger

All configurable values come from config/config.yaml.

Configuration is validated at load time using Pydantic.
Typos and invalid values fail fast with clear error messages.

Usage:
    from universal_ledger.config import load_config, get, get_validated_config

    # Load and validate (call once at startup)
    load_config("config/config.yaml")

    # Get values by dot-path
    base_uri = get("collection.base_uri")

    # Or use the typed config object (preferred)
    config = get_validated_config()
    base_uri = config.collection.base_uri
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config_schema import AppConfig, load_validated_config

# Global config instances
_config: dict[str, Any] | None = None
_validated_config: AppConfig | None = None

# Default config path
DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load and validate configuration from YAML file.

    A missing default config file is not an error: every field has a
    default, so the built-in defaults are used instead.

    Args:
        config_path: Path to config file. Defaults to config/config.yaml.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    global _config, _validated_config

    path: Path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if config_path is None and not path.exists():
        _validated_config = AppConfig()
        _config = _validated_config.model_dump()
        return _config

    _validated_config = load_validated_config(path)

    with open(path) as f:
        loaded: Any = yaml.safe_load(f)
        if not isinstance(loaded, dict):
            loaded = {}
        _config = loaded

    return _config


def get_config() -> dict[str, Any]:
    """Get the loaded configuration dict. Loads default if not already loaded."""
    global _config
    if _config is None:
        load_config()
    if _config is None:
        raise RuntimeError("Config failed to load. Call load_config() first.")
    return _config


def get_validated_config() -> AppConfig:
    """Get the validated configuration object.

    Returns a typed AppConfig instance. Loads default config if not already loaded.
    """
    global _validated_config
    if _validated_config is None:
        load_config()
    if _validated_config is None:
        raise RuntimeError("Validated config failed to load. Call load_config() first.")
    return _validated_config


def get(key: str, default: Any = None) -> Any:
    """Get a config value by dot-separated key path.

    Values missing from the YAML file fall back to the schema defaults.

    Examples:
        get("collection.base_uri")
        get("logging.default_recent")
    """
    for source in (get_config(), get_validated_config().model_dump()):
        value: Any = source
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                break
        else:
            return value
    return default


def reset_config() -> None:
    """Forget the loaded configuration. Mainly for testing."""
    global _config, _validated_config
    _config = None
    _validated_config = None


def setup_logging(level: str | None = None) -> None:
    """Configure the diagnostic logger from logging.level."""
    resolved = level or get_validated_config().logging.level
    logging.basicConfig(
        level=getattr(logging, resolved.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
