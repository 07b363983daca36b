"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from universal_ledger.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# COLLECTION MODEL
# =============================================================================

class CollectionConfig(StrictModel):
    """Defaults used when deploying a new collection."""

    name: str = Field(default="universal-collection", min_length=1)
    symbol: str = Field(default="UNI", min_length=1)
    base_uri: str = Field(
        default="",
        description="Prefix of every token URI (e.g., 'evochain1/collectionId/')"
    )
    prefix: str = Field(default="", description="Rendered before the decimal token id")
    suffix: str = Field(default="", description="Rendered after the decimal token id")
    address: str | None = Field(
        default=None,
        description="Account of the collection itself; derived from name if unset"
    )

    @field_validator("address")
    @classmethod
    def address_is_hex(cls, v: str | None) -> str | None:
        """Reject addresses that are not 0x-prefixed hex."""
        if v is None:
            return v
        digits = v[2:] if v.lower().startswith("0x") else ""
        if not digits or len(digits) > 40:
            raise ValueError(f"address must be 0x-prefixed with 1-40 hex digits, got {v!r}")
        int(digits, 16)
        return v


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    output_file: str | None = Field(
        default="events.jsonl",
        description="JSONL file for committed ledger events (null = memory only)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )
    buffer_size: int = Field(
        default=1000,
        gt=0,
        description="Committed events kept in memory for queries"
    )
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level for the diagnostic (stdlib) logger"
    )


# =============================================================================
# API MODEL
# =============================================================================

class ApiConfig(StrictModel):
    """HTTP API configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    max_batch_size: int = Field(
        default=500,
        gt=0,
        description="Largest token_ids list accepted by batch broadcast endpoints"
    )
    watch_state_file: bool = Field(
        default=True,
        description="Reload the collection when another process rewrites the state file"
    )
    reload_debounce_ms: int = Field(
        default=200,
        ge=0,
        description="Quiet period after a state file write before reloading"
    )


# =============================================================================
# STATE MODEL
# =============================================================================

class StateConfig(StrictModel):
    """Persistence of collection state between CLI invocations."""

    state_file: str = Field(
        default="collection_state.json",
        description="JSON file holding overrides, approvals and collection config"
    )


# =============================================================================
# ROOT CONFIG MODEL
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    state: StateConfig = Field(default_factory=StateConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


__all__ = [
    "AppConfig",
    "CollectionConfig",
    "LoggingConfig",
    "ApiConfig",
    "StateConfig",
    "load_validated_config",
    "validate_config_dict",
]
