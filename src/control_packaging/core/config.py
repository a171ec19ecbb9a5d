"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class StoreConfig(BaseModel):
    data_file: str = "data/data.json"
    write_retries: int = Field(default=3, ge=1)  # Attempts per append
    retry_backoff_seconds: float = Field(default=0.05, ge=0.0)
    retry_backoff_max_seconds: float = Field(default=1.0, ge=0.0)


class ScanRulesConfig(BaseModel):
    part_no_min_length: int = Field(default=11, ge=0)
    part_no_max_length: int = Field(default=14, ge=0)

    @model_validator(mode="after")
    def min_must_not_exceed_max(self) -> ScanRulesConfig:
        if self.part_no_min_length > self.part_no_max_length:
            raise ValueError(
                "part_no_min_length cannot exceed part_no_max_length"
            )
        return self


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    # IANA zone for calendar windows and naive bounds; empty = system local
    timezone: str = ""

    store: StoreConfig = Field(default_factory=StoreConfig)
    scan_rules: ScanRulesConfig = Field(default_factory=ScanRulesConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "CONTROL_PACKAGING_", "env_nested_delimiter": "__"}

    @field_validator("timezone")
    @classmethod
    def timezone_must_exist(cls, v: str) -> str:
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    def tz(self) -> tzinfo | None:
        """Configured zone, or ``None`` to use the system local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: If the file is given but missing, unparsable, or invalid.
    """
    import tomli
    from pydantic import ValidationError

    from .errors import ConfigError

    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data = _merge(data, overrides)

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge *overrides* into *base*, recursing into nested sections."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
