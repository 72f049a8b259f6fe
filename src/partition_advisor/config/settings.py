"""
Settings and configuration management for the partition maintenance advisor.

This module provides centralized configuration loading with validation
using Pydantic models and support for environment variable overrides.
"""

import json
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..env_loader import load_env
from ..maintenance.errors import InvalidConfig
from ..maintenance.models import Compression


class AppConfig(BaseModel):
    """Application configuration."""
    name: str = Field(default="Partition Maintenance Advisor")
    version: str = Field(default="1.0.0")
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()


class MaintenanceConfig(BaseModel):
    """Thresholds and windows that drive a maintenance planning run."""
    reorg_threshold: float = Field(default=10.0, ge=0.0, le=100.0)
    rebuild_threshold: float = Field(default=30.0, ge=0.0, le=100.0)
    min_page_count: int = Field(default=1000, ge=0)
    hot_partition_count: int = Field(default=3, ge=0)
    warm_partition_count: int = Field(default=0, ge=0)
    lookback_days: int = Field(default=60, ge=0)
    buffer_days: int = Field(default=30, ge=0)
    drift_tolerance_days: int = Field(default=0, ge=0)
    min_updates_to_flag: int = Field(default=100, ge=0)
    min_row_count_floor: int = Field(default=1, ge=0)
    hot_compression: Compression = Field(default=Compression.ROW)
    online_rebuild: bool = Field(default=True)
    max_pages_per_run: Optional[int] = Field(default=None, ge=1)

    @field_validator('hot_compression')
    @classmethod
    def validate_hot_compression(cls, v):
        if v == Compression.PAGE:
            raise ValueError("hot partitions use ROW or NONE compression")
        return v

    @model_validator(mode='after')
    def validate_threshold_order(self):
        if not self.reorg_threshold < self.rebuild_threshold:
            raise ValueError(
                f"reorg_threshold ({self.reorg_threshold}) must be below "
                f"rebuild_threshold ({self.rebuild_threshold})"
            )
        return self


class Settings(BaseModel):
    """Main settings configuration."""
    app: AppConfig = Field(default_factory=AppConfig)
    maintenance: MaintenanceConfig = Field(default_factory=MaintenanceConfig)


def build_maintenance_config(values: Optional[Dict[str, Any]] = None, **overrides) -> MaintenanceConfig:
    """
    Build a validated maintenance configuration.

    Raises:
        InvalidConfig: if any threshold or window is out of range or out of order
    """
    data = dict(values or {})
    data.update(overrides)
    try:
        return MaintenanceConfig(**data)
    except ValidationError as e:
        raise InvalidConfig(f"Invalid maintenance configuration: {e}") from e


def load_json_config(file_path: Path) -> Dict:
    """Load configuration from JSON file with environment variable substitution."""
    if not file_path.exists():
        return {}

    with open(file_path, 'r') as f:
        content = f.read()

    # Replace environment variables in format ${VAR_NAME}
    def replace_env_var(match):
        var_name = match.group(1)
        return os.getenv(var_name, match.group(0))

    content = re.sub(r'\$\{([^}]+)\}', replace_env_var, content)

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidConfig(f"Invalid JSON in {file_path}: {e}")


# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    'LOG_LEVEL': ('app', 'log_level', str),
    'LOG_FILE': ('app', 'log_file', str),
    'ADVISOR_REORG_THRESHOLD': ('maintenance', 'reorg_threshold', float),
    'ADVISOR_REBUILD_THRESHOLD': ('maintenance', 'rebuild_threshold', float),
    'ADVISOR_HOT_PARTITION_COUNT': ('maintenance', 'hot_partition_count', int),
    'ADVISOR_MIN_PAGE_COUNT': ('maintenance', 'min_page_count', int),
    'ADVISOR_LOOKBACK_DAYS': ('maintenance', 'lookback_days', int),
    'ADVISOR_BUFFER_DAYS': ('maintenance', 'buffer_days', int),
}


@lru_cache()
def get_settings(config_path: str = "config/settings.json") -> Settings:
    """Get application settings (cached)."""
    load_env()
    config_data = load_json_config(Path(config_path))

    for env_var, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(env_var)
        if raw:
            try:
                config_data.setdefault(section, {})[key] = cast(raw)
            except ValueError as e:
                raise InvalidConfig(f"{env_var}={raw!r} is not a valid {cast.__name__}") from e

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise InvalidConfig(f"Invalid settings in {config_path}: {e}") from e


def reload_settings() -> Settings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
