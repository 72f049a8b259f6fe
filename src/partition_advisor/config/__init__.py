"""
Configuration management for the partition maintenance advisor.

Handles loading and validation of maintenance thresholds and windows from JSON
files and environment variables with Pydantic models.
"""

from .settings import (
    AppConfig, MaintenanceConfig, Settings, build_maintenance_config,
    get_settings, reload_settings, load_json_config
)

__all__ = [
    'AppConfig',
    'MaintenanceConfig',
    'Settings',
    'build_maintenance_config',
    'get_settings',
    'reload_settings',
    'load_json_config',
]
