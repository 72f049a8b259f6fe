"""
Partition Maintenance Advisor

Decides per-partition index maintenance for large time-partitioned tables,
keeps rolling filtered indexes bounded, and ranks tables as partitioning
candidates from the storage engine's statistics.
"""

__version__ = "1.0.0"
__author__ = "Partition Advisor Team"

# The maintenance core must load before config and connectors, which use its
# errors and models.
from .maintenance import (
    MaintenancePlanner, MaintenancePlan, MaintenanceSchedule, MaintenanceDirective,
    DirectiveKind, RollingIndexSpec, AdvisorError, InvalidConfig,
    StatSourceUnavailable, IndexNotAlignedError, AmbiguousPredicateError
)
from .config.settings import get_settings, Settings, MaintenanceConfig
from .connectors.stat_source import StatSource, InMemoryStatSource, JsonSnapshotStatSource
from .utils.logger import setup_logging, get_logger


def create_planner(stat_source: StatSource, config_path: str = "config/settings.json") -> MaintenancePlanner:
    """Create a planner configured from settings file and environment overrides."""
    settings = get_settings(config_path)
    setup_logging(settings.app.log_level, settings.app.log_file)
    return MaintenancePlanner(stat_source, settings.maintenance)


__all__ = [
    "create_planner",
    "MaintenancePlanner",
    "MaintenancePlan",
    "MaintenanceSchedule",
    "MaintenanceDirective",
    "DirectiveKind",
    "RollingIndexSpec",
    "AdvisorError",
    "InvalidConfig",
    "StatSourceUnavailable",
    "IndexNotAlignedError",
    "AmbiguousPredicateError",
    "get_settings",
    "Settings",
    "MaintenanceConfig",
    "StatSource",
    "InMemoryStatSource",
    "JsonSnapshotStatSource",
    "setup_logging",
    "get_logger",
]
