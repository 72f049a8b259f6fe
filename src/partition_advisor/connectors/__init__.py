"""
Connectors to the storage engine's statistics catalog.
"""

from .stat_source import StatSource, InMemoryStatSource, JsonSnapshotStatSource

__all__ = ['StatSource', 'InMemoryStatSource', 'JsonSnapshotStatSource']
