"""
Statistics source abstraction over the storage engine's catalog.

The advisor never talks to the engine directly; it consumes these read-only
snapshots. Calls are synchronous and are not retried here - retries belong to
the implementation behind the interface.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any, Union

from ..maintenance.errors import StatSourceUnavailable
from ..maintenance.models import (
    Compression, IndexDescriptor, IndexUsage, PartitionStat, TableProfile
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class StatSource(ABC):
    """Read-only view of the storage engine's statistics catalog."""

    @abstractmethod
    def get_partition_stats(self, table_id: str, index_id: Optional[int] = None) -> List[PartitionStat]:
        """Return per-(index, partition) physical statistics for a table."""
        pass

    @abstractmethod
    def get_index_usage(self, table_id: str) -> Dict[int, IndexUsage]:
        """Return usage counters keyed by index id."""
        pass

    @abstractmethod
    def get_index_descriptors(self, table_id: str) -> List[IndexDescriptor]:
        """Return the logical definitions of a table's indexes."""
        pass

    @abstractmethod
    def get_table_profiles(self, min_row_count: int = 0) -> List[TableProfile]:
        """Return sizing profiles for all tables with at least min_row_count rows."""
        pass


class InMemoryStatSource(StatSource):
    """
    Dict-backed statistics source.

    Useful for tests and for callers that have already materialized the
    catalog. Setting ``available`` to False makes every call raise
    StatSourceUnavailable, mirroring an unreachable engine.
    """

    def __init__(self,
                 partition_stats: Optional[Dict[str, List[PartitionStat]]] = None,
                 index_usage: Optional[Dict[str, Dict[int, IndexUsage]]] = None,
                 index_descriptors: Optional[Dict[str, List[IndexDescriptor]]] = None,
                 table_profiles: Optional[List[TableProfile]] = None,
                 unavailable_tables: Optional[List[str]] = None):
        self.partition_stats = partition_stats or {}
        self.index_usage = index_usage or {}
        self.index_descriptors = index_descriptors or {}
        self.table_profiles = table_profiles or []
        self.unavailable_tables = set(unavailable_tables or [])
        self.available = True

    def _check(self, table_id: Optional[str] = None) -> None:
        if not self.available:
            raise StatSourceUnavailable("Statistics catalog is unavailable")
        if table_id is not None and table_id in self.unavailable_tables:
            raise StatSourceUnavailable(f"Statistics for '{table_id}' are unavailable")

    def get_partition_stats(self, table_id: str, index_id: Optional[int] = None) -> List[PartitionStat]:
        self._check(table_id)
        stats = self.partition_stats.get(table_id, [])
        if index_id is not None:
            stats = [s for s in stats if s.index_id == index_id]
        return list(stats)

    def get_index_usage(self, table_id: str) -> Dict[int, IndexUsage]:
        self._check(table_id)
        return dict(self.index_usage.get(table_id, {}))

    def get_index_descriptors(self, table_id: str) -> List[IndexDescriptor]:
        self._check(table_id)
        return list(self.index_descriptors.get(table_id, []))

    def get_table_profiles(self, min_row_count: int = 0) -> List[TableProfile]:
        self._check()
        return [p for p in self.table_profiles if p.row_count >= min_row_count]


class JsonSnapshotStatSource(StatSource):
    """
    Statistics source backed by a JSON snapshot of the catalog.

    Expected layout::

        {
          "tables": {
            "dbo.Transactions": {
              "partitions": [{"index_id": 1, "index_name": "...", "partition_number": 1, ...}],
              "usage": [{"index_id": 2, "seeks": 0, ...}],
              "indexes": [{"name": "...", "key_columns": [...], ...}]
            }
          },
          "profiles": [{"name": "...", "row_count": 0, ...}]
        }
    """

    def __init__(self, snapshot_path: Union[str, Path]):
        self.snapshot_path = Path(snapshot_path)
        self._snapshot: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._snapshot is None:
            try:
                with open(self.snapshot_path, 'r') as f:
                    self._snapshot = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StatSourceUnavailable(f"Cannot read snapshot {self.snapshot_path}: {e}") from e
            logger.debug(f"Loaded statistics snapshot from {self.snapshot_path}")
        return self._snapshot

    def _table(self, table_id: str) -> Dict[str, Any]:
        tables = self._load().get('tables', {})
        if table_id not in tables:
            raise StatSourceUnavailable(f"Table '{table_id}' not present in snapshot")
        return tables[table_id]

    def get_partition_stats(self, table_id: str, index_id: Optional[int] = None) -> List[PartitionStat]:
        stats = []
        for row in self._table(table_id).get('partitions', []):
            if index_id is not None and row.get('index_id') != index_id:
                continue
            stats.append(PartitionStat(
                partition_number=row['partition_number'],
                fragmentation_pct=float(row.get('fragmentation_pct', 0.0)),
                page_count=row.get('page_count', 0),
                row_count=row.get('row_count', 0),
                compression=Compression(row.get('compression', 'NONE').upper()),
                index_id=row.get('index_id', 1),
                index_name=row.get('index_name', ''),
                index_type=row.get('index_type', 1),
            ))
        return stats

    def get_index_usage(self, table_id: str) -> Dict[int, IndexUsage]:
        usage = {}
        for row in self._table(table_id).get('usage', []):
            usage[row['index_id']] = IndexUsage(
                index_id=row['index_id'],
                seeks=row.get('seeks', 0),
                scans=row.get('scans', 0),
                lookups=row.get('lookups', 0),
                updates=row.get('updates', 0),
                last_seek=_parse_timestamp(row.get('last_seek')),
                last_scan=_parse_timestamp(row.get('last_scan')),
            )
        return usage

    def get_index_descriptors(self, table_id: str) -> List[IndexDescriptor]:
        return [
            IndexDescriptor(
                name=row['name'],
                table_name=table_id,
                key_columns=tuple(row.get('key_columns', [])),
                included_columns=frozenset(row.get('included_columns', [])),
                filter_predicate=row.get('filter_predicate'),
                is_primary_or_unique=row.get('is_primary_or_unique', False),
                index_id=row.get('index_id', 0),
                index_type=row.get('index_type', 2),
                is_aligned=row.get('is_aligned', True),
            )
            for row in self._table(table_id).get('indexes', [])
        ]

    def get_table_profiles(self, min_row_count: int = 0) -> List[TableProfile]:
        profiles = []
        for row in self._load().get('profiles', []):
            if row.get('row_count', 0) < min_row_count:
                continue
            profiles.append(TableProfile(
                name=row['name'],
                row_count=row.get('row_count', 0),
                total_size_mb=float(row.get('total_size_mb', 0.0)),
                index_count=row.get('index_count', 0),
                has_temporal_column=bool(row.get('has_temporal_column', False)),
                is_partitioned=bool(row.get('is_partitioned', False)),
            ))
        return profiles


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)
