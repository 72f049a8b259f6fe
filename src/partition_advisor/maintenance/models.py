"""
Data model for partition-aware maintenance planning.

Every value here is an immutable snapshot: statistics are re-read on each run
and directives are produced fresh, so nothing is mutated after construction.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Tuple, FrozenSet


class Compression(Enum):
    """Data compression modes exposed by the storage engine."""
    NONE = "NONE"
    ROW = "ROW"
    PAGE = "PAGE"

    @property
    def rank(self) -> int:
        return _COMPRESSION_RANK[self]


_COMPRESSION_RANK = {Compression.NONE: 0, Compression.ROW: 1, Compression.PAGE: 2}


class MaintenanceAction(Enum):
    """Outcome of evaluating one partition's fragmentation."""
    NO_ACTION = "no_action"
    REORGANIZE = "reorganize"
    REBUILD = "rebuild"


class StorageTier(Enum):
    """Storage temperature of a partition."""
    HOT = "hot"          # Recent, heavily written
    WARM = "warm"        # Recently cooled, rarely written
    COLD = "cold"        # Historical, read-only
    ARCHIVE = "archive"  # Leftmost catch-all range


class DirectiveKind(Enum):
    """Kinds of maintenance directives emitted for a collaborator to execute."""
    REORGANIZE = "reorganize"
    REBUILD = "rebuild"
    COMPRESS = "compress"
    DROP_INDEX = "drop_index"
    CREATE_INDEX = "create_index"
    UPDATE_STATISTICS = "update_statistics"


# Position of each kind in a plan; reorganize/rebuild always lead so that
# filtered-index refresh never races fragmentation decisions.
DIRECTIVE_PHASE = {
    DirectiveKind.REORGANIZE: 0,
    DirectiveKind.REBUILD: 0,
    DirectiveKind.COMPRESS: 1,
    DirectiveKind.DROP_INDEX: 2,
    DirectiveKind.CREATE_INDEX: 2,
    DirectiveKind.UPDATE_STATISTICS: 3,
}


class SkipReason(Enum):
    """Reason codes recorded in reports whenever work is skipped."""
    BELOW_PAGE_FLOOR = "below_page_floor"
    BELOW_REORG_THRESHOLD = "below_reorg_threshold"
    OUTSIDE_HOT_WINDOW = "outside_hot_window"
    HEAP = "heap"
    NOT_ALIGNED = "not_aligned"
    AMBIGUOUS_PREDICATE = "ambiguous_predicate"
    EMPTY_KEY_COLUMNS = "empty_key_columns"
    BUDGET_EXHAUSTED = "budget_exhausted"
    INDEX_MISSING = "index_missing"
    BOUNDARY_CURRENT = "boundary_current"


@dataclass(frozen=True)
class PartitionStat:
    """Physical statistics for one (index, partition)."""
    partition_number: int
    fragmentation_pct: float
    page_count: int
    row_count: int = 0
    compression: Compression = Compression.NONE
    index_id: int = 1
    index_name: str = ""
    index_type: int = 1  # 0 = heap, 1 = clustered, 2 = nonclustered

    def __post_init__(self):
        if self.partition_number < 1:
            raise ValueError("partition_number must be a positive integer")
        if not 0.0 <= self.fragmentation_pct <= 100.0:
            raise ValueError("fragmentation_pct must be between 0 and 100")
        if self.page_count < 0 or self.row_count < 0:
            raise ValueError("page_count and row_count must be non-negative")

    @property
    def is_heap(self) -> bool:
        return self.index_type == 0


@dataclass(frozen=True)
class IndexUsage:
    """Read/write usage counters for one index since the engine's observation start."""
    index_id: int
    seeks: int = 0
    scans: int = 0
    lookups: int = 0
    updates: int = 0
    last_seek: Optional[datetime] = None
    last_scan: Optional[datetime] = None

    @property
    def reads(self) -> int:
        return self.seeks + self.scans + self.lookups

    @property
    def write_overhead(self) -> int:
        return self.updates - (self.seeks + self.scans)


@dataclass(frozen=True)
class IndexDescriptor:
    """Logical definition of an index."""
    name: str
    table_name: str
    key_columns: Tuple[str, ...]
    included_columns: FrozenSet[str] = frozenset()
    filter_predicate: Optional[str] = None
    is_primary_or_unique: bool = False
    index_id: int = 0
    index_type: int = 2
    is_aligned: bool = True

    def __post_init__(self):
        # Accept lists/sets from callers; store immutable forms.
        object.__setattr__(self, 'key_columns', tuple(self.key_columns))
        object.__setattr__(self, 'included_columns', frozenset(self.included_columns))

    @property
    def is_clustered(self) -> bool:
        return self.index_type == 1


@dataclass(frozen=True)
class TableProfile:
    """Table-level sizing facts used for partition-candidate scoring."""
    name: str
    row_count: int
    total_size_mb: float
    index_count: int
    has_temporal_column: bool
    is_partitioned: bool


@dataclass(frozen=True)
class MaintenanceDirective:
    """A structured maintenance command; rendering and execution belong to collaborators."""
    kind: DirectiveKind
    table_name: str
    target_index: Optional[str] = None
    partition_number: Optional[int] = None
    compression: Optional[Compression] = None
    new_filter_predicate: Optional[str] = None
    key_columns: Tuple[str, ...] = ()
    included_columns: Tuple[str, ...] = ()
    estimated_cost: Optional[int] = None
    online: bool = True
    storage: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'table': self.table_name,
            'index': self.target_index,
            'partition': self.partition_number,
            'compression': self.compression.value if self.compression else None,
            'filter': self.new_filter_predicate,
            'key_columns': list(self.key_columns),
            'included_columns': list(self.included_columns),
            'estimated_cost': self.estimated_cost,
            'online': self.online,
            'storage': self.storage,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class TierAssignment:
    """Storage tier and target compression for a partition."""
    partition_number: int
    tier: StorageTier
    target_compression: Compression


@dataclass(frozen=True)
class ObservationWindow:
    """The span over which index usage counters were accumulated."""
    observed_until: datetime
    observed_since: Optional[datetime] = None

    def describe(self) -> str:
        since = self.observed_since.isoformat() if self.observed_since else "engine start (unknown)"
        return f"{since} -> {self.observed_until.isoformat()}"


@dataclass
class SkipRecord:
    """A unit of work that was deliberately not planned."""
    reason: SkipReason
    index_name: Optional[str] = None
    partition_number: Optional[int] = None
    detail: str = ""
