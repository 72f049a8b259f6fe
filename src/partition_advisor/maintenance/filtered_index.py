"""
Boundary refresh for rolling "recent window" filtered indexes.

A filtered index predicate must be a constant expression, so a window such as
"the last 60 days" is materialized as a literal date and periodically moved
forward by dropping and recreating the index with a fresh boundary.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import IndexNotAlignedError, InvalidConfig
from .models import Compression, DirectiveKind, IndexDescriptor, MaintenanceDirective
from .predicates import build_boundary_predicate, parse_boundary
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LOOKBACK_DAYS = 60
DEFAULT_BUFFER_DAYS = 30


class BoundaryState(Enum):
    """Whether a filtered index's boundary is within tolerance."""
    CURRENT = "current"
    STALE = "stale"


@dataclass(frozen=True)
class RollingIndexSpec:
    """Declares an index that should cover only a trailing date window."""
    index_name: str
    table_name: str
    boundary_column: str
    key_columns: Tuple[str, ...] = ()
    included_columns: Tuple[str, ...] = ()
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    buffer_days: int = DEFAULT_BUFFER_DAYS
    partition_scheme: Optional[str] = None
    compression: Compression = Compression.ROW

    def __post_init__(self):
        object.__setattr__(self, 'key_columns', tuple(self.key_columns))
        object.__setattr__(self, 'included_columns', tuple(self.included_columns))

    @property
    def storage(self) -> Optional[str]:
        if self.partition_scheme:
            return f"{self.partition_scheme}([{self.boundary_column}])"
        return None


@dataclass
class FilteredIndexPlan:
    """Result of evaluating one rolling filtered index."""
    index_name: str
    state: BoundaryState
    candidate_boundary: date
    current_boundary: Optional[date]
    directives: List[MaintenanceDirective] = field(default_factory=list)
    applied_index: Optional[IndexDescriptor] = None
    first_creation: bool = False


def compute_boundary(now: Union[datetime, date], lookback_days: int, buffer_days: int) -> date:
    """now - (lookback + buffer) days, truncated to day granularity."""
    if lookback_days < 0 or buffer_days < 0:
        raise InvalidConfig("lookback_days and buffer_days must be non-negative")
    today = now.date() if isinstance(now, datetime) else now
    return today - timedelta(days=lookback_days + buffer_days)


def evaluate_boundary(current_boundary: Optional[date],
                      candidate_boundary: date,
                      drift_tolerance_days: int = 0) -> BoundaryState:
    """
    Decide whether a boundary needs refreshing.

    With the default tolerance of zero any difference is stale: boundaries
    are moved on every maintenance run rather than by drift magnitude.
    """
    if drift_tolerance_days < 0:
        raise InvalidConfig("drift_tolerance_days must be non-negative")
    if current_boundary is None:
        return BoundaryState.STALE
    drift = abs((candidate_boundary - current_boundary).days)
    return BoundaryState.STALE if drift > drift_tolerance_days else BoundaryState.CURRENT


class FilteredIndexPlanner:
    """Produces idempotent drop + recreate plans for drifted filtered indexes."""

    def __init__(self, drift_tolerance_days: int = 0, online: bool = True):
        if drift_tolerance_days < 0:
            raise InvalidConfig("drift_tolerance_days must be non-negative")
        self.drift_tolerance_days = drift_tolerance_days
        self.online = online

    def plan(self,
             spec: RollingIndexSpec,
             existing: Optional[IndexDescriptor],
             now: Union[datetime, date]) -> FilteredIndexPlan:
        """
        Evaluate one rolling index against ``now``.

        Args:
            spec: The rolling-window declaration for the index
            existing: The index as currently defined, or None if it does not exist
            now: The run's single clock reading

        Returns:
            A plan whose ``applied_index`` describes the index after the
            directives run; planning again from it with the same ``now``
            yields CURRENT.

        Raises:
            IndexNotAlignedError: if the existing index is not partition-aligned
            InvalidConfig: if the window is negative or no key columns are known
        """
        if existing is not None and not existing.is_aligned:
            raise IndexNotAlignedError(spec.table_name, spec.index_name)

        candidate = compute_boundary(now, spec.lookback_days, spec.buffer_days)
        current = parse_boundary(existing.filter_predicate, spec.boundary_column) if existing else None

        if existing is not None:
            state = evaluate_boundary(current, candidate, self.drift_tolerance_days)
            if state == BoundaryState.CURRENT:
                logger.debug(f"{spec.index_name}: boundary {current} is current")
                return FilteredIndexPlan(
                    index_name=spec.index_name,
                    state=state,
                    candidate_boundary=candidate,
                    current_boundary=current,
                    applied_index=existing,
                )

        key_columns = existing.key_columns if existing and existing.key_columns else spec.key_columns
        if not key_columns:
            raise InvalidConfig(f"Rolling index '{spec.index_name}' has no key columns")
        if existing is not None:
            included = tuple(sorted(existing.included_columns))
        else:
            included = spec.included_columns

        new_predicate = build_boundary_predicate(spec.boundary_column, candidate)
        directives = []
        if existing is not None:
            directives.append(MaintenanceDirective(
                kind=DirectiveKind.DROP_INDEX,
                table_name=spec.table_name,
                target_index=spec.index_name,
                reason=f"boundary {current or 'unknown'} drifted from {candidate}",
            ))
        directives.append(MaintenanceDirective(
            kind=DirectiveKind.CREATE_INDEX,
            table_name=spec.table_name,
            target_index=spec.index_name,
            compression=spec.compression,
            new_filter_predicate=new_predicate,
            key_columns=tuple(key_columns),
            included_columns=included,
            online=self.online,
            storage=spec.storage,
            reason="first-time creation" if existing is None else "boundary refresh",
        ))

        applied = IndexDescriptor(
            name=spec.index_name,
            table_name=spec.table_name,
            key_columns=tuple(key_columns),
            included_columns=frozenset(included),
            filter_predicate=new_predicate,
            is_primary_or_unique=False,
            index_id=existing.index_id if existing else 0,
            index_type=2,
            is_aligned=True,
        )
        logger.debug(f"{spec.index_name}: stale boundary {current} -> {candidate}")
        return FilteredIndexPlan(
            index_name=spec.index_name,
            state=BoundaryState.STALE,
            candidate_boundary=candidate,
            current_boundary=current,
            directives=directives,
            applied_index=applied,
            first_creation=existing is None,
        )
