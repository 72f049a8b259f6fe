"""
Unused index identification.

Indexes that are never read but are written on every insert, update and
delete are pure overhead. Usage counters only cover one observation window,
so every finding carries that window: an index used only at month-end looks
unused for the rest of the month.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Any

import pandas as pd

from .errors import InvalidConfig
from .models import IndexDescriptor, IndexUsage, ObservationWindow
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_UPDATES_TO_FLAG = 100

WINDOW_CAVEAT = (
    "Usage counters cover a single observation window. Some indexes are only "
    "read during month-end, quarter-end or year-end processing; confirm the "
    "finding across several windows spanning a full business cycle before dropping."
)


@dataclass(frozen=True)
class UnusedIndexFinding:
    """Evidence that one index is write-only within a window."""
    index: IndexDescriptor
    usage: IndexUsage
    window: ObservationWindow

    @property
    def updates(self) -> int:
        return self.usage.updates

    def to_dict(self) -> Dict[str, Any]:
        return {
            'table': self.index.table_name,
            'index': self.index.name,
            'key_columns': ', '.join(self.index.key_columns),
            'filter': self.index.filter_predicate,
            'seeks': self.usage.seeks,
            'scans': self.usage.scans,
            'lookups': self.usage.lookups,
            'updates': self.usage.updates,
            'write_overhead': self.usage.write_overhead,
            'observed_since': self.window.observed_since,
            'observed_until': self.window.observed_until,
        }


@dataclass
class UnusedIndexReport:
    """Findings ranked by descending update count, all from the same window."""
    window: ObservationWindow
    findings: List[UnusedIndexFinding] = field(default_factory=list)
    caveat: str = WINDOW_CAVEAT

    def index_names(self) -> List[str]:
        return [f.index.name for f in self.findings]

    def to_dataframe(self) -> pd.DataFrame:
        columns = [
            'table', 'index', 'key_columns', 'filter', 'seeks', 'scans', 'lookups',
            'updates', 'write_overhead', 'observed_since', 'observed_until',
        ]
        return pd.DataFrame([f.to_dict() for f in self.findings], columns=columns)


class UnusedIndexDetector:
    """Flags indexes with zero reads and at least ``min_updates_to_flag`` writes."""

    def __init__(self, min_updates_to_flag: int = DEFAULT_MIN_UPDATES_TO_FLAG):
        if min_updates_to_flag < 0:
            raise InvalidConfig("min_updates_to_flag must be non-negative")
        self.min_updates_to_flag = min_updates_to_flag

    def is_unused(self, index: IndexDescriptor, usage: IndexUsage) -> bool:
        if index.is_primary_or_unique:
            return False
        return usage.reads == 0 and usage.updates >= self.min_updates_to_flag

    def detect(self,
               indexes: Sequence[IndexDescriptor],
               usage: Mapping[int, IndexUsage],
               window: ObservationWindow) -> UnusedIndexReport:
        """
        Evaluate every index against its usage counters.

        Indexes without a usage row are treated as never touched (all
        counters zero), so they can never reach the update threshold
        unless the threshold is zero.
        """
        report = UnusedIndexReport(window=window)
        for index in indexes:
            if index.index_type == 0:
                continue
            counters = usage.get(index.index_id) or IndexUsage(index_id=index.index_id)
            if self.is_unused(index, counters):
                report.findings.append(UnusedIndexFinding(index, counters, window))

        report.findings.sort(key=lambda f: f.updates, reverse=True)
        if report.findings:
            logger.info(
                f"{len(report.findings)} write-only index(es) over window {window.describe()}"
            )
        return report
