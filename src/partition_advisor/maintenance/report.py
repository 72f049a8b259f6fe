"""
Human-readable and structured summary of one maintenance planning run.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Any, Sequence, Tuple, Union

import pandas as pd

from .models import MaintenanceAction, MaintenanceDirective, SkipRecord


@dataclass(frozen=True)
class PartitionDecision:
    """What was decided for one (index, partition) inside the hot range."""
    index_id: int
    index_name: str
    partition_number: int
    fragmentation_pct: float
    page_count: int
    action: MaintenanceAction


@dataclass(frozen=True)
class FilteredIndexStatus:
    """Boundary state of one rolling filtered index."""
    index_name: str
    state: str
    current_boundary: Optional[date]
    candidate_boundary: Optional[date]
    first_creation: bool = False


@dataclass
class MaintenanceReport:
    """Everything a run decided, skipped or warned about for one table."""
    table_name: str
    now: Union[datetime, date]
    dry_run: bool = True
    hot_range: Optional[Tuple[int, int]] = None
    schedule: Optional[str] = None
    decisions: List[PartitionDecision] = field(default_factory=list)
    filtered_indexes: List[FilteredIndexStatus] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    directives: List[MaintenanceDirective] = field(default_factory=list)
    duration_seconds: Optional[float] = None

    def skip_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for skip in self.skipped:
            counts[skip.reason.value] = counts.get(skip.reason.value, 0) + 1
        return counts

    def render_text(self) -> str:
        """Render the report the way an operator reads a job log."""
        mode = "DRY RUN" if self.dry_run else "EXECUTE"
        lines = [
            "=" * 60,
            f"Maintenance plan for {self.table_name} ({mode})",
            f"Run time: {self.now.isoformat()}",
        ]
        if self.schedule:
            lines.append(f"Schedule: {self.schedule}")
        if self.hot_range:
            lines.append(f"Hot partitions: {self.hot_range[0]} - {self.hot_range[1]}")
        else:
            lines.append("Hot partitions: none")
        lines.append("=" * 60)

        if self.decisions:
            lines.append("")
            lines.append("Fragmentation decisions:")
            for d in self.decisions:
                lines.append(
                    f"  {d.index_name or d.index_id} P{d.partition_number}: "
                    f"{d.fragmentation_pct:.1f}% over {d.page_count} pages -> {d.action.value}"
                )

        if self.filtered_indexes:
            lines.append("")
            lines.append("Filtered indexes:")
            for f in self.filtered_indexes:
                suffix = " (first-time creation)" if f.first_creation else ""
                lines.append(
                    f"  {f.index_name}: {f.state} "
                    f"(current={f.current_boundary or 'none'}, target={f.candidate_boundary}){suffix}"
                )

        lines.append("")
        lines.append(f"Directives ({len(self.directives)}):")
        for i, directive in enumerate(self.directives, 1):
            target = directive.target_index or directive.table_name
            where = f" P{directive.partition_number}" if directive.partition_number else ""
            lines.append(f"  {i}. {directive.kind.value} {target}{where} - {directive.reason}")

        if self.skipped:
            lines.append("")
            lines.append("Skipped:")
            for skip in self.skipped:
                parts = [skip.reason.value]
                if skip.index_name:
                    parts.append(skip.index_name)
                if skip.partition_number is not None:
                    parts.append(f"P{skip.partition_number}")
                detail = f": {skip.detail}" if skip.detail else ""
                lines.append(f"  [{' '.join(parts)}]{detail}")

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  WARNING: {warning}")

        lines.append("")
        lines.append("Maintenance plan complete.")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'table': self.table_name,
            'now': self.now.isoformat(),
            'dry_run': self.dry_run,
            'schedule': self.schedule,
            'hot_range': list(self.hot_range) if self.hot_range else None,
            'decisions': [
                {
                    'index_id': d.index_id,
                    'index_name': d.index_name,
                    'partition': d.partition_number,
                    'fragmentation_pct': d.fragmentation_pct,
                    'page_count': d.page_count,
                    'action': d.action.value,
                }
                for d in self.decisions
            ],
            'filtered_indexes': [
                {
                    'index_name': f.index_name,
                    'state': f.state,
                    'current_boundary': f.current_boundary.isoformat() if f.current_boundary else None,
                    'candidate_boundary': f.candidate_boundary.isoformat() if f.candidate_boundary else None,
                    'first_creation': f.first_creation,
                }
                for f in self.filtered_indexes
            ],
            'skipped': [
                {
                    'reason': s.reason.value,
                    'index_name': s.index_name,
                    'partition': s.partition_number,
                    'detail': s.detail,
                }
                for s in self.skipped
            ],
            'warnings': list(self.warnings),
            'directives': [d.to_dict() for d in self.directives],
            'duration_seconds': self.duration_seconds,
        }


def directives_to_dataframe(directives: Sequence[MaintenanceDirective]) -> pd.DataFrame:
    """One row per directive, in plan order."""
    columns = [
        'kind', 'table', 'index', 'partition', 'compression', 'filter',
        'key_columns', 'included_columns', 'estimated_cost', 'online',
        'storage', 'reason',
    ]
    return pd.DataFrame([d.to_dict() for d in directives], columns=columns)
