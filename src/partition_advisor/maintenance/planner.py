"""
Per-table maintenance planning.

Composes the statistics source, fragmentation policy, temperature classifier,
compression tiering and rolling filtered-index refresh into one ordered list
of directives plus a report. Nothing here executes a directive.
"""

import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Any, Sequence, Set, Tuple, Union

import pandas as pd

from .action_policy import ActionPolicy
from .candidate_scorer import CandidateScorer, ScoredTable
from .errors import IndexNotAlignedError, InvalidConfig, StatSourceUnavailable
from .filtered_index import (
    BoundaryState, FilteredIndexPlanner, RollingIndexSpec, compute_boundary
)
from .models import (
    Compression, DirectiveKind, IndexDescriptor, MaintenanceAction, MaintenanceDirective,
    ObservationWindow, PartitionStat, SkipReason, SkipRecord
)
from .redundancy import RedundancyDetector, RedundancyResult
from .report import (
    FilteredIndexStatus, MaintenanceReport, PartitionDecision, directives_to_dataframe
)
from .temperature import CompressionTierPlanner, TemperatureClassifier, hot_partition_range
from .unused_index import UnusedIndexDetector, UnusedIndexReport
from ..config.settings import MaintenanceConfig, build_maintenance_config
from ..utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)


class MaintenanceSchedule(Enum):
    """Cadences of the maintenance job and what each one covers."""
    NIGHTLY = "nightly"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def hot_partition_count(self) -> int:
        return _SCHEDULE_HOT_COUNT[self]

    @property
    def manages_compression(self) -> bool:
        return self in (MaintenanceSchedule.WEEKLY, MaintenanceSchedule.MONTHLY)


_SCHEDULE_HOT_COUNT = {
    MaintenanceSchedule.NIGHTLY: 3,
    MaintenanceSchedule.WEEKLY: 4,
    MaintenanceSchedule.MONTHLY: 6,
}


@dataclass
class MaintenancePlan:
    """Ordered directives for one table plus the report explaining them."""
    table_name: str
    directives: List[MaintenanceDirective]
    report: MaintenanceReport
    dry_run: bool = True

    def kinds(self) -> List[DirectiveKind]:
        return [d.kind for d in self.directives]

    def to_dataframe(self) -> pd.DataFrame:
        return directives_to_dataframe(self.directives)


@dataclass
class BatchPlanResult:
    """Outcome of planning several independent tables."""
    plans: Dict[str, MaintenancePlan] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)
    cancelled: List[str] = field(default_factory=list)

    @property
    def all_directives(self) -> List[MaintenanceDirective]:
        directives = []
        for plan in self.plans.values():
            directives.extend(plan.directives)
        return directives


class MaintenancePlanner:
    """
    Orchestrates maintenance planning for partitioned tables.

    Configuration is validated when the planner is built, so an invalid
    threshold or window fails before any statistics are read or any
    directive is produced.
    """

    def __init__(self,
                 stat_source,
                 config: Union[MaintenanceConfig, Dict[str, Any], None] = None,
                 rolling_indexes: Optional[Sequence[RollingIndexSpec]] = None):
        """
        Initialize the planner.

        Args:
            stat_source: Any object implementing the StatSource interface
            config: MaintenanceConfig or a plain dict of its fields
            rolling_indexes: Filtered indexes to keep on a trailing date window

        Raises:
            InvalidConfig: if the configuration or a rolling index window is invalid
        """
        if isinstance(config, MaintenanceConfig):
            self.config = config
        else:
            self.config = build_maintenance_config(config)

        self.stat_source = stat_source
        self.policy = ActionPolicy(
            reorg_threshold=self.config.reorg_threshold,
            rebuild_threshold=self.config.rebuild_threshold,
            min_page_count=self.config.min_page_count,
        )
        self.classifier = TemperatureClassifier(hot_compression=self.config.hot_compression)
        self.compression_planner = CompressionTierPlanner(
            TemperatureClassifier(hot_compression=self.config.hot_compression,
                                  archive_first_partition=True),
            online=self.config.online_rebuild,
        )
        self.filtered_planner = FilteredIndexPlanner(
            drift_tolerance_days=self.config.drift_tolerance_days,
            online=self.config.online_rebuild,
        )
        self.redundancy_detector = RedundancyDetector()
        self.unused_detector = UnusedIndexDetector(self.config.min_updates_to_flag)
        self.candidate_scorer = CandidateScorer(self.config.min_row_count_floor)

        self.rolling_indexes: Dict[str, List[RollingIndexSpec]] = defaultdict(list)
        for spec in rolling_indexes or []:
            # Surface negative windows now rather than mid-run.
            compute_boundary(date.today(), spec.lookback_days, spec.buffer_days)
            self.rolling_indexes[spec.table_name].append(spec)

    def rolling_index(self,
                      table_name: str,
                      index_name: str,
                      boundary_column: str,
                      key_columns: Sequence[str] = (),
                      included_columns: Sequence[str] = (),
                      partition_scheme: Optional[str] = None) -> RollingIndexSpec:
        """Register a rolling filtered index using the configured window."""
        spec = RollingIndexSpec(
            index_name=index_name,
            table_name=table_name,
            boundary_column=boundary_column,
            key_columns=tuple(key_columns),
            included_columns=tuple(included_columns),
            lookback_days=self.config.lookback_days,
            buffer_days=self.config.buffer_days,
            partition_scheme=partition_scheme,
            compression=self.config.hot_compression,
        )
        self.rolling_indexes[table_name].append(spec)
        return spec

    def _resolve_hot_count(self,
                           hot_partition_count: Optional[int],
                           schedule: Optional[MaintenanceSchedule]) -> int:
        if hot_partition_count is not None:
            if hot_partition_count < 0:
                raise InvalidConfig("hot_partition_count must be non-negative")
            return hot_partition_count
        if schedule is not None:
            return schedule.hot_partition_count
        return self.config.hot_partition_count

    def plan_table(self,
                   table_name: str,
                   hot_partition_count: Optional[int] = None,
                   now: Union[datetime, date, None] = None,
                   dry_run: bool = True,
                   schedule: Optional[MaintenanceSchedule] = None,
                   include_compression: bool = False) -> MaintenancePlan:
        """
        Plan maintenance for a single table.

        Directive order: reorganize/rebuild (ascending partition, then index
        id), compression upgrades, filtered-index drop/create pairs, and a
        final statistics refresh.

        Args:
            table_name: Table to plan
            hot_partition_count: Trailing partitions to maintain; overrides schedule and config
            now: The run's clock reading; read once from the wall clock if omitted
            dry_run: Carried into the plan and report for the executing collaborator
            schedule: Optional cadence supplying hot count and compression policy
            include_compression: Run compression tiering without a schedule

        Raises:
            InvalidConfig: if hot_partition_count is negative
            StatSourceUnavailable: if statistics for the table cannot be read
        """
        hot_count = self._resolve_hot_count(hot_partition_count, schedule)
        run_compression = include_compression or (schedule is not None and schedule.manages_compression)
        if now is None:
            now = datetime.now()

        report = MaintenanceReport(
            table_name=table_name,
            now=now,
            dry_run=dry_run,
            schedule=schedule.value if schedule else None,
        )

        with PerformanceLogger(f"maintenance plan {table_name}", logger) as perf:
            stats = self.stat_source.get_partition_stats(table_name)
            descriptors = self.stat_source.get_index_descriptors(table_name)
            index_names = {d.index_id: d.name for d in descriptors}

            max_partition = max((s.partition_number for s in stats), default=0)
            report.hot_range = hot_partition_range(max_partition, hot_count)

            directives, rebuilt = self._plan_fragmentation(
                table_name, stats, index_names, max_partition, hot_count, report
            )
            if run_compression:
                directives.extend(self._plan_compression(table_name, stats, hot_count, rebuilt))
            directives.extend(self._plan_filtered_indexes(table_name, descriptors, now, report))
            directives.append(MaintenanceDirective(
                kind=DirectiveKind.UPDATE_STATISTICS,
                table_name=table_name,
                reason="refresh statistics after maintenance",
            ))
            report.directives = directives

        report.duration_seconds = perf.duration
        logger.info(
            f"{table_name}: {len(directives)} directive(s), {len(report.skipped)} skip(s), "
            f"{len(report.warnings)} warning(s)"
        )
        return MaintenancePlan(table_name=table_name, directives=directives, report=report, dry_run=dry_run)

    def _plan_fragmentation(self,
                            table_name: str,
                            stats: Sequence[PartitionStat],
                            index_names: Dict[int, str],
                            max_partition: int,
                            hot_count: int,
                            report: MaintenanceReport) -> Tuple[List[MaintenanceDirective], Set[int]]:
        """Fragmentation directives plus the partitions whose clustered index is rebuilt."""
        candidates: List[Tuple[PartitionStat, MaintenanceAction, str]] = []
        cold_counts: Dict[str, int] = defaultdict(int)

        for stat in sorted(stats, key=lambda s: (s.partition_number, s.index_id)):
            name = stat.index_name or index_names.get(stat.index_id) or f"index_id={stat.index_id}"
            if stat.is_heap:
                report.skipped.append(SkipRecord(
                    SkipReason.HEAP, index_name=name, partition_number=stat.partition_number,
                    detail="heap has no index to maintain",
                ))
                continue
            if not self.classifier.is_hot(stat.partition_number, max_partition, hot_count):
                cold_counts[name] += 1
                continue

            decision = self.policy.evaluate(stat)
            report.decisions.append(PartitionDecision(
                index_id=stat.index_id,
                index_name=name,
                partition_number=stat.partition_number,
                fragmentation_pct=stat.fragmentation_pct,
                page_count=stat.page_count,
                action=decision.action,
            ))
            if decision.action == MaintenanceAction.NO_ACTION:
                report.skipped.append(SkipRecord(
                    decision.skip_reason, index_name=name, partition_number=stat.partition_number,
                    detail=f"{stat.fragmentation_pct:.1f}% over {stat.page_count} pages",
                ))
                continue
            candidates.append((stat, decision.action, name))

        for name, count in sorted(cold_counts.items()):
            report.skipped.append(SkipRecord(
                SkipReason.OUTSIDE_HOT_WINDOW, index_name=name,
                detail=f"{count} partition(s) below the hot range",
            ))

        admitted = self._apply_budget(candidates, report)
        admitted.sort(key=lambda c: (c[0].partition_number, c[0].index_id))

        directives = []
        rebuilt = set()
        for stat, action, name in admitted:
            if action == MaintenanceAction.REBUILD:
                if stat.index_type == 1:
                    rebuilt.add(stat.partition_number)
                directive = MaintenanceDirective(
                    kind=DirectiveKind.REBUILD,
                    table_name=table_name,
                    target_index=name,
                    partition_number=stat.partition_number,
                    compression=self._rebuild_compression(stat),
                    estimated_cost=stat.page_count,
                    online=self.config.online_rebuild,
                    reason=f"fragmentation {stat.fragmentation_pct:.1f}% >= {self.policy.rebuild_threshold}",
                )
            else:
                directive = MaintenanceDirective(
                    kind=DirectiveKind.REORGANIZE,
                    table_name=table_name,
                    target_index=name,
                    partition_number=stat.partition_number,
                    estimated_cost=stat.page_count,
                    reason=f"fragmentation {stat.fragmentation_pct:.1f}% >= {self.policy.reorg_threshold}",
                )
            logger.debug(f"{table_name} {name} P{stat.partition_number}: {action.value}")
            directives.append(directive)
        return directives, rebuilt

    def _rebuild_compression(self, stat: PartitionStat) -> Compression:
        # Rebuilds never lower compression already applied to the partition.
        if stat.compression.rank > self.config.hot_compression.rank:
            return stat.compression
        return self.config.hot_compression

    def _apply_budget(self,
                      candidates: List[Tuple[PartitionStat, MaintenanceAction, str]],
                      report: MaintenanceReport) -> List[Tuple[PartitionStat, MaintenanceAction, str]]:
        budget = self.config.max_pages_per_run
        if budget is None:
            return list(candidates)

        # Worst fragmentation first, then largest structures.
        ranked = sorted(candidates, key=lambda c: (-c[0].fragmentation_pct, -c[0].page_count))
        admitted = []
        spent = 0
        for candidate in ranked:
            stat = candidate[0]
            if spent + stat.page_count <= budget:
                admitted.append(candidate)
                spent += stat.page_count
                continue
            report.skipped.append(SkipRecord(
                SkipReason.BUDGET_EXHAUSTED, index_name=candidate[2],
                partition_number=stat.partition_number,
                detail=f"{stat.page_count} pages exceed remaining budget of {budget - spent}",
            ))
        if len(admitted) < len(candidates):
            logger.warning(
                f"{report.table_name}: page budget {budget} admitted "
                f"{len(admitted)} of {len(candidates)} index operation(s)"
            )
        return admitted

    def _plan_compression(self,
                          table_name: str,
                          stats: Sequence[PartitionStat],
                          hot_count: int,
                          rebuilt_partitions: Set[int]) -> List[MaintenanceDirective]:
        directives, _ = self.compression_planner.plan(
            table_name, stats, hot_count, self.config.warm_partition_count
        )
        # A clustered rebuild already rewrites its partition.
        return [d for d in directives if d.partition_number not in rebuilt_partitions]

    def _plan_filtered_indexes(self,
                               table_name: str,
                               descriptors: Sequence[IndexDescriptor],
                               now: Union[datetime, date],
                               report: MaintenanceReport) -> List[MaintenanceDirective]:
        existing_by_name = {d.name.casefold(): d for d in descriptors}
        directives = []
        for spec in self.rolling_indexes.get(table_name, []):
            existing = existing_by_name.get(spec.index_name.casefold())
            if existing is None and not spec.key_columns:
                message = f"{spec.index_name} does not exist and declares no key columns"
                report.skipped.append(SkipRecord(SkipReason.INDEX_MISSING, index_name=spec.index_name,
                                                 detail=message))
                report.warnings.append(message)
                logger.warning(f"{table_name}: {message}")
                continue
            if existing is not None and not existing.key_columns and not spec.key_columns:
                message = f"{spec.index_name} has no key columns to recreate it with"
                report.skipped.append(SkipRecord(SkipReason.EMPTY_KEY_COLUMNS, index_name=spec.index_name,
                                                 detail=message))
                report.warnings.append(message)
                logger.warning(f"{table_name}: {message}")
                continue

            try:
                plan = self.filtered_planner.plan(spec, existing, now)
            except IndexNotAlignedError as e:
                report.skipped.append(SkipRecord(SkipReason.NOT_ALIGNED, index_name=spec.index_name,
                                                 detail=str(e)))
                report.warnings.append(str(e))
                logger.warning(f"{table_name}: {e}")
                continue

            report.filtered_indexes.append(FilteredIndexStatus(
                index_name=spec.index_name,
                state=plan.state.value,
                current_boundary=plan.current_boundary,
                candidate_boundary=plan.candidate_boundary,
                first_creation=plan.first_creation,
            ))
            if plan.state == BoundaryState.CURRENT:
                report.skipped.append(SkipRecord(
                    SkipReason.BOUNDARY_CURRENT, index_name=spec.index_name,
                    detail=f"boundary {plan.current_boundary} is current",
                ))
            directives.extend(plan.directives)
        return directives

    def plan_tables(self,
                    tables: Sequence[str],
                    hot_partition_count: Optional[int] = None,
                    now: Union[datetime, date, None] = None,
                    dry_run: bool = True,
                    schedule: Optional[MaintenanceSchedule] = None,
                    include_compression: bool = False,
                    max_workers: Optional[int] = None,
                    cancel_event: Optional[threading.Event] = None) -> BatchPlanResult:
        """
        Plan several tables independently.

        A table whose statistics cannot be read, or whose planning raises, is
        recorded in ``failures`` and does not affect the others. Once
        ``cancel_event`` is set, tables not yet started are listed in
        ``cancelled``; runs already started finish normally.
        """
        self._resolve_hot_count(hot_partition_count, schedule)
        if now is None:
            now = datetime.now()
        result = BatchPlanResult()

        def run_one(table_name: str):
            if cancel_event is not None and cancel_event.is_set():
                return table_name, None, None
            try:
                plan = self.plan_table(
                    table_name,
                    hot_partition_count=hot_partition_count,
                    now=now,
                    dry_run=dry_run,
                    schedule=schedule,
                    include_compression=include_compression,
                )
                return table_name, plan, None
            except StatSourceUnavailable as e:
                logger.error(f"{table_name}: statistics unavailable - {e}")
                return table_name, None, e
            except Exception as e:
                logger.error(f"{table_name}: planning failed - {e}")
                return table_name, None, e

        if max_workers is None or max_workers <= 1:
            outcomes = [run_one(t) for t in tables]
        else:
            with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="Planner") as executor:
                futures = [executor.submit(run_one, t) for t in tables]
                outcomes = [future.result() for future in as_completed(futures)]

        order = {t: i for i, t in enumerate(tables)}
        for table_name, plan, error in sorted(outcomes, key=lambda o: order[o[0]]):
            if error is not None:
                result.failures[table_name] = error
            elif plan is None:
                result.cancelled.append(table_name)
            else:
                result.plans[table_name] = plan

        logger.info(
            f"Planned {len(result.plans)} table(s), {len(result.failures)} failed, "
            f"{len(result.cancelled)} cancelled"
        )
        return result

    def find_redundant_indexes(self, table_name: str) -> RedundancyResult:
        """Report indexes whose keys and filter are covered by a wider index."""
        result = self.redundancy_detector.detect(self.stat_source.get_index_descriptors(table_name))
        result.table_name = table_name
        for skip in result.skipped:
            if skip.reason == SkipReason.AMBIGUOUS_PREDICATE:
                logger.warning(f"{table_name}: {skip.detail}")
        return result

    def find_unused_indexes(self,
                            table_name: str,
                            observed_since: Optional[datetime] = None,
                            now: Optional[datetime] = None) -> UnusedIndexReport:
        """Report write-only indexes over the window ending at ``now``."""
        window = ObservationWindow(observed_until=now or datetime.now(), observed_since=observed_since)
        descriptors = self.stat_source.get_index_descriptors(table_name)
        usage = self.stat_source.get_index_usage(table_name)
        return self.unused_detector.detect(descriptors, usage, window)

    def score_candidates(self) -> List[ScoredTable]:
        """Rank every table above the row-count floor as a partitioning candidate."""
        profiles = self.stat_source.get_table_profiles(self.config.min_row_count_floor)
        return self.candidate_scorer.score(profiles)
