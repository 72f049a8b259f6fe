"""
Partition temperature classification and compression tier management.

Tiers are derived purely from partition ordinal position: the storage engine
already maps dates to partition numbers, so no date arithmetic happens here.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import InvalidConfig
from .models import (
    Compression, DirectiveKind, MaintenanceDirective, PartitionStat,
    StorageTier, TierAssignment
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

TIER_COMPRESSION = {
    StorageTier.WARM: Compression.ROW,
    StorageTier.COLD: Compression.PAGE,
    StorageTier.ARCHIVE: Compression.PAGE,
}


class TemperatureClassifier:
    """
    Count-based tier lookup.

    A partition is HOT iff ``partition_number > max_partition_number - hot_count``.
    With ``warm_count`` > 0 the partitions just below the hot range are WARM,
    and with ``archive_first_partition`` the leftmost catch-all partition is
    labelled ARCHIVE. Everything else is COLD.
    """

    def __init__(self,
                 hot_compression: Compression = Compression.ROW,
                 archive_first_partition: bool = False):
        if hot_compression == Compression.PAGE:
            raise InvalidConfig("Hot partitions use ROW or NONE compression")
        self.hot_compression = hot_compression
        self.archive_first_partition = archive_first_partition

    def classify(self,
                 partition_number: int,
                 max_partition_number: int,
                 hot_count: int,
                 warm_count: int = 0) -> TierAssignment:
        if hot_count < 0 or warm_count < 0:
            raise InvalidConfig("hot_count and warm_count must be non-negative")
        if not 1 <= partition_number <= max_partition_number:
            raise ValueError(
                f"partition_number {partition_number} outside 1..{max_partition_number}"
            )

        hot_floor = max_partition_number - hot_count
        if partition_number > hot_floor:
            return TierAssignment(partition_number, StorageTier.HOT, self.hot_compression)
        if partition_number > hot_floor - warm_count:
            tier = StorageTier.WARM
        elif self.archive_first_partition and partition_number == 1:
            tier = StorageTier.ARCHIVE
        else:
            tier = StorageTier.COLD
        return TierAssignment(partition_number, tier, TIER_COMPRESSION[tier])

    def is_hot(self, partition_number: int, max_partition_number: int, hot_count: int) -> bool:
        return self.classify(partition_number, max_partition_number, hot_count).tier == StorageTier.HOT


def hot_partition_range(max_partition_number: int, hot_count: int) -> Optional[Tuple[int, int]]:
    """Inclusive (first, last) hot partition numbers, or None when nothing is hot."""
    if hot_count < 0:
        raise InvalidConfig("hot_count must be non-negative")
    if hot_count == 0 or max_partition_number < 1:
        return None
    return max(1, max_partition_number - hot_count + 1), max_partition_number


@dataclass(frozen=True)
class CompressionDecision:
    """Current versus desired compression for one partition."""
    partition_number: int
    tier: StorageTier
    current: Compression
    target: Compression
    row_count: int
    page_count: int = 0

    @property
    def needs_upgrade(self) -> bool:
        return self.target.rank > self.current.rank


class CompressionTierPlanner:
    """
    Plans compression upgrades as partitions cool.

    Only base structures (heap or clustered index) with rows are considered,
    and compression is only ever raised (NONE -> ROW -> PAGE), never lowered.
    """

    def __init__(self, classifier: Optional[TemperatureClassifier] = None, online: bool = True):
        self.classifier = classifier or TemperatureClassifier(archive_first_partition=True)
        self.online = online

    def evaluate(self,
                 stats: Sequence[PartitionStat],
                 hot_count: int,
                 warm_count: int = 0) -> List[CompressionDecision]:
        base: Dict[int, PartitionStat] = {}
        for stat in stats:
            if stat.index_type in (0, 1):
                base.setdefault(stat.partition_number, stat)
        if not base:
            return []

        max_partition = max(base)
        decisions = []
        for partition_number in sorted(base):
            stat = base[partition_number]
            if stat.row_count <= 0:
                continue
            assignment = self.classifier.classify(partition_number, max_partition, hot_count, warm_count)
            decisions.append(CompressionDecision(
                partition_number=partition_number,
                tier=assignment.tier,
                current=stat.compression,
                target=assignment.target_compression,
                row_count=stat.row_count,
                page_count=stat.page_count,
            ))
        return decisions

    def plan(self,
             table_name: str,
             stats: Sequence[PartitionStat],
             hot_count: int,
             warm_count: int = 0) -> Tuple[List[MaintenanceDirective], List[CompressionDecision]]:
        decisions = self.evaluate(stats, hot_count, warm_count)
        directives = []
        for decision in decisions:
            if not decision.needs_upgrade:
                continue
            logger.debug(
                f"{table_name} P{decision.partition_number}: "
                f"{decision.current.value} -> {decision.target.value} ({decision.tier.value})"
            )
            directives.append(MaintenanceDirective(
                kind=DirectiveKind.COMPRESS,
                table_name=table_name,
                partition_number=decision.partition_number,
                compression=decision.target,
                estimated_cost=decision.page_count,
                online=self.online,
                reason=f"{decision.tier.value} tier expects {decision.target.value} compression",
            ))
        return directives, decisions
