"""
Fragmentation-to-action policy for a single partition.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidConfig
from .models import MaintenanceAction, PartitionStat, SkipReason

DEFAULT_REORG_THRESHOLD = 10.0
DEFAULT_REBUILD_THRESHOLD = 30.0
DEFAULT_MIN_PAGE_COUNT = 1000


@dataclass(frozen=True)
class ActionDecision:
    """The action chosen for one partition, with the reason when nothing is done."""
    action: MaintenanceAction
    skip_reason: Optional[SkipReason] = None


class ActionPolicy:
    """
    Maps a partition's fragmentation sample to NoAction, Reorganize or Rebuild.

    Partitions smaller than ``min_page_count`` are ignored whatever their
    fragmentation. At an exact threshold the more aggressive action wins.
    """

    def __init__(self,
                 reorg_threshold: float = DEFAULT_REORG_THRESHOLD,
                 rebuild_threshold: float = DEFAULT_REBUILD_THRESHOLD,
                 min_page_count: int = DEFAULT_MIN_PAGE_COUNT):
        if not 0.0 <= reorg_threshold < rebuild_threshold <= 100.0:
            raise InvalidConfig(
                f"Thresholds must satisfy 0 <= reorg ({reorg_threshold}) "
                f"< rebuild ({rebuild_threshold}) <= 100"
            )
        if min_page_count < 0:
            raise InvalidConfig("min_page_count must be non-negative")
        self.reorg_threshold = reorg_threshold
        self.rebuild_threshold = rebuild_threshold
        self.min_page_count = min_page_count

    def evaluate(self, stat: PartitionStat) -> ActionDecision:
        if stat.page_count < self.min_page_count:
            return ActionDecision(MaintenanceAction.NO_ACTION, SkipReason.BELOW_PAGE_FLOOR)
        if stat.fragmentation_pct >= self.rebuild_threshold:
            return ActionDecision(MaintenanceAction.REBUILD)
        if stat.fragmentation_pct >= self.reorg_threshold:
            return ActionDecision(MaintenanceAction.REORGANIZE)
        return ActionDecision(MaintenanceAction.NO_ACTION, SkipReason.BELOW_REORG_THRESHOLD)

    def decide(self, stat: PartitionStat) -> MaintenanceAction:
        return self.evaluate(stat).action


def decide_action(stat: PartitionStat,
                  reorg_threshold: float = DEFAULT_REORG_THRESHOLD,
                  rebuild_threshold: float = DEFAULT_REBUILD_THRESHOLD,
                  min_page_count: int = DEFAULT_MIN_PAGE_COUNT) -> MaintenanceAction:
    """Functional form of ActionPolicy for one-off decisions."""
    return ActionPolicy(reorg_threshold, rebuild_threshold, min_page_count).decide(stat)
