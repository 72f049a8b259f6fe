"""
Partition-aware maintenance decision engine.

Maps physical storage statistics to ordered maintenance directives, keeps
rolling filtered indexes bounded, and flags redundant, unused and
partition-worthy structures.
"""

from .errors import (
    AdvisorError, InvalidConfig, StatSourceUnavailable,
    IndexNotAlignedError, AmbiguousPredicateError
)
from .models import (
    Compression, MaintenanceAction, StorageTier, DirectiveKind, SkipReason,
    PartitionStat, IndexUsage, IndexDescriptor, TableProfile,
    MaintenanceDirective, TierAssignment, ObservationWindow, SkipRecord
)
from .action_policy import ActionPolicy, ActionDecision, decide_action
from .temperature import (
    TemperatureClassifier, CompressionTierPlanner, CompressionDecision,
    hot_partition_range
)
from .predicates import canonicalize_predicate, build_boundary_predicate, parse_boundary
from .filtered_index import (
    BoundaryState, RollingIndexSpec, FilteredIndexPlan, FilteredIndexPlanner,
    compute_boundary, evaluate_boundary
)
from .redundancy import RedundancyDetector, RedundancyResult, RedundantPair
from .unused_index import UnusedIndexDetector, UnusedIndexReport, UnusedIndexFinding
from .candidate_scorer import CandidateScorer, CandidateRecommendation, ScoredTable
from .report import MaintenanceReport, PartitionDecision, FilteredIndexStatus
from .planner import MaintenancePlanner, MaintenancePlan, MaintenanceSchedule, BatchPlanResult

__all__ = [
    'AdvisorError', 'InvalidConfig', 'StatSourceUnavailable',
    'IndexNotAlignedError', 'AmbiguousPredicateError',
    'Compression', 'MaintenanceAction', 'StorageTier', 'DirectiveKind', 'SkipReason',
    'PartitionStat', 'IndexUsage', 'IndexDescriptor', 'TableProfile',
    'MaintenanceDirective', 'TierAssignment', 'ObservationWindow', 'SkipRecord',
    'ActionPolicy', 'ActionDecision', 'decide_action',
    'TemperatureClassifier', 'CompressionTierPlanner', 'CompressionDecision',
    'hot_partition_range',
    'canonicalize_predicate', 'build_boundary_predicate', 'parse_boundary',
    'BoundaryState', 'RollingIndexSpec', 'FilteredIndexPlan', 'FilteredIndexPlanner',
    'compute_boundary', 'evaluate_boundary',
    'RedundancyDetector', 'RedundancyResult', 'RedundantPair',
    'UnusedIndexDetector', 'UnusedIndexReport', 'UnusedIndexFinding',
    'CandidateScorer', 'CandidateRecommendation', 'ScoredTable',
    'MaintenanceReport', 'PartitionDecision', 'FilteredIndexStatus',
    'MaintenancePlanner', 'MaintenancePlan', 'MaintenanceSchedule', 'BatchPlanResult',
]
