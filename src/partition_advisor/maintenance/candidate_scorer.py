"""
Partition-candidate scoring.

Ranks tables by how much they would gain from time-based partitioning.

Scoring criteria (cumulative, higher = better candidate):
    - Row count:           10M+ = 3pts, 1M+ = 2pts, 100K+ = 1pt
    - Has temporal column: 2pts
    - Table size:          10GB+ = 3pts, 1GB+ = 2pts, 100MB+ = 1pt
    - Index count:         5+ = 2pts (more maintenance benefit)
    - Not yet partitioned: 1pt
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

import pandas as pd

from .models import TableProfile

ROW_COUNT_BUCKETS = [(10_000_000, 3), (1_000_000, 2), (100_000, 1)]
SIZE_MB_BUCKETS = [(10_240, 3), (1_024, 2), (100, 1)]
TEMPORAL_COLUMN_POINTS = 2
MANY_INDEXES_THRESHOLD = 5
MANY_INDEXES_POINTS = 2
NOT_PARTITIONED_POINTS = 1
MAX_SCORE = 3 + TEMPORAL_COLUMN_POINTS + 3 + MANY_INDEXES_POINTS + NOT_PARTITIONED_POINTS


class CandidateRecommendation(Enum):
    """Recommendation tiers for partition candidacy."""
    STRONG = "strong"                            # Partition immediately
    GOOD = "good"                                # Evaluate query patterns
    POSSIBLE = "possible"                        # Monitor growth
    ALREADY_PARTITIONED = "already-partitioned"
    NOT_RECOMMENDED = "not-recommended"


@dataclass(frozen=True)
class ScoredTable:
    """A table profile annotated with its candidacy score."""
    profile: TableProfile
    score: int
    recommendation: CandidateRecommendation


def _bucket_points(value: float, buckets) -> int:
    for threshold, points in buckets:
        if value >= threshold:
            return points
    return 0


def score_profile(profile: TableProfile) -> int:
    score = _bucket_points(profile.row_count, ROW_COUNT_BUCKETS)
    score += TEMPORAL_COLUMN_POINTS if profile.has_temporal_column else 0
    score += _bucket_points(profile.total_size_mb, SIZE_MB_BUCKETS)
    score += MANY_INDEXES_POINTS if profile.index_count >= MANY_INDEXES_THRESHOLD else 0
    score += NOT_PARTITIONED_POINTS if not profile.is_partitioned else 0
    return score


def recommend(profile: TableProfile) -> CandidateRecommendation:
    eligible = profile.has_temporal_column and not profile.is_partitioned
    if eligible and profile.row_count >= 10_000_000:
        return CandidateRecommendation.STRONG
    if eligible and profile.row_count >= 1_000_000:
        return CandidateRecommendation.GOOD
    if eligible and profile.row_count >= 100_000:
        return CandidateRecommendation.POSSIBLE
    if profile.is_partitioned:
        return CandidateRecommendation.ALREADY_PARTITIONED
    return CandidateRecommendation.NOT_RECOMMENDED


class CandidateScorer:
    """Scores and ranks table profiles; descending score, ties by descending row count."""

    def __init__(self, min_row_count_floor: int = 0):
        self.min_row_count_floor = min_row_count_floor

    def score(self, profiles: Sequence[TableProfile]) -> List[ScoredTable]:
        scored = [
            ScoredTable(profile=p, score=score_profile(p), recommendation=recommend(p))
            for p in profiles
            if p.row_count >= self.min_row_count_floor
        ]
        scored.sort(key=lambda s: (-s.score, -s.profile.row_count))
        return scored

    @staticmethod
    def to_dataframe(scored: Sequence[ScoredTable]) -> pd.DataFrame:
        """Tabular view of scored tables, in ranking order."""
        return pd.DataFrame([
            {
                'table_name': s.profile.name,
                'row_count': s.profile.row_count,
                'total_size_mb': s.profile.total_size_mb,
                'index_count': s.profile.index_count,
                'has_temporal_column': s.profile.has_temporal_column,
                'is_partitioned': s.profile.is_partitioned,
                'score': s.score,
                'recommendation': s.recommendation.value,
            }
            for s in scored
        ], columns=[
            'table_name', 'row_count', 'total_size_mb', 'index_count',
            'has_temporal_column', 'is_partitioned', 'score', 'recommendation',
        ])
