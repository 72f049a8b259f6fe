"""
Unit tests for partition-candidate scoring.
"""

import pytest

from partition_advisor.maintenance.candidate_scorer import (
    CandidateRecommendation, CandidateScorer, MAX_SCORE, recommend, score_profile
)
from partition_advisor.maintenance.models import TableProfile


def profile(name="dbo.T", rows=0, size_mb=0.0, indexes=0, temporal=False, partitioned=False):
    return TableProfile(name, rows, size_mb, indexes, temporal, partitioned)


class TestScoring:
    """Test suite for the score table."""

    def test_maximum_score(self):
        best = profile(rows=15_000_000, size_mb=20_000, indexes=6, temporal=True)
        assert score_profile(best) == 11 == MAX_SCORE
        assert recommend(best) == CandidateRecommendation.STRONG

    @pytest.mark.parametrize("rows,points", [
        (10_000_000, 3), (9_999_999, 2), (1_000_000, 2), (100_000, 1), (99_999, 0),
    ])
    def test_row_count_buckets(self, rows, points):
        assert score_profile(profile(rows=rows, partitioned=True)) == points

    @pytest.mark.parametrize("size_mb,points", [
        (10_240, 3), (1_024, 2), (1_023.9, 1), (100, 1), (99.9, 0),
    ])
    def test_size_buckets(self, size_mb, points):
        assert score_profile(profile(size_mb=size_mb, partitioned=True)) == points

    def test_signal_points(self):
        assert score_profile(profile(partitioned=True)) == 0
        assert score_profile(profile(temporal=True, partitioned=True)) == 2
        assert score_profile(profile(indexes=5, partitioned=True)) == 2
        assert score_profile(profile(indexes=4, partitioned=True)) == 0
        assert score_profile(profile()) == 1

    @pytest.mark.parametrize("kwargs,expected", [
        ({'rows': 15_000_000, 'temporal': True}, CandidateRecommendation.STRONG),
        ({'rows': 2_000_000, 'temporal': True}, CandidateRecommendation.GOOD),
        ({'rows': 200_000, 'temporal': True}, CandidateRecommendation.POSSIBLE),
        ({'rows': 50_000, 'temporal': True}, CandidateRecommendation.NOT_RECOMMENDED),
        ({'rows': 15_000_000, 'temporal': False}, CandidateRecommendation.NOT_RECOMMENDED),
        ({'rows': 15_000_000, 'temporal': True, 'partitioned': True}, CandidateRecommendation.ALREADY_PARTITIONED),
    ])
    def test_recommendations(self, kwargs, expected):
        assert recommend(profile(**kwargs)) == expected


class TestCandidateScorer:
    """Test suite for CandidateScorer ranking."""

    def test_sorted_by_score_then_rows(self):
        profiles = [
            profile('dbo.Small', rows=200_000, temporal=True),
            profile('dbo.BigA', rows=12_000_000, size_mb=2_000, temporal=True),
            profile('dbo.BigB', rows=14_000_000, size_mb=2_000, temporal=True),
            profile('dbo.Done', rows=50_000_000, size_mb=50_000, indexes=8, temporal=True, partitioned=True),
        ]
        ranked = CandidateScorer().score(profiles)

        assert [s.profile.name for s in ranked] == ['dbo.Done', 'dbo.BigB', 'dbo.BigA', 'dbo.Small']
        assert [s.score for s in ranked] == [10, 8, 8, 4]

    def test_row_count_floor(self):
        profiles = [profile('dbo.Empty', rows=0), profile('dbo.Some', rows=10)]
        ranked = CandidateScorer(min_row_count_floor=1).score(profiles)
        assert [s.profile.name for s in ranked] == ['dbo.Some']

    def test_to_dataframe(self):
        ranked = CandidateScorer().score([profile('dbo.T', rows=15_000_000, size_mb=20_000,
                                                  indexes=6, temporal=True)])
        df = CandidateScorer.to_dataframe(ranked)

        assert list(df['table_name']) == ['dbo.T']
        assert df.loc[0, 'score'] == 11
        assert df.loc[0, 'recommendation'] == 'strong'

    def test_empty_dataframe_has_columns(self):
        df = CandidateScorer.to_dataframe([])
        assert df.empty
        assert 'recommendation' in df.columns
