"""
Unit tests for overlapping index detection.
"""

import pytest

from partition_advisor.maintenance.models import IndexDescriptor, SkipReason
from partition_advisor.maintenance.redundancy import RedundancyDetector, is_key_prefix

TABLE = "dbo.Transactions"


def index(name, keys, includes=(), predicate=None, **kwargs):
    return IndexDescriptor(name=name, table_name=TABLE, key_columns=tuple(keys),
                           included_columns=set(includes), filter_predicate=predicate, **kwargs)


class TestIsKeyPrefix:
    """Test suite for key prefix comparison."""

    @pytest.mark.parametrize("narrower,wider,expected", [
        (('AccountID',), ('AccountID', 'TransactionDate'), True),
        (('AccountID', 'TransactionDate'), ('AccountID', 'TransactionDate'), True),
        (('TransactionDate',), ('AccountID', 'TransactionDate'), False),
        (('AccountID', 'TransactionDate'), ('AccountID',), False),
        (('accountid',), ('[AccountID]', 'TransactionDate'), True),
        ((), ('AccountID',), False),
    ])
    def test_prefix(self, narrower, wider, expected):
        assert is_key_prefix(narrower, wider) is expected


class TestRedundancyDetector:
    """Test suite for RedundancyDetector."""

    @pytest.fixture
    def detector(self):
        return RedundancyDetector()

    def test_same_keys_wider_includes(self, detector, transaction_indexes):
        result = detector.detect(transaction_indexes)

        pairs = {(p.narrower.name, p.wider.name): p for p in result.pairs}
        assert ('IX_Transactions_AccountID', 'IX_Transactions_AccountID_Status') in pairs
        assert pairs[('IX_Transactions_AccountID', 'IX_Transactions_AccountID_Status')].covers_includes
        # Identical keys match both ways; only one direction covers the includes.
        assert not pairs[('IX_Transactions_AccountID_Status', 'IX_Transactions_AccountID')].covers_includes

    def test_clustered_primary_key_never_narrower(self, detector):
        indexes = [
            index('PK_Transactions', ['AccountID'], is_primary_or_unique=True, index_type=1),
            index('IX_Account_Date', ['AccountID', 'TransactionDate']),
        ]
        result = detector.detect(indexes)
        assert all(p.narrower.name != 'PK_Transactions' for p in result.pairs)
        assert result.pairs == []

    def test_unique_index_never_narrower(self, detector):
        indexes = [
            index('UX_Account', ['AccountID'], is_primary_or_unique=True),
            index('IX_Account_Date', ['AccountID', 'TransactionDate']),
        ]
        assert detector.detect(indexes).pairs == []

    def test_clustered_index_can_be_wider(self, detector):
        indexes = [
            index('CX_Date_ID', ['TransactionDate', 'TransactionID'], index_type=1),
            index('IX_Date', ['TransactionDate']),
        ]
        assert detector.detect(indexes).pair_names() == [('IX_Date', 'CX_Date_ID')]

    def test_filtered_index_is_not_covered_by_unfiltered(self, detector, transaction_indexes):
        result = detector.detect(transaction_indexes)
        assert all(p.narrower.name != 'IX_Transactions_Recent' for p in result.pairs)

    def test_equivalent_filters_match(self, detector):
        indexes = [
            index('IX_Active', ['AccountID'], predicate="([IsActive]=(1))"),
            index('IX_Active_Date', ['AccountID', 'TransactionDate'], predicate="[isactive] = (1)"),
        ]
        result = detector.detect(indexes)
        assert result.pair_names() == [('IX_Active', 'IX_Active_Date')]

    def test_filter_literal_case_ignored(self, detector):
        indexes = [
            index('IX_Status', ['AccountID'], predicate="[Status] = 'Active'"),
            index('IX_Status_Date', ['AccountID', 'TransactionDate'], predicate="[status]='ACTIVE'"),
        ]
        assert detector.detect(indexes).pair_names() == [('IX_Status', 'IX_Status_Date')]

    def test_different_filters_do_not_match(self, detector):
        indexes = [
            index('IX_Active', ['AccountID'], predicate="[IsActive] = 1"),
            index('IX_Account_Date', ['AccountID', 'TransactionDate']),
        ]
        assert detector.detect(indexes).pairs == []

    def test_ambiguous_filter_excludes_pair(self, detector):
        indexes = [
            index('IX_Recent', ['AccountID'], predicate="[CreatedAt] > GETDATE()"),
            index('IX_Recent_Date', ['AccountID', 'TransactionDate'], predicate="[CreatedAt] > GETDATE()"),
        ]
        result = detector.detect(indexes)

        assert result.pairs == []
        assert {s.reason for s in result.skipped} == {SkipReason.AMBIGUOUS_PREDICATE}

    def test_empty_key_columns_skipped(self, detector):
        indexes = [
            index('IX_Broken', []),
            index('IX_Account', ['AccountID']),
        ]
        result = detector.detect(indexes)

        assert result.pairs == []
        assert result.skipped[0].reason == SkipReason.EMPTY_KEY_COLUMNS
        assert result.skipped[0].index_name == 'IX_Broken'

    def test_no_self_pairs(self, detector):
        result = detector.detect([index('IX_Account', ['AccountID'])])
        assert result.pairs == []

    def test_column_names_compare_case_insensitively(self, detector):
        indexes = [
            index('IX_a', ['accountid']),
            index('IX_b', ['AccountID', 'Amount']),
        ]
        assert detector.detect(indexes).pair_names() == [('IX_a', 'IX_b')]

    def test_analysis_text(self, detector):
        indexes = [index('IX_a', ['AccountID']), index('IX_b', ['AccountID', 'Amount'])]
        pair = detector.detect(indexes).pairs[0]
        assert pair.analysis == "Potential duplicate: IX_a may be covered by IX_b"

    def test_empty_input(self, detector):
        result = detector.detect([])
        assert result.pairs == []
        assert result.skipped == []
