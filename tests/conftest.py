"""
Pytest configuration and fixtures for partition maintenance advisor tests.

Provides shared statistics snapshots, configuration and a fixed clock
reading for the test suite.
"""

import pytest
import sys
from pathlib import Path
from datetime import datetime

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from partition_advisor.config.settings import MaintenanceConfig, get_settings
from partition_advisor.connectors.stat_source import InMemoryStatSource
from partition_advisor.maintenance.models import (
    Compression, IndexDescriptor, IndexUsage, PartitionStat, TableProfile
)

TABLE = "dbo.Transactions"


@pytest.fixture
def fixed_now():
    """The single clock reading used by a planning run."""
    return datetime(2024, 6, 15, 2, 0, 0)


@pytest.fixture
def maintenance_config():
    """Default maintenance configuration."""
    return MaintenanceConfig()


@pytest.fixture
def make_stat():
    """Factory for clustered-index partition statistics."""
    def _make(partition_number, fragmentation_pct, page_count=5000, **kwargs):
        kwargs.setdefault('index_id', 1)
        kwargs.setdefault('index_name', 'PK_Transactions')
        kwargs.setdefault('row_count', page_count * 50)
        return PartitionStat(
            partition_number=partition_number,
            fragmentation_pct=fragmentation_pct,
            page_count=page_count,
            **kwargs
        )
    return _make


@pytest.fixture
def transaction_indexes():
    """Index definitions of the partitioned transactions table."""
    return [
        IndexDescriptor(
            name='PK_Transactions', table_name=TABLE,
            key_columns=('TransactionDate', 'TransactionID'),
            is_primary_or_unique=True, index_id=1, index_type=1,
        ),
        IndexDescriptor(
            name='IX_Transactions_AccountID', table_name=TABLE,
            key_columns=('AccountID', 'TransactionDate'),
            included_columns={'Amount'}, index_id=2,
        ),
        IndexDescriptor(
            name='IX_Transactions_AccountID_Status', table_name=TABLE,
            key_columns=('AccountID', 'TransactionDate'),
            included_columns={'Amount', 'StatusCode'}, index_id=3,
        ),
        IndexDescriptor(
            name='IX_Transactions_Recent', table_name=TABLE,
            key_columns=('AccountID',), included_columns={'Amount', 'TransactionDate'},
            filter_predicate="([TransactionDate]>='2024-01-01')", index_id=4,
        ),
    ]


@pytest.fixture
def transaction_stats(make_stat):
    """Seven monthly partitions; partitions 5-7 are 5%, 35% and 12% fragmented."""
    stats = [make_stat(p, 50.0, compression=Compression.PAGE) for p in range(1, 5)]
    stats += [
        make_stat(5, 5.0, compression=Compression.ROW),
        make_stat(6, 35.0, compression=Compression.ROW),
        make_stat(7, 12.0, compression=Compression.NONE),
    ]
    return stats


@pytest.fixture
def stat_source(transaction_stats, transaction_indexes):
    """In-memory statistics source for the transactions table."""
    return InMemoryStatSource(
        partition_stats={TABLE: transaction_stats},
        index_usage={TABLE: {
            1: IndexUsage(index_id=1, seeks=90000, scans=12, updates=250000),
            2: IndexUsage(index_id=2, seeks=4000, updates=250000),
            3: IndexUsage(index_id=3, updates=250000),
            4: IndexUsage(index_id=4, seeks=800, scans=3, updates=20000),
        }},
        index_descriptors={TABLE: transaction_indexes},
        table_profiles=[
            TableProfile(TABLE, 15_000_000, 20_000.0, 6, True, True),
            TableProfile('dbo.AuditLog', 15_000_000, 20_000.0, 6, True, False),
            TableProfile('dbo.Customers', 2_000_000, 500.0, 3, False, False),
        ],
    )


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from cached settings and advisor environment overrides."""
    for var in ('LOG_LEVEL', 'LOG_FILE', 'ADVISOR_REORG_THRESHOLD', 'ADVISOR_REBUILD_THRESHOLD',
                'ADVISOR_HOT_PARTITION_COUNT', 'ADVISOR_MIN_PAGE_COUNT',
                'ADVISOR_LOOKBACK_DAYS', 'ADVISOR_BUFFER_DAYS'):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
