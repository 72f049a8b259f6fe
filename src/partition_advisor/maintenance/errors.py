"""
Exception taxonomy for the maintenance advisor.
"""


class AdvisorError(Exception):
    """Base exception class for advisor errors."""
    pass


class InvalidConfig(AdvisorError):
    """Raised when thresholds or windows are out of range or out of order."""
    pass


class StatSourceUnavailable(AdvisorError):
    """Raised when the storage engine's statistics catalog cannot be reached."""
    pass


class IndexNotAlignedError(AdvisorError):
    """Raised when a rolling filtered index is not aligned with the table's partition scheme."""

    def __init__(self, table_name: str, index_name: str):
        super().__init__(
            f"Index '{index_name}' on '{table_name}' is not partition-aligned; "
            "automatic filtered-index refresh is not supported"
        )
        self.table_name = table_name
        self.index_name = index_name


class AmbiguousPredicateError(AdvisorError):
    """Raised when a filter predicate cannot be canonicalized for comparison."""

    def __init__(self, predicate: str, reason: str):
        super().__init__(f"Cannot canonicalize predicate {predicate!r}: {reason}")
        self.predicate = predicate
        self.reason = reason
