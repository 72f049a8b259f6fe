"""
Overlapping index detection.

An index is redundant when its key columns are a leading prefix of a wider
index's key columns on the same table and both carry the same filter. The
wider index can serve every seek the narrower one can.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .errors import AmbiguousPredicateError
from .models import IndexDescriptor, SkipReason, SkipRecord
from .predicates import canonicalize_predicate
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RedundantPair:
    """A narrower index whose work is subsumed by a wider one."""
    narrower: IndexDescriptor
    wider: IndexDescriptor
    covers_includes: bool

    @property
    def analysis(self) -> str:
        return f"Potential duplicate: {self.narrower.name} may be covered by {self.wider.name}"


@dataclass
class RedundancyResult:
    """Pairs found for one table plus anything that could not be compared."""
    table_name: str
    pairs: List[RedundantPair] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)

    def pair_names(self) -> List[tuple]:
        return [(p.narrower.name, p.wider.name) for p in self.pairs]


def _folded(columns: Sequence[str]) -> List[str]:
    return [c.strip('[]').casefold() for c in columns]


def is_key_prefix(narrower: Sequence[str], wider: Sequence[str]) -> bool:
    """True when ``narrower`` equals the leading columns of ``wider`` in order."""
    n, w = _folded(narrower), _folded(wider)
    return 0 < len(n) <= len(w) and w[:len(n)] == n


class RedundancyDetector:
    """Full pairwise comparison of a table's indexes."""

    def detect(self, indexes: Sequence[IndexDescriptor]) -> RedundancyResult:
        table_name = indexes[0].table_name if indexes else ""
        result = RedundancyResult(table_name=table_name)

        candidates: List[IndexDescriptor] = []
        for index in indexes:
            if not index.key_columns:
                result.skipped.append(SkipRecord(
                    SkipReason.EMPTY_KEY_COLUMNS, index_name=index.name,
                    detail="index has no key columns",
                ))
                continue
            candidates.append(index)

        canonical: Dict[str, Optional[str]] = {}
        ambiguous: Dict[str, str] = {}
        for index in candidates:
            try:
                canonical[index.name] = canonicalize_predicate(index.filter_predicate)
            except AmbiguousPredicateError as e:
                ambiguous[index.name] = e.reason

        for narrower in candidates:
            # Never suggest dropping the clustering/primary structure.
            if narrower.is_clustered or narrower.is_primary_or_unique:
                continue
            for wider in candidates:
                if wider.name == narrower.name:
                    continue
                if not is_key_prefix(narrower.key_columns, wider.key_columns):
                    continue
                if narrower.name in ambiguous or wider.name in ambiguous:
                    bad = narrower.name if narrower.name in ambiguous else wider.name
                    result.skipped.append(SkipRecord(
                        SkipReason.AMBIGUOUS_PREDICATE, index_name=narrower.name,
                        detail=f"pair ({narrower.name}, {wider.name}) excluded: "
                               f"{bad} filter {ambiguous[bad]}",
                    ))
                    continue
                if canonical[narrower.name] != canonical[wider.name]:
                    continue
                wider_columns = set(_folded(wider.key_columns)) | set(_folded(wider.included_columns))
                covers = set(_folded(narrower.included_columns)) <= wider_columns
                result.pairs.append(RedundantPair(narrower, wider, covers))
                logger.debug(f"{table_name}: {narrower.name} overlaps {wider.name}")

        result.pairs.sort(key=lambda p: (p.narrower.name, p.wider.name))
        return result
