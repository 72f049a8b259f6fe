"""
Filter predicate canonicalization and date-boundary helpers.

Canonical form: tokens separated by single spaces, identifiers, keywords and
string literals lower-cased, square brackets and N'' prefixes removed,
redundant outer parentheses stripped. Anything the tokenizer does not understand is refused
rather than guessed.
"""

import re
from datetime import date, datetime
from typing import List, Optional

from .errors import AmbiguousPredicateError

_TOKEN_RE = re.compile(r"""
    (?P<ws>\s+)
  | (?P<string>N?'(?:[^']|'')*')
  | (?P<bracket>\[[^\]]+\])
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<word>[A-Za-z_@#][A-Za-z0-9_@#$.]*)
  | (?P<op><>|!=|>=|<=|=|<|>)
  | (?P<punct>[(),])
""", re.VERBOSE)

NON_DETERMINISTIC = {
    'getdate', 'getutcdate', 'sysdatetime', 'sysutcdatetime',
    'sysdatetimeoffset', 'current_timestamp', 'newid', 'now', 'rand',
}


def tokenize(predicate: str) -> List[str]:
    """Split a predicate into canonical tokens."""
    tokens = []
    pos = 0
    while pos < len(predicate):
        match = _TOKEN_RE.match(predicate, pos)
        if match is None:
            raise AmbiguousPredicateError(predicate, f"unexpected character {predicate[pos]!r} at {pos}")
        pos = match.end()
        kind = match.lastgroup
        text = match.group()
        if kind == 'ws':
            continue
        if kind == 'string':
            literal = text[1:] if text.startswith('N') else text
            tokens.append(literal.lower())
        elif kind == 'bracket':
            tokens.append(text[1:-1].lower())
        elif kind == 'word':
            lowered = text.lower()
            if lowered in NON_DETERMINISTIC:
                raise AmbiguousPredicateError(predicate, f"non-deterministic expression '{text}'")
            tokens.append(lowered)
        else:
            tokens.append(text)
    return tokens


def _strip_outer_parens(tokens: List[str]) -> List[str]:
    while len(tokens) >= 2 and tokens[0] == '(' and tokens[-1] == ')':
        depth = 0
        wraps_all = True
        for i, token in enumerate(tokens):
            if token == '(':
                depth += 1
            elif token == ')':
                depth -= 1
            if depth == 0 and i < len(tokens) - 1:
                wraps_all = False
                break
        if not wraps_all:
            break
        tokens = tokens[1:-1]
    return tokens


def _check_balanced(predicate: str, tokens: List[str]) -> None:
    depth = 0
    for token in tokens:
        if token == '(':
            depth += 1
        elif token == ')':
            depth -= 1
            if depth < 0:
                raise AmbiguousPredicateError(predicate, "unbalanced parentheses")
    if depth != 0:
        raise AmbiguousPredicateError(predicate, "unbalanced parentheses")


def canonicalize_predicate(predicate: Optional[str]) -> Optional[str]:
    """
    Canonicalize a filter predicate for textual comparison.

    Returns None for an absent or blank predicate.

    Raises:
        AmbiguousPredicateError: if the predicate cannot be tokenized, has
            unbalanced parentheses, or depends on a non-constant expression
    """
    if predicate is None or not predicate.strip():
        return None
    tokens = tokenize(predicate)
    _check_balanced(predicate, tokens)
    tokens = _strip_outer_parens(tokens)
    if not tokens:
        raise AmbiguousPredicateError(predicate, "empty expression")
    return ' '.join(tokens)


def build_boundary_predicate(column: str, boundary: date) -> str:
    """Literal lower-bound predicate for a rolling filtered index."""
    return f"[{column}] >= '{boundary.isoformat()}'"


def parse_boundary(predicate: Optional[str], column: str) -> Optional[date]:
    """
    Extract the literal date from a ``column >= 'yyyy-mm-dd'`` predicate.

    Returns None when the predicate is absent or has no such lower bound.
    """
    if not predicate:
        return None
    try:
        tokens = _strip_outer_parens(tokenize(predicate))
    except AmbiguousPredicateError:
        return None

    target = column.strip('[]').lower()
    for i in range(len(tokens) - 2):
        if tokens[i] == target and tokens[i + 1] == '>=' and tokens[i + 2].startswith("'"):
            literal = tokens[i + 2][1:-1]
            return _parse_date_literal(literal)
    return None


def _parse_date_literal(literal: str) -> Optional[date]:
    for fmt in ('%Y-%m-%d', '%Y%m%d'):
        try:
            return datetime.strptime(literal, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(literal).date()
    except ValueError:
        return None
