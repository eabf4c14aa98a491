"""
Incremental fuzzy search over session titles.

Matching is an ordered, case-insensitive subsequence test. Scoring is a single
greedy left-to-right pass that takes the first occurrence of each query
character; it is a ranking heuristic, not an optimal alignment, and the ranking
users see depends on exactly this behaviour.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar


T = TypeVar("T")

START_BONUS = 10
SEPARATOR_BONUS = 5
_SEPARATORS = "-_"


def _is_separator(ch: str) -> bool:
    return ch.isspace() or ch in _SEPARATORS


def matches(query: str, title: str) -> bool:
    q = query.lower()
    if not q:
        return True
    qi = 0
    for ch in title.lower():
        if ch == q[qi]:
            qi += 1
            if qi == len(q):
                return True
    return False


def score(query: str, title: str) -> int:
    q = query.lower()
    t = title.lower()

    total = 0
    qi = 0
    run = 0
    for ti, ch in enumerate(t):
        if qi >= len(q):
            break
        if ch == q[qi]:
            qi += 1
            run += 1
            total += run * 2
            if ti == 0:
                total += START_BONUS
            elif _is_separator(t[ti - 1]):
                total += SEPARATOR_BONUS
        else:
            run = 0
    return total if q and qi == len(q) else 0


def _title_of(item: object) -> str:
    return getattr(item, "title", "")


def filter_sessions(
    items: Sequence[T],
    query: str,
    *,
    key: Callable[[T], str] = _title_of,
) -> List[T]:
    """
    Keep items whose title matches `query`, best score first.

    The sort is stable, so equal scores keep their incoming (most recent first)
    order. An empty query returns every item in its original order.
    """
    if not query:
        return list(items)
    kept = [it for it in items if matches(query, key(it))]
    return sorted(kept, key=lambda it: -score(query, key(it)))
