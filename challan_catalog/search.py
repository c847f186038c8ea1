"""
Approximate search over catalog names.

``SearchIndex`` ranks entries by how well a query matches their key:

* a case-insensitive substring hit scores by its position (earlier is
  better) and always beats an approximate hit;
* otherwise the best ``difflib`` ratio between the query and any
  query-length window of the key gives a distance ``1 - ratio``.

Entries whose distance exceeds ``threshold`` (0 = exact, 1 = anything)
are dropped.  Equal scores keep insertion order.
"""

from __future__ import annotations

from difflib import SequenceMatcher
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")

DEFAULT_THRESHOLD = 0.4


def match_distance(query: str, key: str) -> float:
    """Distance in [0, 1] between a lowercase query and key."""
    if not query:
        return 1.0
    pos = key.find(query)
    if pos != -1:
        # substring hits rank by position, ahead of approximate ones
        return pos / (len(key) * 1000)

    width = len(query)
    if len(key) <= width:
        windows = [key]
    else:
        windows = [key[i:i + width] for i in range(len(key) - width + 1)]
    best = 0.0
    matcher = SequenceMatcher(autojunk=False)
    matcher.set_seq2(query)
    for window in windows:
        matcher.set_seq1(window)
        best = max(best, matcher.ratio())
        if best == 1.0:
            break
    return 1.0 - best


class SearchIndex(Generic[T]):
    """Fuzzy lookup over a fixed collection."""

    def __init__(
        self,
        entries: Iterable[T] = (),
        key: Callable[[T], str] = str,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self._entries = list(entries)
        self._keys = [key(e).lower() for e in self._entries]
        self._threshold = threshold

    @classmethod
    def build(
        cls,
        entries: Iterable[T],
        key: Callable[[T], str] = str,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> SearchIndex[T]:
        return cls(entries, key=key, threshold=threshold)

    def __len__(self) -> int:
        return len(self._entries)

    def query(self, text: str, limit: int | None = None) -> list[T]:
        needle = text.strip().lower()
        if not needle:
            return []
        scored = []
        for idx, key in enumerate(self._keys):
            distance = match_distance(needle, key)
            if distance <= self._threshold:
                scored.append((distance, idx))
        scored.sort()
        hits = [self._entries[idx] for _, idx in scored]
        return hits[:limit] if limit is not None else hits
