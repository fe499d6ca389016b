"""Bisect-backed lookups shared by anchor and interval mappings."""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from operator import attrgetter
from typing import Callable, Generic, Sequence, TypeVar

T = TypeVar("T")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def interpolate(offset: int, start: int, end: int, paired_start: int, paired_end: int) -> int:
    """Project ``offset`` from ``[start, end)`` onto ``[paired_start, paired_end)``.

    The fraction is clamped to ``[0, 1]``; an empty range maps everything to
    ``paired_start``.
    """
    if end <= start:
        return paired_start
    t = (offset - start) / (end - start)
    t = min(1.0, max(0.0, t))
    return round_half_up(paired_start + t * (paired_end - paired_start))


def bracket(points: Sequence[T], offset: int, key: Callable[[T], int]) -> int:
    """Index of the last point whose key is ``<= offset`` (``-1`` if none)."""
    return bisect_right(points, offset, key=key) - 1


class SortedPointIndex(Generic[T]):
    """Point lookup over a sequence sorted by one coordinate.

    Each point pairs a searched coordinate with a reported one. Queries clamp
    to the first and last point and interpolate linearly between the two
    points bracketing the offset.
    """

    __slots__ = ("_points", "_key", "_paired")

    def __init__(self, points: Sequence[T], *, search: str, report: str) -> None:
        self._points = points
        self._key = attrgetter(search)
        self._paired = attrgetter(report)

    def __len__(self) -> int:
        return len(self._points)

    def project(self, offset: int) -> int:
        points = self._points
        if not points:
            return 0
        key = self._key
        paired = self._paired
        if offset <= key(points[0]):
            return paired(points[0])
        if offset >= key(points[-1]):
            return paired(points[-1])

        lo = bracket(points, offset, key)
        a = points[lo]
        b = points[lo + 1]
        if key(a) == offset or key(a) == key(b):
            return paired(a)
        return interpolate(offset, key(a), key(b), paired(a), paired(b))


class SortedSpanIndex(Generic[T]):
    """Span lookup over a sequence sorted by one coordinate pair.

    ``search`` names the start/end attributes the sequence is ordered by and
    queried on; ``report`` names the attributes a hit is projected onto.
    """

    __slots__ = ("_spans", "_start", "_end", "_paired_start", "_paired_end")

    def __init__(
        self,
        spans: Sequence[T],
        *,
        search: tuple[str, str],
        report: tuple[str, str],
    ) -> None:
        self._spans = spans
        self._start = attrgetter(search[0])
        self._end = attrgetter(search[1])
        self._paired_start = attrgetter(report[0])
        self._paired_end = attrgetter(report[1])

    def __len__(self) -> int:
        return len(self._spans)

    @property
    def spans(self) -> Sequence[T]:
        return self._spans

    def find(self, offset: int) -> T | None:
        """Return the span containing ``offset``, else the nearest neighbour."""
        spans = self._spans
        if not spans:
            return None
        idx = bracket(spans, offset, self._start)
        if idx >= 0 and offset < self._end(spans[idx]):
            return spans[self._first_duplicate(idx)]

        prev = spans[idx] if idx >= 0 else None
        nxt = spans[idx + 1] if idx + 1 < len(spans) else None
        if prev is None:
            return nxt
        if nxt is None:
            return prev
        if offset - self._end(prev) < self._start(nxt) - offset:
            return prev
        return nxt

    def project(self, offset: int) -> int:
        span = self.find(offset)
        if span is None:
            return 0
        return interpolate(
            offset,
            self._start(span),
            self._end(span),
            self._paired_start(span),
            self._paired_end(span),
        )

    def spans_with_range(self, start: int, end: int) -> list[T]:
        """Every span whose searched range is exactly ``[start, end)``."""
        spans = self._spans
        lo = bisect_left(spans, start, key=self._start)
        hi = bisect_right(spans, start, key=self._start)
        return [span for span in spans[lo:hi] if self._end(span) == end]

    def _first_duplicate(self, idx: int) -> int:
        spans = self._spans
        start = self._start(spans[idx])
        end = self._end(spans[idx])
        while idx > 0 and self._start(spans[idx - 1]) == start and self._end(spans[idx - 1]) == end:
            idx -= 1
        return idx
