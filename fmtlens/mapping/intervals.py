"""Interval-based offset correlation for structural dumps.

Dump providers describe which source range produced which range of their
output. Forward lookups search that list by source position; reverse lookups
search an output-ordered copy that is built on first use and cached per
``IntervalList`` instance. A new dump produces a new list, so stale copies are
never consulted and are dropped together with their list.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, overload

from fmtlens.mapping.sorted_index import SortedSpanIndex


@dataclass(frozen=True, slots=True)
class Interval:
    src_start: int
    src_end: int
    out_start: int
    out_end: int

    def __post_init__(self) -> None:
        if self.src_end < self.src_start or self.out_end < self.out_start:
            raise ValueError(f"Interval ends before it starts: {self!r}")
        if self.src_start < 0 or self.out_start < 0:
            raise ValueError(f"Interval offsets must be non-negative: {self!r}")

    @property
    def source_range(self) -> tuple[int, int]:
        return self.src_start, self.src_end

    @property
    def output_range(self) -> tuple[int, int]:
        return self.out_start, self.out_end


def _source_order(item: Interval) -> tuple[int, int, int, int]:
    return item.src_start, item.src_end, item.out_start, item.out_end


def _output_order(item: Interval) -> tuple[int, int]:
    return item.out_start, item.out_end


class IntervalList(Sequence[Interval]):
    """Immutable interval sequence ordered by source range."""

    __slots__ = ("_items", "__weakref__")

    def __init__(self, intervals: Iterable[Interval] = ()) -> None:
        self._items: tuple[Interval, ...] = tuple(sorted(intervals, key=_source_order))

    @classmethod
    def from_tuples(cls, rows: Iterable[tuple[int, int, int, int]]) -> "IntervalList":
        return cls(Interval(*row) for row in rows)

    @overload
    def __getitem__(self, index: int) -> Interval: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Interval, ...]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"IntervalList({len(self._items)} intervals)"


_output_sorted_cache: "weakref.WeakKeyDictionary[IntervalList, tuple[Interval, ...]]" = weakref.WeakKeyDictionary()


def output_sorted(intervals: Sequence[Interval]) -> tuple[Interval, ...]:
    """Copy of ``intervals`` ordered by output range; cached per ``IntervalList``.

    Plain sequences cannot be tracked by identity and are sorted on every call.
    """
    if isinstance(intervals, IntervalList):
        cached = _output_sorted_cache.get(intervals)
        if cached is None:
            cached = tuple(sorted(intervals, key=_output_order))
            _output_sorted_cache[intervals] = cached
        return cached
    return tuple(sorted(intervals, key=_output_order))


def _source_index(intervals: Sequence[Interval]) -> SortedSpanIndex[Interval]:
    return SortedSpanIndex(intervals, search=("src_start", "src_end"), report=("out_start", "out_end"))


def _output_index(intervals: Sequence[Interval]) -> SortedSpanIndex[Interval]:
    return SortedSpanIndex(
        output_sorted(intervals),
        search=("out_start", "out_end"),
        report=("src_start", "src_end"),
    )


def query_forward_interval(intervals: Sequence[Interval], src_offset: int) -> int:
    """Source offset -> output offset."""
    return _source_index(intervals).project(int(src_offset))


def query_reverse_interval(intervals: Sequence[Interval], out_offset: int) -> int:
    """Output offset -> source offset."""
    if not intervals:
        return 0
    return _output_index(intervals).project(int(out_offset))


def find_containing(intervals: Sequence[Interval], src_offset: int) -> Interval | None:
    return _source_index(intervals).find(int(src_offset))


def find_containing_reverse(intervals: Sequence[Interval], out_offset: int) -> Interval | None:
    if not intervals:
        return None
    return _output_index(intervals).find(int(out_offset))


def same_source_intervals(intervals: Sequence[Interval], interval: Interval) -> list[Interval]:
    """All intervals sharing ``interval``'s source range, in list order."""
    return _source_index(intervals).spans_with_range(interval.src_start, interval.src_end)
