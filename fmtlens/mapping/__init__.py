from .anchors import Anchor, AnchorTable, build_anchor_table, query_forward, query_reverse
from .intervals import (
    Interval,
    IntervalList,
    find_containing,
    find_containing_reverse,
    output_sorted,
    query_forward_interval,
    query_reverse_interval,
    same_source_intervals,
)
from .sorted_index import SortedPointIndex, SortedSpanIndex

__all__ = [
    "Anchor",
    "AnchorTable",
    "Interval",
    "IntervalList",
    "SortedPointIndex",
    "SortedSpanIndex",
    "build_anchor_table",
    "find_containing",
    "find_containing_reverse",
    "output_sorted",
    "query_forward",
    "query_forward_interval",
    "query_reverse",
    "query_reverse_interval",
    "same_source_intervals",
]
