import pytest

from fmtlens.mapping import (
    Interval,
    IntervalList,
    find_containing,
    find_containing_reverse,
    output_sorted,
    query_forward_interval,
    query_reverse_interval,
    same_source_intervals,
)


def test_interval_rejects_inverted_ranges():
    with pytest.raises(ValueError):
        Interval(5, 4, 0, 1)
    with pytest.raises(ValueError):
        Interval(0, 1, 9, 3)
    with pytest.raises(ValueError):
        Interval(-1, 2, 0, 1)


def test_list_is_ordered_by_source_range():
    intervals = IntervalList.from_tuples([(20, 30, 0, 5), (0, 5, 40, 50), (0, 3, 60, 61)])
    assert [item.source_range for item in intervals] == [(0, 3), (0, 5), (20, 30)]


def test_forward_interpolates_inside_interval():
    intervals = IntervalList([Interval(10, 20, 100, 140)])
    assert query_forward_interval(intervals, 15) == 120
    assert query_reverse_interval(intervals, 120) == 15


def test_gap_resolves_to_nearer_neighbour():
    intervals = IntervalList.from_tuples([(0, 5, 0, 10), (20, 30, 50, 70)])
    assert query_forward_interval(intervals, 8) == 10
    assert query_forward_interval(intervals, 17) == 50


def test_gap_tie_prefers_following_interval():
    intervals = IntervalList.from_tuples([(0, 5, 0, 10), (19, 30, 50, 70)])
    assert find_containing(intervals, 12) == intervals[1]
    assert query_forward_interval(intervals, 12) == 50


def test_out_of_range_offsets_clamp():
    intervals = IntervalList.from_tuples([(0, 5, 0, 10), (20, 30, 50, 70)])
    assert query_forward_interval(intervals, -3) == 0
    assert query_forward_interval(intervals, 100) == 70
    assert query_reverse_interval(intervals, 1000) == 30


def test_empty_list():
    intervals = IntervalList()
    assert query_forward_interval(intervals, 4) == 0
    assert query_reverse_interval(intervals, 4) == 0
    assert find_containing(intervals, 4) is None
    assert find_containing_reverse(intervals, 4) is None


def test_zero_length_interval_maps_to_paired_start():
    intervals = IntervalList([Interval(5, 5, 40, 48)])
    assert query_forward_interval(intervals, 5) == 40
    assert query_forward_interval(intervals, 90) == 40


def test_reverse_uses_output_order_and_rounds_half_up():
    intervals = IntervalList.from_tuples([(0, 5, 50, 60), (10, 15, 0, 10)])
    assert find_containing_reverse(intervals, 5) == Interval(10, 15, 0, 10)
    assert query_reverse_interval(intervals, 5) == 13


def test_output_sorted_copy_is_cached_per_list():
    intervals = IntervalList.from_tuples([(0, 5, 50, 60), (10, 15, 0, 10)])
    first = output_sorted(intervals)
    assert output_sorted(intervals) is first
    assert [item.out_start for item in first] == [0, 50]
    assert [item.src_start for item in intervals] == [0, 10]

    other = IntervalList.from_tuples([(0, 5, 50, 60), (10, 15, 0, 10)])
    assert output_sorted(other) is not first


def test_reverse_query_does_not_reorder_plain_lists():
    rows = [Interval(0, 5, 50, 60), Interval(10, 15, 0, 10)]
    snapshot = list(rows)
    assert query_reverse_interval(rows, 55) == 3
    assert rows == snapshot


def test_one_source_range_can_map_to_several_outputs():
    intervals = IntervalList.from_tuples([(0, 3, 20, 25), (4, 6, 10, 12), (0, 3, 0, 5)])
    first = find_containing(intervals, 1)
    assert first == Interval(0, 3, 0, 5)
    siblings = same_source_intervals(intervals, first)
    assert [item.output_range for item in siblings] == [(0, 5), (20, 25)]
    assert find_containing_reverse(intervals, 22) == Interval(0, 3, 20, 25)
