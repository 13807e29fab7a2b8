from __future__ import annotations

import datetime as dt

from shifttimer.models import BreakInterval
from shifttimer.state import BreakDraft
from shifttimer.utils import complete_intervals, merge_intervals


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2024, 1, 1, hour, minute)


def _interval(start: tuple[int, int], end: tuple[int, int]) -> BreakInterval:
    return BreakInterval(start=_at(*start), end=_at(*end))


def test_merge_empty():
    assert merge_intervals([]) == []


def test_merge_sorts_and_coalesces_overlaps():
    merged = merge_intervals(
        [
            _interval((13, 0), (13, 30)),
            _interval((10, 0), (10, 15)),
            _interval((10, 10), (10, 45)),
        ]
    )
    assert merged == [_interval((10, 0), (10, 45)), _interval((13, 0), (13, 30))]


def test_merge_coalesces_touching_intervals():
    merged = merge_intervals([_interval((10, 0), (10, 15)), _interval((10, 15), (10, 30))])
    assert merged == [_interval((10, 0), (10, 30))]


def test_merge_keeps_longer_end_for_contained_interval():
    merged = merge_intervals([_interval((10, 0), (12, 0)), _interval((10, 30), (11, 0))])
    assert merged == [_interval((10, 0), (12, 0))]


def test_merge_is_idempotent_and_non_overlapping():
    intervals = [
        _interval((15, 0), (15, 5)),
        _interval((9, 0), (9, 30)),
        _interval((9, 20), (9, 40)),
        _interval((11, 0), (11, 10)),
        _interval((14, 55), (15, 1)),
    ]
    merged = merge_intervals(intervals)
    assert merge_intervals(merged) == merged
    for current, following in zip(merged, merged[1:]):
        assert current.end < following.start


def test_merge_does_not_touch_input():
    intervals = [_interval((10, 0), (10, 30)), _interval((10, 15), (11, 0))]
    merge_intervals(intervals)
    assert intervals == [_interval((10, 0), (10, 30)), _interval((10, 15), (11, 0))]


def test_complete_intervals_skips_partial_drafts():
    drafts = [
        BreakDraft(break_start=_at(10), break_end=_at(10, 15)),
        BreakDraft(break_start=_at(11)),
        BreakDraft(break_end=_at(12)),
        BreakDraft(),
    ]
    assert complete_intervals(drafts) == [_interval((10, 0), (10, 15))]
