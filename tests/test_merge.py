"""
Tests for overlap merging.
"""

import pytest

from thermal_events.calendar_index import index_to_date
from thermal_events.definitions import get_definition
from thermal_events.events import Event
from thermal_events.merge import has_overlaps, merge_overlapping_events, merge_pair

YEAR = 1982


def event(start, end, extremum, region="NERC1"):
    """Event spanning day indices ``start``..``end`` of YEAR, centred on its start."""
    return Event(
        region_id=region,
        start_date=index_to_date(start, YEAR),
        end_date=index_to_date(end, YEAR),
        centroid_date=index_to_date(start, YEAR),
        extremum=extremum,
        duration=end - start + 1,
    )


def span(e):
    return ((e.start_date - index_to_date(0, YEAR)).days, (e.end_date - index_to_date(0, YEAR)).days)


def test_merge_pair_window_and_centroid():
    merged = merge_pair(event(50, 55, 35.0), event(53, 60, 37.5), get_definition("heat", 6))
    assert span(merged) == (50, 60)
    assert merged.duration == 11
    assert merged.centroid_date == index_to_date(55, YEAR)
    assert merged.extremum == 37.5


def test_merge_pair_cold_keeps_minimum():
    merged = merge_pair(event(10, 12, -8.0), event(11, 15, -3.0), get_definition("cold", 6))
    assert merged.extremum == -8.0
    # six-day window: midpoint rounds down
    assert merged.centroid_date == index_to_date(12, YEAR)


def test_merge_pair_rejects_different_regions():
    with pytest.raises(ValueError):
        merge_pair(event(1, 3, 1.0), event(2, 4, 1.0, region="NERC2"), get_definition("heat", 6))


def test_chain_collapses_to_one_event():
    definition = get_definition("heat", 7)
    merged = merge_overlapping_events(
        [event(7, 10, 3.0), event(1, 5, 1.0), event(4, 8, 2.0)], definition
    )
    assert [span(e) for e in merged] == [(1, 10)]
    assert merged[0].extremum == 3.0


def test_disjoint_and_adjacent_events_untouched():
    definition = get_definition("heat", 7)
    events = [event(1, 3, 1.0), event(4, 6, 2.0), event(20, 25, 3.0)]
    merged = merge_overlapping_events(events, definition)
    assert [span(e) for e in merged] == [(1, 3), (4, 6), (20, 25)]
    assert not has_overlaps(merged)


def test_merge_is_idempotent():
    definition = get_definition("heat", 10)
    events = [event(0, 4, 1.0), event(3, 9, 2.0), event(9, 12, 5.0), event(30, 33, 0.5)]
    once = merge_overlapping_events(events, definition)
    twice = merge_overlapping_events(once, definition)
    assert once == twice
    assert not has_overlaps(once)
    assert [span(e) for e in once] == [(0, 12), (30, 33)]


def test_has_overlaps_is_per_region():
    assert has_overlaps([event(1, 5, 1.0), event(5, 8, 1.0)])
    assert not has_overlaps([event(1, 5, 1.0), event(3, 8, 1.0, region="NERC2")])


def test_merge_pair_ignores_missing_extremum():
    merged = merge_pair(event(1, 4, float("nan")), event(3, 6, 31.0), get_definition("heat", 6))
    assert merged.extremum == 31.0
