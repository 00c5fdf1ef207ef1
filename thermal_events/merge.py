"""
事件合并模块 (Event Merger)

Resolves overlapping dual-threshold (Family B) candidates of one region into
non-overlapping canonical events.

A merged event spans both inputs, keeps the more extreme of the two extremum
values, takes the midpoint of the merged date range as its centroid date and
recomputes its duration from the merged span.
"""

from typing import Iterable, List

import pandas as pd

from .definitions import Definition
from .events import Event


def merge_pair(first: Event, second: Event, definition: Definition) -> Event:
    """
    合并两个重叠事件
    Merge two overlapping events of the same region.
    """
    if first.region_id != second.region_id:
        raise ValueError(
            f"cannot merge events of different regions ({first.region_id}, {second.region_id})"
        )
    start = min(first.start_date, second.start_date)
    end = max(first.end_date, second.end_date)
    span = (end - start).days
    return Event(
        region_id=first.region_id,
        start_date=start,
        end_date=end,
        centroid_date=start + pd.Timedelta(days=span // 2),
        extremum=definition.more_extreme(first.extremum, second.extremum),
        duration=span + 1,
    )


def _merge_pass(events: List[Event], definition: Definition) -> int:
    """One sweep over the start-sorted list; returns the number of merges."""
    merges = 0
    j = 0
    while j < len(events) - 1:
        k = j + 1
        while k < len(events):
            if events[j].overlaps(events[k]):
                events[j] = merge_pair(events[j], events[k], definition)
                del events[k]
                merges += 1
            else:
                k += 1
        j += 1
    return merges


def merge_overlapping_events(events: Iterable[Event], definition: Definition) -> List[Event]:
    """
    迭代合并直到没有重叠
    Sort by start date and merge overlapping pairs until no two events overlap.

    Each sweep compares every surviving event with all later ones, merging in
    place.  Sweeps repeat until one completes without a merge, so the result
    is a fixed point: running this function on its own output changes nothing.

    Examples
    --------
    >>> from thermal_events.definitions import get_definition
    >>> d = get_definition('heat', 6)
    >>> a = Event('NERC1', '1982-02-19', '1982-02-24', '1982-02-20', 35.0, 6)
    >>> b = Event('NERC1', '1982-02-22', '1982-03-01', '1982-02-25', 36.0, 8)
    >>> [m.duration for m in merge_overlapping_events([a, b], d)]
    [11]
    """
    working = sorted(events, key=lambda e: (e.start_date, e.end_date))
    while _merge_pass(working, definition):
        working.sort(key=lambda e: (e.start_date, e.end_date))
    return working


def has_overlaps(events: Iterable[Event]) -> bool:
    """True if any two events of the same region overlap."""
    by_region = {}
    for event in events:
        by_region.setdefault(event.region_id, []).append(event)
    for region_events in by_region.values():
        region_events.sort(key=lambda e: e.start_date)
        for left, right in zip(region_events, region_events[1:]):
            if left.overlaps(right):
                return True
    return False
