"""
事件检测测试 (Event Detection Tests)
"""

import numpy as np
import pandas as pd
import pytest

from thermal_events.calendar_index import index_to_date
from thermal_events.definitions import get_definition
from thermal_events.detection import (
    detect_calendar_runs,
    detect_fixed_runs,
    detect_region_events,
    detect_year_events,
    find_runs,
    grow_segments,
    longest_run,
)
from thermal_events.exceptions import InvalidDefinitionError, MissingInputError
from thermal_events.series import DailySeries
from thermal_events.thresholds import ThresholdProfile, compute_threshold_profile

from conftest import SPIKE_END, SPIKE_PEAK, SPIKE_START, make_series


# ============================================================================
# 连续时段 (Runs)
# ============================================================================

def test_find_runs():
    mask = np.array([True, False, True, True, False, True, True, True])
    assert find_runs(mask) == [(0, 0), (2, 3), (5, 7)]
    assert find_runs(mask, min_length=3) == [(5, 7)]
    assert find_runs(np.zeros(5, dtype=bool)) == []
    assert longest_run(mask) == 3
    assert longest_run(np.zeros(4, dtype=bool)) == 0


# ============================================================================
# Family A
# ============================================================================

def test_fixed_runs_single_event():
    """A 5-day excursion on day indices 100..104 of year 3 of a flat record."""
    definition = get_definition("heat", 1)
    values = np.full(365, 10.0)
    values[100:105] = 30.0
    extremes = values + 5.0
    extremes[102] += 1.0

    events = detect_fixed_runs(values, extremes, 10.0, definition, "NERC1", 1982)
    assert len(events) == 1
    event = events[0]
    assert event.start_date == index_to_date(100, 1982)
    assert event.end_date == index_to_date(104, 1982)
    assert event.duration == 5
    assert event.centroid_date == index_to_date(102, 1982)
    assert event.extremum == 36.0


def test_fixed_runs_minimum_length_and_ties():
    definition = get_definition("cold", 1)
    values = np.array([5.0, 0.0, 5.0, 0.0, 0.0, 1.0, 1.0, 5.0])
    events = detect_fixed_runs(values, values, 1.0, definition, "NERC1", 1981)
    # single-day dip dropped, values equal to the threshold do not qualify
    assert [(e.start_date.day, e.end_date.day) for e in events] == [(4, 5)]


def test_fixed_runs_undefined_threshold():
    definition = get_definition("heat", 1)
    assert detect_fixed_runs(np.full(10, 99.0), np.full(10, 99.0), np.nan, definition, "NERC1", 1981) == []


# ============================================================================
# Family B
# ============================================================================

def test_grow_segments_right_growth_stops_on_mean():
    definition = get_definition("heat", 6)
    values = np.array([0.0, 25.0, 31.0, 32.0, 33.0, 25.0, 21.0, 0.0])
    assert grow_segments(values, 30.0, 20.0, definition) == [(2, 5)]


def test_grow_segments_left_growth():
    definition = get_definition("heat", 6)
    values = np.array([0.0, 29.0, 35.0, 35.0, 35.0, 0.0])
    assert grow_segments(values, 30.0, 20.0, definition) == [(1, 4)]


def test_grow_segments_needs_three_strict_days():
    definition = get_definition("heat", 7)
    values = np.array([31.0, 31.0, 25.0, 31.0, 31.0, 0.0])
    assert grow_segments(values, 30.0, 20.0, definition) == []


def test_grow_segments_cold():
    definition = get_definition("cold", 6)
    values = np.array([10.0, -5.0, -6.0, -7.0, -1.0, 10.0])
    assert grow_segments(values, -4.0, 0.0, definition) == [(1, 4)]


def test_dual_year_events_are_merged():
    """Left growth of the second segment reaches into the first one."""
    definition = get_definition("heat", 6)
    dates = pd.date_range("1981-01-01", "1981-12-31", freq="D")
    t_max = np.zeros(len(dates))
    # first segment [10, 12]; second opens at 14 and grows left over the first
    t_max[10:13] = [31.0, 31.0, 31.0]
    t_max[13] = 25.0
    t_max[14:17] = [40.0, 40.0, 40.0]
    series = DailySeries("NERC1", dates, {"T_max": t_max, "T_min": t_max - 10.0})
    profile = ThresholdProfile("NERC1", definition, strict=30.0, loose=20.0)

    events = detect_year_events(series, profile, 1981)
    assert len(events) == 1
    assert events[0].start_date == index_to_date(10, 1981)
    assert events[0].end_date == index_to_date(16, 1981)
    assert events[0].extremum == 40.0
    assert events[0].duration == 7


# ============================================================================
# Family C
# ============================================================================

def test_calendar_runs_broken_by_undefined_threshold():
    definition = get_definition("heat", 8)
    values = np.full(366, 10.0)
    values[365] = np.nan
    thresholds = np.full(366, 5.0)
    thresholds[50] = np.nan
    events = detect_calendar_runs(values, values, thresholds, definition, "NERC1", 1981)
    assert [(e.start_date, e.end_date) for e in events] == [
        (pd.Timestamp("1981-01-01"), pd.Timestamp("1981-02-19")),
        (pd.Timestamp("1981-02-21"), pd.Timestamp("1981-12-31")),
    ]


def test_calendar_runs_accept_short_threshold_array():
    definition = get_definition("cold", 8)
    values = np.full(366, 0.0)
    events = detect_calendar_runs(values, values, np.full(365, 5.0), definition, "NERC1", 1980)
    assert len(events) == 1
    assert events[0].duration == 365


# ============================================================================
# 区域级检测 (Region-Level Detection)
# ============================================================================

@pytest.mark.parametrize("definition_id", [1, 5, 8])
def test_region_events_find_injected_spike(definition_id):
    definition = get_definition("heat", definition_id)
    series = make_series("NERC1", spikes=[(SPIKE_START, SPIKE_END, 20.0)])
    profile = compute_threshold_profile(series, definition)
    events = detect_region_events(series, profile, range(1980, 1985))

    assert len(events) == 1
    assert events[0].start_date == SPIKE_START
    assert events[0].end_date == SPIKE_END
    assert events[0].centroid_date == SPIKE_PEAK
    assert events[0].extremum == 36.0


def test_region_events_cold():
    definition = get_definition("cold", 1)
    series = make_series("NERC1", spikes=[(SPIKE_START, SPIKE_END, -20.0)])
    profile = compute_threshold_profile(series, definition)
    events = detect_region_events(series, profile, range(1980, 1985))
    assert len(events) == 1
    # T_min is flat over the spike; the first coldest day is the centroid
    assert events[0].centroid_date == SPIKE_START
    assert events[0].extremum == -15.0


def test_region_events_outside_record():
    definition = get_definition("heat", 1)
    series = make_series("NERC1")
    profile = compute_threshold_profile(series, definition)
    with pytest.raises(MissingInputError):
        detect_region_events(series, profile, [1985])


def test_profile_mismatch():
    series = make_series("NERC1")
    fixed = ThresholdProfile("NERC1", get_definition("heat", 8), strict=10.0)
    with pytest.raises(InvalidDefinitionError):
        detect_year_events(series, fixed, 1981)
    other = ThresholdProfile("NERC2", get_definition("heat", 1), strict=10.0)
    with pytest.raises(ValueError):
        detect_year_events(series, other, 1981)


# ============================================================================
# 缺失值与闰日 (Missing Values and Leap Day)
# ============================================================================

def test_run_with_missing_extremum_statistic():
    """A run qualifying on T_mean while T_max is missing throughout."""
    definition = get_definition("heat", 1)
    values = np.full(365, 10.0)
    values[100:103] = 30.0
    extremes = np.full(365, 15.0)
    extremes[100:103] = np.nan

    events = detect_fixed_runs(values, extremes, 10.0, definition, "NERC1", 1982)
    assert len(events) == 1
    assert np.isnan(events[0].extremum)
    assert events[0].centroid_date == index_to_date(100, 1982)
    assert events[0].duration == 3


def test_calendar_region_keeps_events_beside_missing_extremum():
    july = (pd.Timestamp("1983-07-10"), pd.Timestamp("1983-07-14"))
    base = make_series("NERC1", spikes=[(SPIKE_START, SPIKE_END, 20.0), (*july, 20.0)])
    values = {name: np.array(arr) for name, arr in base.values.items()}
    values["T_max"][(base.dates >= SPIKE_START) & (base.dates <= SPIKE_END)] = np.nan
    series = DailySeries("NERC1", base.dates, values)

    definition = get_definition("heat", 12)
    profile = compute_threshold_profile(series, definition)
    events = detect_region_events(series, profile, range(1980, 1985))

    assert [(e.start_date, e.end_date) for e in events] == [(SPIKE_START, SPIKE_END), july]
    assert np.isnan(events[0].extremum)
    assert events[0].centroid_date == SPIKE_START
    assert events[1].extremum == 36.0
    assert events[1].centroid_date == pd.Timestamp("1983-07-12")


def test_leap_day_without_threshold_cannot_extend_run():
    """Day 366 of a leap year has a valid value but no threshold."""
    definition = get_definition("heat", 8)
    series = make_series("NERC1", spikes=[("1980-12-27", "1980-12-31", 20.0)])
    calendar = np.append(np.full(365, 15.0), np.nan)
    profile = ThresholdProfile("NERC1", definition, calendar=calendar)

    events = detect_year_events(series, profile, 1980)
    assert len(events) == 1
    assert events[0].start_date == pd.Timestamp("1980-12-27")
    assert events[0].end_date == pd.Timestamp("1980-12-30")
    assert events[0].duration == 4


def test_leap_day_without_threshold_cannot_start_run():
    definition = get_definition("heat", 8)
    series = make_series("NERC1", spikes=[("1980-12-30", "1980-12-31", 20.0)])
    calendar = np.append(np.full(365, 15.0), np.nan)
    profile = ThresholdProfile("NERC1", definition, calendar=calendar)
    assert detect_year_events(series, profile, 1980) == []
