"""
共享测试夹具 (Shared Test Fixtures)

Flat records with injected spikes give exactly known thresholds: a constant
baseline puts every quantile on the baseline value, and the strict comparison
makes only the spike days qualify.
"""

import numpy as np
import pandas as pd
import pytest

from thermal_events.config import LibraryConfig
from thermal_events.series import CountyMembership, DailySeries, SeriesCollection

START_YEAR = 1980
END_YEAR = 1984

# Injected event: 11-15 April 1982 (day indices 100..104 of 1982)
SPIKE_START = pd.Timestamp("1982-04-11")
SPIKE_END = pd.Timestamp("1982-04-15")
SPIKE_PEAK = pd.Timestamp("1982-04-13")


def make_series(unit_id, base=10.0, spikes=(), start_year=START_YEAR, end_year=END_YEAR,
                drop=()):
    """
    常数基线加注入异常
    Constant baseline with additive spikes.

    ``spikes`` is a sequence of (start, end, delta); T_max additionally peaks
    on the middle day of each spike.  Statistics named in ``drop`` are left out.
    """
    dates = pd.date_range(f"{start_year}-01-01", f"{end_year}-12-31", freq="D")
    t_mean = np.full(len(dates), base)
    for start, end, delta in spikes:
        t_mean[(dates >= start) & (dates <= end)] += delta
    t_max = t_mean + 5.0
    t_min = t_mean - 5.0
    for start, end, delta in spikes:
        window = np.flatnonzero((dates >= start) & (dates <= end))
        t_max[window[len(window) // 2]] += 1.0
    values = {"T_mean": t_mean, "T_max": t_max, "T_min": t_min}
    for name in drop:
        values.pop(name)
    return DailySeries(unit_id, dates, values)


@pytest.fixture
def config():
    return LibraryConfig(start_year=START_YEAR, end_year=END_YEAR)


@pytest.fixture
def regional():
    """NERC1 has a 5-day warm spike, NERC2 is flat."""
    return SeriesCollection(
        [
            make_series("NERC1", spikes=[(SPIKE_START, SPIKE_END, 20.0)]),
            make_series("NERC2"),
        ],
        label="unweighted",
    )


@pytest.fixture
def membership():
    return CountyMembership({"01001": 1, "01003": 1, "02010": 2})


@pytest.fixture
def counties():
    """County 1001 shares the NERC1 spike, county 1003 does not."""
    return SeriesCollection(
        [
            make_series("1001", spikes=[(SPIKE_START, SPIKE_END, 20.0)]),
            make_series("1003"),
            make_series("2010"),
        ],
        label="counties",
    )
