"""
Tests for calendar arithmetic.
"""

import numpy as np
import pandas as pd
import pytest

from thermal_events.calendar_index import (
    calendar_matrix,
    calendar_year_view,
    day_of_year,
    days_in_year,
    extract_year,
    index_to_date,
    is_leap_year,
    record_years,
    year_start_offset,
)
from thermal_events.exceptions import MissingInputError


def test_leap_years():
    assert is_leap_year(1980)
    assert is_leap_year(2000)
    assert not is_leap_year(1900)
    assert not is_leap_year(1981)
    assert days_in_year(1984) == 366
    assert days_in_year(1983) == 365


def test_year_start_offset():
    assert year_start_offset(1980) == 0
    assert year_start_offset(1981) == 366
    assert year_start_offset(1985) == 366 * 2 + 365 * 3
    with pytest.raises(ValueError):
        year_start_offset(1979)


def test_index_to_date_and_day_of_year():
    assert index_to_date(0, 1981) == pd.Timestamp("1981-01-01")
    assert index_to_date(59, 1980) == pd.Timestamp("1980-02-29")
    assert index_to_date(59, 1981) == pd.Timestamp("1981-03-01")
    assert day_of_year("1980-12-31") == 366
    assert day_of_year("1981-03-01") == 60


def test_extract_year():
    values = np.arange(366 + 365, dtype=float)
    second = extract_year(values, 1981, start_year=1980)
    assert second.shape == (365,)
    assert second[0] == 366
    with pytest.raises(MissingInputError):
        extract_year(values, 1982, start_year=1980)


def test_calendar_year_view_pads_non_leap_years():
    values = np.arange(366 + 365, dtype=float)
    leap = calendar_year_view(values, 1980, start_year=1980)
    plain = calendar_year_view(values, 1981, start_year=1980)
    assert leap.shape == plain.shape == (366,)
    assert leap[365] == 365
    assert np.isnan(plain[365])
    # view is a copy
    plain[0] = -1
    assert values[366] == 366


def test_calendar_matrix():
    values = np.arange(366 + 365, dtype=float)
    matrix = calendar_matrix(values, [1980, 1981], start_year=1980)
    assert matrix.shape == (366, 2)
    assert matrix[0, 1] == 366
    assert calendar_matrix(values, [], start_year=1980).shape == (366, 0)


def test_record_years_only_counts_complete_years():
    dates = pd.date_range("1980-01-01", "1983-06-30", freq="D")
    assert list(record_years(dates)) == [1980, 1981, 1982]
