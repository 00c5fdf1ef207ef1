"""
日历索引模块 (Calendar Indexer)

Maps (year, day-of-year) positions onto absolute day offsets of a daily record
that starts on 1 January of ``start_year``, and builds fixed-length 366-slot
calendar views of a series.

Calendar positions are ordinal days of the year: in a non-leap year slot 60 is
1 March, in a leap year it is 29 February.  Slot 366 only exists in leap years
and is padded with NaN otherwise.
"""

from datetime import date
from typing import Iterable, Union

import numpy as np
import pandas as pd

from .config import CALENDAR_SLOTS, RECORD_START_YEAR
from .exceptions import MissingInputError

DateLike = Union[str, date, pd.Timestamp, np.datetime64]


def is_leap_year(year: int) -> bool:
    """Gregorian leap-year rule."""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def year_start_offset(year: int, start_year: int = RECORD_START_YEAR) -> int:
    """
    Absolute 0-based offset of 1 January ``year`` in a record starting on
    1 January ``start_year``.

    >>> year_start_offset(1981)
    366
    """
    if year < start_year:
        raise ValueError(f"year {year} precedes record start year {start_year}")
    return sum(days_in_year(y) for y in range(start_year, year))


def year_slice(year: int, start_year: int = RECORD_START_YEAR) -> slice:
    """Slice selecting every day of ``year`` in the record."""
    start = year_start_offset(year, start_year)
    return slice(start, start + days_in_year(year))


def index_to_date(day_index: int, year: int) -> pd.Timestamp:
    """Convert a 0-based day index within ``year`` into a date."""
    return pd.Timestamp(year=year, month=1, day=1) + pd.Timedelta(days=int(day_index))


def date_to_offset(when: DateLike, record_start: DateLike) -> int:
    """Days elapsed between ``record_start`` and ``when`` (0-based)."""
    return int((pd.Timestamp(when) - pd.Timestamp(record_start)).days)


def day_of_year(when: DateLike) -> int:
    """Ordinal day of the year, 1..366."""
    return int(pd.Timestamp(when).dayofyear)


def extract_year(
    values: np.ndarray,
    year: int,
    start_year: int = RECORD_START_YEAR,
) -> np.ndarray:
    """Return the 365/366 values of ``year`` from a whole-record array."""
    values = np.asarray(values, dtype=float)
    sl = year_slice(year, start_year)
    if sl.stop > values.shape[-1]:
        raise MissingInputError(
            f"record of {values.shape[-1]} days does not cover year {year} "
            f"(needs offsets {sl.start}..{sl.stop - 1})"
        )
    return values[..., sl]


def calendar_year_view(
    values: np.ndarray,
    year: int,
    start_year: int = RECORD_START_YEAR,
) -> np.ndarray:
    """
    366-slot view of one year; slot 366 is NaN for non-leap years.

    The result is a copy, the input is never modified.
    """
    year_values = extract_year(values, year, start_year)
    view = np.full(CALENDAR_SLOTS, np.nan)
    view[: year_values.shape[-1]] = year_values
    return view


def calendar_matrix(
    values: np.ndarray,
    years: Iterable[int],
    start_year: int = RECORD_START_YEAR,
) -> np.ndarray:
    """
    Stack the calendar views of ``years`` into a (366, n_years) matrix.

    Row ``d`` holds calendar day ``d + 1`` of every year.
    """
    columns = [calendar_year_view(values, year, start_year) for year in years]
    if not columns:
        return np.empty((CALENDAR_SLOTS, 0))
    return np.column_stack(columns)


def record_years(dates: pd.DatetimeIndex) -> range:
    """Complete calendar years spanned by a daily index."""
    first, last = dates[0], dates[-1]
    start = first.year if (first.month, first.day) == (1, 1) else first.year + 1
    end = last.year if (last.month, last.day) == (12, 31) else last.year - 1
    return range(start, end + 1)
