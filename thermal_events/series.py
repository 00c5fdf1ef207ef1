"""
Daily temperature series containers.

A :class:`DailySeries` holds the daily mean, maximum and minimum temperature of
one spatial unit (a NERC subregion under one aggregation method, or a county)
over a record that starts on 1 January.  Arrays are copied on construction and
flagged read-only.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd

from .calendar_index import date_to_offset, record_years
from .config import REGION_PREFIX, STATISTICS
from .exceptions import MissingInputError


@dataclass(frozen=True, eq=False)
class DailySeries:
    """Immutable daily statistics for one spatial unit."""

    unit_id: str
    dates: pd.DatetimeIndex
    values: Dict[str, np.ndarray] = field(repr=False)

    def __post_init__(self):
        dates = pd.DatetimeIndex(self.dates)
        if len(dates) == 0:
            raise ValueError(f"series {self.unit_id!r} is empty")
        if (dates[0].month, dates[0].day) != (1, 1):
            raise ValueError(
                f"series {self.unit_id!r} must start on 1 January, starts {dates[0].date()}"
            )
        expected = pd.date_range(dates[0], periods=len(dates), freq="D")
        if not dates.equals(expected):
            raise ValueError(f"series {self.unit_id!r} dates are not a contiguous daily index")

        frozen = {}
        for name, arr in self.values.items():
            arr = np.array(arr, dtype=float, copy=True)
            if arr.shape != (len(dates),):
                raise ValueError(
                    f"statistic {name!r} of {self.unit_id!r} has shape {arr.shape}, "
                    f"expected ({len(dates)},)"
                )
            arr.flags.writeable = False
            frozen[name] = arr
        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "values", frozen)

    @classmethod
    def from_frame(cls, unit_id: str, frame: pd.DataFrame) -> "DailySeries":
        """Build from a date-indexed frame whose columns are statistic names."""
        columns = [c for c in STATISTICS if c in frame.columns]
        frame = frame.sort_index()
        return cls(
            unit_id=str(unit_id),
            dates=pd.DatetimeIndex(frame.index),
            values={c: frame[c].to_numpy(dtype=float) for c in columns},
        )

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def start_date(self) -> pd.Timestamp:
        return self.dates[0]

    @property
    def start_year(self) -> int:
        return int(self.dates[0].year)

    @property
    def years(self) -> range:
        return record_years(self.dates)

    def statistic(self, name: str) -> np.ndarray:
        try:
            return self.values[name]
        except KeyError:
            raise MissingInputError(
                f"series {self.unit_id!r} has no statistic {name!r} "
                f"(available: {sorted(self.values)})"
            ) from None

    def offset_of(self, when) -> int:
        return date_to_offset(when, self.start_date)

    def window(self, name: str, start, end) -> np.ndarray:
        """Values of ``name`` from ``start`` to ``end`` inclusive."""
        lo, hi = self.offset_of(start), self.offset_of(end)
        if lo < 0 or hi >= len(self) or hi < lo:
            raise MissingInputError(
                f"window {pd.Timestamp(start).date()}..{pd.Timestamp(end).date()} "
                f"is outside the record of {self.unit_id!r}"
            )
        return self.statistic(name)[lo:hi + 1]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(dict(self.values), index=self.dates)


class SeriesCollection(Mapping):
    """Unit id -> :class:`DailySeries` for one aggregation method or for counties."""

    def __init__(self, series: Iterable[DailySeries], label: str = ""):
        self.label = label
        self._series: Dict[str, DailySeries] = {}
        for s in series:
            if s.unit_id in self._series:
                raise ValueError(f"duplicate unit id {s.unit_id!r} in {label or 'collection'}")
            self._series[s.unit_id] = s

    def __getitem__(self, unit_id: str) -> DailySeries:
        try:
            return self._series[unit_id]
        except KeyError:
            raise MissingInputError(
                f"no series for unit {unit_id!r} in {self.label or 'collection'}"
            ) from None

    def __contains__(self, unit_id) -> bool:
        return unit_id in self._series

    def get(self, unit_id, default=None):
        return self._series.get(unit_id, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        unit_column: str,
        date_column: str = "date",
        label: str = "",
        id_formatter=str,
    ) -> "SeriesCollection":
        """Split a tidy frame (one row per unit and day) into series."""
        if unit_column not in frame.columns:
            raise MissingInputError(f"column {unit_column!r} not found in input frame")
        frame = frame.copy()
        frame[date_column] = pd.to_datetime(frame[date_column])
        series = []
        for unit, group in frame.groupby(unit_column, sort=True):
            series.append(
                DailySeries.from_frame(id_formatter(unit), group.set_index(date_column))
            )
        return cls(series, label=label)


def normalize_county_id(county_id) -> str:
    """County FIPS as a string without leading zeros."""
    text = str(county_id).strip()
    if text.endswith(".0"):
        text = text[:-2]
    return text.lstrip("0") or "0"


def format_region_id(region) -> str:
    """Region id with the ``NERC`` prefix, e.g. ``7`` -> ``NERC7``."""
    text = str(region).strip()
    if text.endswith(".0"):
        text = text[:-2]
    return text if text.startswith(REGION_PREFIX) else f"{REGION_PREFIX}{text}"


class CountyMembership:
    """County -> region assignment."""

    def __init__(self, assignment: Dict[str, str]):
        self._assignment = {
            normalize_county_id(c): format_region_id(r) for c, r in assignment.items()
        }

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        county_column: str = "GEOID",
        region_column: str = "ID",
    ) -> "CountyMembership":
        missing = [c for c in (county_column, region_column) if c not in frame.columns]
        if missing:
            raise MissingInputError(f"membership table lacks columns {missing}")
        return cls(dict(zip(frame[county_column], frame[region_column])))

    def __len__(self) -> int:
        return len(self._assignment)

    def region_of(self, county_id) -> Optional[str]:
        return self._assignment.get(normalize_county_id(county_id))

    def counties_in(self, region_id) -> List[str]:
        region_id = format_region_id(region_id)
        return sorted(c for c, r in self._assignment.items() if r == region_id)

    @property
    def regions(self) -> List[str]:
        return sorted(set(self._assignment.values()))
