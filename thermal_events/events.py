"""
Event records and their tabular form.

The tabular contract shared with downstream reporting is one row per event::

    start_date, end_date, centroid_date, highest_temperature | lowest_temperature,
    duration, NERC_ID [, spatial_coverage]
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .definitions import Definition

REGION_COLUMN = "NERC_ID"
COVERAGE_COLUMN = "spatial_coverage"
DATE_COLUMNS = ("start_date", "end_date", "centroid_date")


@dataclass(frozen=True)
class Event:
    """A detected heat wave or cold snap of one region."""

    region_id: str
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    centroid_date: pd.Timestamp
    extremum: float
    duration: int

    def __post_init__(self):
        for name in DATE_COLUMNS:
            object.__setattr__(self, name, pd.Timestamp(getattr(self, name)).normalize())
        span = (self.end_date - self.start_date).days + 1
        if span < 1:
            raise ValueError(f"event ends ({self.end_date.date()}) before it starts ({self.start_date.date()})")
        if int(self.duration) != span:
            raise ValueError(f"duration {self.duration} does not match span of {span} days")
        if not self.start_date <= self.centroid_date <= self.end_date:
            raise ValueError("centroid date lies outside the event window")
        object.__setattr__(self, "duration", int(self.duration))
        object.__setattr__(self, "extremum", float(self.extremum))

    @property
    def year(self) -> int:
        return int(self.start_date.year)

    def overlaps(self, other: "Event") -> bool:
        """Inclusive date-range overlap."""
        return self.start_date <= other.end_date and self.end_date >= other.start_date

    def to_record(self, definition: Definition) -> dict:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "centroid_date": self.centroid_date,
            definition.extremum_column: self.extremum,
            "duration": self.duration,
            REGION_COLUMN: self.region_id,
        }


@dataclass(frozen=True)
class CoverageAnnotation:
    """Spatial coverage of one regional event."""

    event: Event
    coverage: float
    n_counties: int
    n_passing: int

    def __post_init__(self):
        if self.n_counties < 1:
            raise ValueError("coverage needs at least one county")
        if not 0 <= self.n_passing <= self.n_counties:
            raise ValueError("n_passing must lie between 0 and n_counties")
        if not 0.0 <= self.coverage <= 100.0:
            raise ValueError(f"coverage {self.coverage} outside [0, 100]")


def library_columns(definition: Definition, annotated: bool = False) -> List[str]:
    columns = list(DATE_COLUMNS) + [definition.extremum_column, "duration", REGION_COLUMN]
    if annotated:
        columns.append(COVERAGE_COLUMN)
    return columns


def events_to_frame(
    events: Iterable[Event],
    definition: Definition,
    coverage: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """Tabulate events; an empty input gives an empty frame with the contract columns."""
    events = list(events)
    frame = pd.DataFrame(
        [e.to_record(definition) for e in events],
        columns=library_columns(definition),
    )
    for name in DATE_COLUMNS:
        frame[name] = pd.to_datetime(frame[name])
    frame["duration"] = frame["duration"].astype(int)
    if coverage is not None:
        if len(coverage) != len(events):
            raise ValueError("coverage must have one value per event")
        frame[COVERAGE_COLUMN] = np.asarray(coverage, dtype=float)
    return frame


def frame_to_events(frame: pd.DataFrame, definition: Definition) -> List[Event]:
    """Inverse of :func:`events_to_frame` (coverage column ignored)."""
    missing = [c for c in library_columns(definition) if c not in frame.columns]
    if missing:
        raise KeyError(f"event library lacks columns {missing}")
    return [
        Event(
            region_id=str(row[REGION_COLUMN]),
            start_date=row["start_date"],
            end_date=row["end_date"],
            centroid_date=row["centroid_date"],
            extremum=row[definition.extremum_column],
            duration=row["duration"],
        )
        for _, row in frame.iterrows()
    ]
