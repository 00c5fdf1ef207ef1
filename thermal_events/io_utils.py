"""
IO utilities for temperature series, county membership tables and event
libraries.

Tidy CSV files are read with pandas.  NetCDF reading is an optional wrapper:
if xarray is not installed it raises a clear ImportError.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Union

import pandas as pd

from .config import AGGREGATION_METHODS, COVERAGE_SUBDIR, LIBRARY_FILE_PATTERNS, STATISTICS
from .definitions import Definition, EventKind
from .events import DATE_COLUMNS, REGION_COLUMN, library_columns
from .exceptions import MissingInputError
from .pipeline import AnnotatedLibrary, LibraryResult
from .series import CountyMembership, DailySeries, SeriesCollection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _require_xarray():
    try:
        import xarray as xr  # type: ignore
    except Exception as exc:  # pragma: no cover - import guard
        raise ImportError(
            "xarray is required for NetCDF IO. Install xarray and netCDF4."
        ) from exc
    return xr


def _existing(path: PathLike) -> Path:
    path = Path(path)
    if not path.exists():
        raise MissingInputError(f"input file not found: {path}")
    return path


def read_series_csv(
    path: PathLike,
    unit_column: str,
    date_column: str = "date",
    label: str = "",
    id_formatter: Callable = str,
) -> SeriesCollection:
    """Read a tidy CSV (one row per unit and day) into a SeriesCollection.

    Expected columns: ``date_column``, ``unit_column`` and any of
    ``T_mean``, ``T_max``, ``T_min``.
    """
    path = _existing(path)
    frame = pd.read_csv(path)
    collection = SeriesCollection.from_frame(
        frame, unit_column, date_column=date_column, label=label or path.stem,
        id_formatter=id_formatter,
    )
    logger.info("read %d series from %s", len(collection), path)
    return collection


def read_series_netcdf(
    path: PathLike,
    unit_dim: str,
    time_name: str = "time",
    variables: Iterable[str] = STATISTICS,
    label: str = "",
    id_formatter: Callable = str,
) -> SeriesCollection:
    """Read per-unit daily statistics from a NetCDF file via xarray.

    Each variable must be two-dimensional over (``unit_dim``, ``time_name``).
    """
    xr = _require_xarray()
    path = _existing(path)
    with xr.open_dataset(path) as ds:
        names = [v for v in variables if v in ds]
        if not names:
            raise MissingInputError(f"none of {list(variables)} found in {path}")
        dates = pd.DatetimeIndex(ds[time_name].to_index())
        series = []
        for unit in ds[unit_dim].values:
            sel = ds.sel({unit_dim: unit})
            series.append(
                DailySeries(
                    unit_id=id_formatter(unit),
                    dates=dates,
                    values={n: sel[n].transpose(time_name).values for n in names},
                )
            )
    return SeriesCollection(series, label=label or path.stem)


def read_membership_csv(
    path: PathLike,
    county_column: str = "GEOID",
    region_column: str = "ID",
) -> CountyMembership:
    """Read the county -> NERC subregion table."""
    frame = pd.read_csv(_existing(path), dtype={county_column: str})
    return CountyMembership.from_frame(frame, county_column, region_column)


def library_path(
    kind,
    method: str,
    definition_id: int,
    directory: PathLike,
    annotated: bool = False,
) -> Path:
    """File path of one event library, e.g. ``heat_wave_library_NERC_average_def3.csv``."""
    kind = EventKind(kind)
    if method not in AGGREGATION_METHODS:
        raise ValueError(f"Unknown aggregation method: {method!r}")
    name = LIBRARY_FILE_PATTERNS[kind.value].format(
        stem=AGGREGATION_METHODS[method], definition_id=definition_id
    )
    directory = Path(directory)
    if annotated:
        directory = directory / COVERAGE_SUBDIR
    return directory / name


def write_event_library(
    library: Union[LibraryResult, AnnotatedLibrary],
    directory: PathLike,
) -> Path:
    """Write a library (annotated ones go to the coverage subdirectory)."""
    annotated = isinstance(library, AnnotatedLibrary)
    base = library.library if annotated else library
    path = library_path(
        base.definition.kind, base.method, base.definition.definition_id, directory, annotated
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = library.to_frame()
    frame.to_csv(path, index=False, date_format="%Y-%m-%d")
    logger.info("wrote %d events to %s", len(frame), path)
    return path


def read_event_library(path: PathLike, definition: Definition) -> pd.DataFrame:
    """Read a library CSV written by :func:`write_event_library`."""
    frame = pd.read_csv(_existing(path), parse_dates=list(DATE_COLUMNS))
    missing = [c for c in library_columns(definition) if c not in frame.columns]
    if missing:
        raise MissingInputError(f"event library {path} lacks columns {missing}")
    frame[REGION_COLUMN] = frame[REGION_COLUMN].astype(str)
    return frame
