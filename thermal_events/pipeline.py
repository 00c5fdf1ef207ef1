"""
Event library construction pipeline.

Fans detection out over independent work units and concatenates their
batches:

- Families A and B: one unit per (region, year)
- Family C: one unit per region (all years)
- Spatial coverage: one unit per event

Thresholds are computed once per (region, definition, aggregation method)
before any unit runs and are passed to workers as arguments together with the
series they need.  A unit that fails is recorded in the :class:`RunReport`
and the run carries on with the remaining units.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import LibraryConfig
from .coverage import spatial_coverage
from .definitions import Definition, EventKind, Family, iter_definitions
from .detection import detect_region_events
from .events import CoverageAnnotation, Event, events_to_frame
from .exceptions import ThermalEventError
from .series import CountyMembership, DailySeries, SeriesCollection
from .thresholds import ThresholdProfile, compute_threshold_profile

logger = logging.getLogger(__name__)

# Per-unit errors that are reported instead of aborting the run
UNIT_ERRORS = (ThermalEventError, LookupError, ValueError, FloatingPointError)


@dataclass
class UnitFailure:
    stage: str
    method: str
    definition: str
    region_id: Optional[str]
    year: Optional[int]
    error: str
    message: str


@dataclass
class RunReport:
    """Unit outcomes of one or more library builds."""

    failures: List[UnitFailure] = field(default_factory=list)
    units: List[Dict[str, Any]] = field(default_factory=list)

    def record_failure(self, stage, method, definition, region_id, year, exc: BaseException):
        failure = UnitFailure(
            stage=stage,
            method=method,
            definition=definition.name,
            region_id=region_id,
            year=year,
            error=type(exc).__name__,
            message=str(exc),
        )
        self.failures.append(failure)
        logger.warning(
            "%s unit failed (%s, %s, region=%s, year=%s): %s: %s",
            stage, method, definition.name, region_id, year, failure.error, failure.message,
        )

    def record_events(self, method, definition, region_id, year, n_events: int):
        self.units.append({
            "method": method,
            "definition": definition.name,
            "region_id": region_id,
            "year": year,
            "n_events": int(n_events),
        })

    def extend(self, other: "RunReport") -> None:
        self.failures.extend(other.failures)
        self.units.extend(other.units)

    @property
    def ok(self) -> bool:
        return not self.failures

    def unit_summary(self) -> pd.DataFrame:
        """One row per completed (method, definition, region, year), zero-event units included."""
        return pd.DataFrame(self.units, columns=["method", "definition", "region_id", "year", "n_events"])

    def failure_table(self) -> pd.DataFrame:
        columns = ["stage", "method", "definition", "region_id", "year", "error", "message"]
        return pd.DataFrame([vars(f) for f in self.failures], columns=columns)

    def log_summary(self) -> None:
        summary = self.unit_summary()
        n_zero = int((summary["n_events"] == 0).sum()) if len(summary) else 0
        logger.info(
            "%d units completed (%d with zero events), %d failed",
            len(summary), n_zero, len(self.failures),
        )
        for failure in self.failures:
            logger.error(
                "failed %s unit: %s %s region=%s year=%s -> %s",
                failure.stage, failure.method, failure.definition,
                failure.region_id, failure.year, failure.message,
            )


@dataclass
class LibraryResult:
    """Event library of one (aggregation method, definition)."""

    method: str
    definition: Definition
    events: List[Event]
    profiles: Dict[str, ThresholdProfile]
    report: RunReport

    def to_frame(self) -> pd.DataFrame:
        return events_to_frame(self.events, self.definition)


@dataclass
class AnnotatedLibrary:
    """Event library with spatial coverage; failed events carry NaN coverage."""

    library: LibraryResult
    annotations: List[Optional[CoverageAnnotation]]
    report: RunReport

    @property
    def coverage(self) -> np.ndarray:
        return np.array([np.nan if a is None else a.coverage for a in self.annotations])

    def to_frame(self) -> pd.DataFrame:
        return events_to_frame(self.library.events, self.library.definition, coverage=self.coverage)


# ============================================================================
# Unit execution
# ============================================================================

def _run_units(
    func: Callable,
    tasks: Sequence[Tuple[Any, tuple]],
    max_workers: int,
) -> List[Tuple[Any, Any, Optional[BaseException]]]:
    """Run ``func(*args)`` for every task; results keep task order."""
    outcomes = []
    if max_workers <= 1 or len(tasks) <= 1:
        for key, args in tasks:
            try:
                outcomes.append((key, func(*args), None))
            except UNIT_ERRORS as exc:
                outcomes.append((key, None, exc))
        return outcomes

    with ProcessPoolExecutor(max_workers=max_workers) as pool:
        futures = [(key, pool.submit(func, *args)) for key, args in tasks]
        for key, future in futures:
            try:
                outcomes.append((key, future.result(), None))
            except UNIT_ERRORS as exc:
                outcomes.append((key, None, exc))
    return outcomes


def _detection_unit(series: DailySeries, profile: ThresholdProfile, years: List[int]) -> List[Event]:
    return detect_region_events(series, profile, years)


def _coverage_unit(
    event: Event,
    profile: ThresholdProfile,
    counties: SeriesCollection,
    membership: CountyMembership,
) -> CoverageAnnotation:
    return spatial_coverage(event, profile, counties, membership)


# ============================================================================
# Library construction
# ============================================================================

def compute_profiles(
    regional: Mapping[str, DailySeries],
    definition: Definition,
    method: str,
    config: LibraryConfig,
    report: RunReport,
    regions: Optional[Iterable[str]] = None,
) -> Dict[str, ThresholdProfile]:
    """Thresholds of every region; regions that fail are reported and skipped."""
    profiles = {}
    for region_id in (sorted(regional) if regions is None else regions):
        try:
            series = regional[region_id]
            profiles[region_id] = compute_threshold_profile(
                series, definition, years=config.years, leap_day_policy=config.leap_day_policy
            )
        except UNIT_ERRORS as exc:
            report.record_failure("threshold", method, definition, region_id, None, exc)
    return profiles


def build_event_library(
    regional: Mapping[str, DailySeries],
    definition: Definition,
    method: str = "unweighted",
    config: Optional[LibraryConfig] = None,
    regions: Optional[Iterable[str]] = None,
) -> LibraryResult:
    """
    Detect every event of one definition under one aggregation method.

    Parameters
    ----------
    regional : mapping
        Region id -> regional DailySeries for ``method``.
    definition : Definition
        Detection rule.
    method : str
        Aggregation method label, used in reports.
    config : LibraryConfig, optional
        Years, leap-day policy and worker count.
    regions : iterable of str, optional
        Subset of regions (default: all).

    Returns
    -------
    LibraryResult
        Canonical events sorted by region and start date, the threshold
        profiles used, and the run report.
    """
    config = config or LibraryConfig()
    report = RunReport()
    years = list(config.years)
    profiles = compute_profiles(regional, definition, method, config, report, regions)

    tasks = []
    for region_id, profile in profiles.items():
        series = regional[region_id]
        if definition.family is Family.CALENDAR:
            tasks.append(((region_id, None), (series, profile, years)))
        else:
            tasks.extend(((region_id, year), (series, profile, [year])) for year in years)

    logger.debug("%s %s: %d detection units", method, definition.name, len(tasks))

    events: List[Event] = []
    for (region_id, year), batch, exc in _run_units(_detection_unit, tasks, config.max_workers):
        if exc is not None:
            report.record_failure("detection", method, definition, region_id, year, exc)
            continue
        events.extend(batch)
        unit_years = years if year is None else [year]
        for y in unit_years:
            report.record_events(method, definition, region_id, y, sum(e.year == y for e in batch))

    events.sort(key=lambda e: (e.region_id, e.start_date))
    logger.info(
        "%s %s: %d events in %d regions", method, definition.name, len(events), len(profiles)
    )
    return LibraryResult(method, definition, events, profiles, report)


def annotate_event_library(
    library: LibraryResult,
    county_series: Mapping[str, DailySeries],
    membership: CountyMembership,
    config: Optional[LibraryConfig] = None,
) -> AnnotatedLibrary:
    """
    Attach spatial coverage to every event of a library.

    Each county is judged against the regional thresholds stored in
    ``library.profiles``.  Events whose coverage cannot be computed (missing
    county data, degenerate region) are reported and keep a NaN coverage.
    """
    config = config or LibraryConfig()
    report = RunReport()
    definition = library.definition

    region_counties: Dict[str, SeriesCollection] = {}
    for region_id in {e.region_id for e in library.events}:
        members = [county_series[c] for c in membership.counties_in(region_id) if c in county_series]
        region_counties[region_id] = SeriesCollection(members, label=f"counties of {region_id}")

    tasks = [
        (index, (event, library.profiles[event.region_id], region_counties[event.region_id], membership))
        for index, event in enumerate(library.events)
    ]

    annotations: List[Optional[CoverageAnnotation]] = [None] * len(library.events)
    for index, annotation, exc in _run_units(_coverage_unit, tasks, config.max_workers):
        if exc is not None:
            event = library.events[index]
            report.record_failure("coverage", library.method, definition, event.region_id, event.year, exc)
            continue
        annotations[index] = annotation

    return AnnotatedLibrary(library, annotations, report)


@dataclass
class RunOutcome:
    libraries: Dict[Tuple[str, int], LibraryResult] = field(default_factory=dict)
    annotated: Dict[Tuple[str, int], AnnotatedLibrary] = field(default_factory=dict)
    report: RunReport = field(default_factory=RunReport)


def run_all(
    regional_by_method: Mapping[str, Mapping[str, DailySeries]],
    kind,
    county_series: Optional[Mapping[str, DailySeries]] = None,
    membership: Optional[CountyMembership] = None,
    config: Optional[LibraryConfig] = None,
    definitions: Optional[Iterable[Definition]] = None,
) -> RunOutcome:
    """
    Build (and optionally annotate) the libraries of every aggregation method
    and definition of one event kind.

    A method listed in ``config.methods`` but absent from
    ``regional_by_method`` is a missing input: it is reported and skipped.
    When ``config.output_dir`` is set, every library is written there.
    """
    # io_utils imports this module
    from .io_utils import write_event_library

    config = config or LibraryConfig()
    kind = EventKind(kind)
    definitions = list(definitions) if definitions is not None else list(iter_definitions(kind))
    outcome = RunOutcome()

    for method in config.methods:
        if method not in regional_by_method:
            for definition in definitions:
                outcome.report.record_failure(
                    "input", method, definition, None, None,
                    LookupError(f"no regional series for aggregation method {method!r}"),
                )
            continue
        regional = regional_by_method[method]
        for definition in definitions:
            if definition.kind is not kind:
                raise ValueError(f"definition {definition.name} is not a {kind.value} definition")
            library = build_event_library(regional, definition, method, config)
            outcome.libraries[(method, definition.definition_id)] = library
            outcome.report.extend(library.report)

            annotated = None
            if county_series is not None and membership is not None:
                annotated = annotate_event_library(library, county_series, membership, config)
                outcome.annotated[(method, definition.definition_id)] = annotated
                outcome.report.extend(annotated.report)

            if config.output_dir is not None:
                write_event_library(library, config.output_dir)
                if annotated is not None:
                    write_event_library(annotated, config.output_dir)

    outcome.report.log_summary()
    return outcome
