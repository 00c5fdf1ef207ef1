"""
空间覆盖验证模块 (Spatial Coverage Validator)

对已检测的区域事件，在其日期窗口内逐县重新应用相同的判据，
计算满足判据的县所占百分比。
For an already detected regional event, re-apply the same per-day criterion
to every county of the region over exactly the event's date window and
report the percentage of counties that satisfy it.

County data are judged against the *regional* thresholds, not against
thresholds fitted to the county itself.

县级判据 (County criteria):
--------------------------
- Family A: 存在 >= 2 天的连续超阈时段 (a run of >= 2 days beyond the
  fixed threshold)
- Family C: 存在 >= 3 天的连续超过日历日阈值的时段 (a run of >= 3 days
  beyond the day-of-year thresholds of the window)
- Family B: 固定窗口、不增长 (fixed window, no growth): every day beyond the
  loose threshold, a run of >= 3 days beyond the strict threshold, and the
  window mean beyond the strict threshold
"""

from collections.abc import Mapping
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .definitions import Family
from .detection import longest_run
from .events import CoverageAnnotation, Event
from .exceptions import DegenerateRegionError
from .series import CountyMembership, DailySeries
from .thresholds import ThresholdProfile


def window_days_of_year(event: Event) -> np.ndarray:
    """Ordinal day-of-year of every date in the event window."""
    return pd.date_range(event.start_date, event.end_date, freq="D").dayofyear.to_numpy()


def county_satisfies(
    values: np.ndarray,
    profile: ThresholdProfile,
    days_of_year: Optional[np.ndarray] = None,
) -> bool:
    """
    判断一个县在事件窗口内是否满足定义判据
    Whether one county's window of values satisfies the definition.

    Parameters
    ----------
    values : np.ndarray
        县在事件窗口内的统计量 (county statistic over the event window)
    profile : ThresholdProfile
        区域阈值 (regional thresholds of the event's definition)
    days_of_year : np.ndarray, optional
        窗口内每天的日历日，Family C 必需
        Day-of-year of each window day; required for Family C.
    """
    definition = profile.definition
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return False

    if definition.family is Family.FIXED:
        exceed = definition.beyond(values, profile.strict)
        return longest_run(exceed) >= definition.min_run_length

    if definition.family is Family.CALENDAR:
        if days_of_year is None:
            raise ValueError("calendar-day criterion needs the window's days of year")
        days_of_year = np.asarray(days_of_year, dtype=int)
        if days_of_year.shape != values.shape:
            raise ValueError("days_of_year must align with values")
        exceed = definition.beyond(values, profile.for_days_of_year(days_of_year))
        return longest_run(exceed) >= definition.min_run_length

    # Family B: fixed window, dual threshold with mean check
    all_loose = bool(definition.beyond(values, profile.loose).all())
    strict_run = longest_run(definition.beyond(values, profile.strict)) >= definition.min_run_length
    mean_strict = bool(definition.beyond(np.mean(values), profile.strict))
    return all_loose and strict_run and mean_strict


def coverage_percentage(flags: Sequence[bool]) -> float:
    """Percentage of True flags; an empty sequence is a degenerate region."""
    flags = np.asarray(flags, dtype=bool)
    if flags.size == 0:
        raise DegenerateRegionError("spatial coverage is undefined for zero counties")
    return float(flags.sum()) / flags.size * 100.0


def spatial_coverage(
    event: Event,
    profile: ThresholdProfile,
    county_series: Mapping,
    membership: CountyMembership,
) -> CoverageAnnotation:
    """
    计算单个事件的空间覆盖率
    Spatial coverage of one regional event.

    Parameters
    ----------
    event : Event
        规范区域事件 (canonical regional event)
    profile : ThresholdProfile
        事件所属区域与定义的阈值 (thresholds of the event's region/definition)
    county_series : mapping
        县代码 -> DailySeries (county id -> county daily series)
    membership : CountyMembership
        县 -> 区域映射 (county -> region assignment)

    Returns
    -------
    CoverageAnnotation
        覆盖率位于 [0, 100] (coverage in [0, 100])

    Raises
    ------
    DegenerateRegionError
        区域内没有县 (no county is mapped to the event's region)
    MissingInputError
        某个成员县缺少序列或窗口超出记录
        A member county has no series, or the window is outside its record.
    """
    if profile.region_id != event.region_id:
        raise ValueError(
            f"thresholds of {profile.region_id!r} used for an event of {event.region_id!r}"
        )
    counties = membership.counties_in(event.region_id)
    if not counties:
        raise DegenerateRegionError(f"region {event.region_id!r} has no counties")

    statistic = profile.definition.statistic
    days_of_year = window_days_of_year(event) if profile.is_calendar else None

    flags: Dict[str, bool] = {}
    for county in counties:
        series: DailySeries = county_series[county]
        values = series.window(statistic, event.start_date, event.end_date)
        flags[county] = county_satisfies(values, profile, days_of_year)

    n_passing = sum(flags.values())
    return CoverageAnnotation(
        event=event,
        coverage=coverage_percentage(list(flags.values())),
        n_counties=len(flags),
        n_passing=n_passing,
    )
