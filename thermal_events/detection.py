"""
极端温度事件检测模块 (Extreme Thermal Event Detection Module)

本模块实现三种事件检测算法族，对应十二种热浪/寒潮定义。
This module implements the three run-finding algorithm families behind the
twelve heat-wave / cold-snap definitions.

主要方法 (Main Methods):
-----------------------
1. Family A: 固定阈值连续日 (Fixed-threshold runs)
   - 单一分位数阈值，保留 >= 2 天的最长连续超阈时段
   - One quantile threshold, maximal runs of >= 2 days

2. Family B: 双阈值增长与合并 (Dual-threshold growth and merge)
   - 连续 3 天超过严格阈值时开启片段，在宽松阈值和均值条件下向右、向左增长
   - A segment opens on 3 consecutive days beyond the strict threshold and
     grows right, then left, while each new day is beyond the loose threshold
     and the segment mean stays beyond the strict threshold
   - 同一区域同一年内重叠的片段被合并
   - Overlapping segments of one region and year are merged

3. Family C: 日历日阈值连续日 (Calendar-day-threshold runs)
   - 每天与其日历日阈值比较，保留 >= 3 天的连续时段
   - Each day is compared with its own day-of-year threshold, runs of
     >= 3 days are kept

所有算法逐年运行，事件不会跨越日历年。
All families run year by year; an event never crosses a calendar year.

事件极值 (Event extremum):
-------------------------
热浪取日最高温的最大值，寒潮取日最低温的最小值；质心日为首次达到极值的日期。
Heat waves report the highest daily maximum temperature within the event,
cold snaps the lowest daily minimum; the centroid date is the first day
attaining that value.
"""

import logging
from typing import Callable, Dict, Iterable, List, Tuple

import numpy as np
from scipy import ndimage

from .calendar_index import calendar_year_view, extract_year, index_to_date
from .definitions import Definition, Family
from .events import Event
from .exceptions import InvalidDefinitionError
from .merge import merge_overlapping_events
from .series import DailySeries
from .thresholds import ThresholdProfile

logger = logging.getLogger(__name__)


# ============================================================================
# 连续时段识别 (Run Identification)
# ============================================================================

def find_runs(mask: np.ndarray, min_length: int = 1) -> List[Tuple[int, int]]:
    """
    识别布尔掩码中的最长连续 True 时段
    Maximal runs of True in a boolean mask.

    Parameters
    ----------
    mask : array-like (bool)
        逐日判据 (per-day criterion)
    min_length : int, default=1
        最短长度 (shortest run kept)

    Returns
    -------
    runs : list of (start, end)
        起止索引，end 包含在内 (0-based, end inclusive)

    Examples
    --------
    >>> find_runs(np.array([False, True, True, True, False, True]), min_length=2)
    [(1, 3)]
    """
    mask = np.asarray(mask, dtype=bool)
    if mask.ndim != 1:
        raise ValueError("mask must be one-dimensional")
    labels, n_runs = ndimage.label(mask)
    if n_runs == 0:
        return []
    runs = []
    for sl in ndimage.find_objects(labels):
        start, stop = sl[0].start, sl[0].stop
        if stop - start >= min_length:
            runs.append((int(start), int(stop - 1)))
    return runs


def longest_run(mask: np.ndarray) -> int:
    """Length of the longest run of True (0 if none)."""
    runs = find_runs(mask)
    return max((end - start + 1 for start, end in runs), default=0)


def _event_from_span(
    start: int,
    end: int,
    extreme_values: np.ndarray,
    definition: Definition,
    region_id: str,
    year: int,
) -> Event:
    window = extreme_values[start:end + 1]
    offset = definition.extremum_index(window)
    return Event(
        region_id=region_id,
        start_date=index_to_date(start, year),
        end_date=index_to_date(end, year),
        centroid_date=index_to_date(start + offset, year),
        extremum=float(window[offset]),
        duration=end - start + 1,
    )


# ============================================================================
# Family A: 固定阈值 (Fixed Threshold)
# ============================================================================

def detect_fixed_runs(
    values: np.ndarray,
    extreme_values: np.ndarray,
    threshold: float,
    definition: Definition,
    region_id: str,
    year: int,
) -> List[Event]:
    """
    固定阈值连续时段检测（单年）
    Fixed-threshold run detection over one year.

    Parameters
    ----------
    values : np.ndarray
        该年触发统计量的日值 (triggering statistic, one year)
    extreme_values : np.ndarray
        该年用于极值的统计量 (T_max for heat, T_min for cold)
    threshold : float
        区域固定阈值 (regional fixed threshold); NaN yields no event
    """
    exceed = definition.beyond(values, threshold)
    return [
        _event_from_span(start, end, extreme_values, definition, region_id, year)
        for start, end in find_runs(exceed, definition.min_run_length)
    ]


# ============================================================================
# Family B: 双阈值增长 (Dual Threshold with Growth)
# ============================================================================

def grow_segments(
    values: np.ndarray,
    strict: float,
    loose: float,
    definition: Definition,
) -> List[Tuple[int, int]]:
    """
    贪婪增长的双阈值片段
    Greedy dual-threshold segments (before merging).

    算法步骤 (Algorithm Steps):
    -------------------------
    1. 顺序扫描，连续 ``min_run_length`` 天均超过严格阈值时开启片段
       Scan in order; open a segment when ``min_run_length`` consecutive days
       are all beyond the strict threshold
    2. 向右逐日增长：下一天须超过宽松阈值，且整个片段均值仍超过严格阈值
       Grow right one day at a time: the next day must be beyond the loose
       threshold and the whole-segment mean must stay beyond the strict one
    3. 以相同规则向左增长；失败的增长步不被应用
       Grow left under the same rule; a failed step is not applied
    4. 长度 >= ``min_run_length`` 时接受片段，从片段末尾之后继续扫描
       Accept the segment if long enough and resume after its end

    Returns
    -------
    segments : list of (start, end)
        0-based inclusive spans, in discovery order.  Left growth may make a
        later segment overlap an earlier one.
    """
    values = np.asarray(values, dtype=float)
    n = values.size
    k = definition.min_run_length
    strict_ok = definition.beyond(values, strict)
    loose_ok = definition.beyond(values, loose)

    def mean_ok(lo: int, hi: int) -> bool:
        return bool(definition.beyond(np.mean(values[lo:hi + 1]), strict))

    segments = []
    i = 0
    while i <= n - k:
        if not strict_ok[i:i + k].all():
            i += 1
            continue

        start, end = i, i + k - 1

        # 向右增长 (grow right)
        while end < n - 1 and loose_ok[end + 1] and mean_ok(start, end + 1):
            end += 1

        # 向左增长 (grow left)
        while start > 0 and loose_ok[start - 1] and mean_ok(start - 1, end):
            start -= 1

        if end - start + 1 >= k:
            segments.append((start, end))
        i = end + 1

    return segments


def detect_dual_threshold_segments(
    values: np.ndarray,
    extreme_values: np.ndarray,
    strict: float,
    loose: float,
    definition: Definition,
    region_id: str,
    year: int,
) -> List[Event]:
    """Family B candidates of one year (unmerged)."""
    return [
        _event_from_span(start, end, extreme_values, definition, region_id, year)
        for start, end in grow_segments(values, strict, loose, definition)
    ]


# ============================================================================
# Family C: 日历日阈值 (Calendar-Day Threshold)
# ============================================================================

def detect_calendar_runs(
    values: np.ndarray,
    extreme_values: np.ndarray,
    thresholds: np.ndarray,
    definition: Definition,
    region_id: str,
    year: int,
) -> List[Event]:
    """
    日历日阈值连续时段检测（单年）
    Calendar-day threshold run detection over one year.

    ``values``/``extreme_values`` are the year's 366-slot calendar views and
    ``thresholds`` the region's 366 day-of-year thresholds.  Slot 366 of a
    non-leap year holds NaN, as does any undefined threshold, so neither can
    start, extend or join a run.  A shorter threshold array (365 entries) is
    padded with NaN rather than rejected.
    """
    values = np.asarray(values, dtype=float)
    thresholds = np.asarray(thresholds, dtype=float)
    if thresholds.size < values.size:
        thresholds = np.concatenate([thresholds, np.full(values.size - thresholds.size, np.nan)])
    exceed = definition.beyond(values, thresholds[:values.size])
    return [
        _event_from_span(start, end, extreme_values, definition, region_id, year)
        for start, end in find_runs(exceed, definition.min_run_length)
    ]


# ============================================================================
# 按定义族分派 (Dispatch by Family)
# ============================================================================

def _fixed_year(series: DailySeries, profile: ThresholdProfile, year: int) -> List[Event]:
    definition = profile.definition
    values = extract_year(series.statistic(definition.statistic), year, series.start_year)
    extremes = extract_year(series.statistic(definition.extremum_statistic), year, series.start_year)
    return detect_fixed_runs(values, extremes, profile.strict, definition, series.unit_id, year)


def _dual_year(series: DailySeries, profile: ThresholdProfile, year: int) -> List[Event]:
    definition = profile.definition
    values = extract_year(series.statistic(definition.statistic), year, series.start_year)
    extremes = extract_year(series.statistic(definition.extremum_statistic), year, series.start_year)
    candidates = detect_dual_threshold_segments(
        values, extremes, profile.strict, profile.loose, definition, series.unit_id, year
    )
    merged = merge_overlapping_events(candidates, definition)
    if len(merged) != len(candidates):
        logger.debug(
            "%s %s %d: merged %d candidates into %d events",
            series.unit_id, definition.name, year, len(candidates), len(merged),
        )
    return merged


def _calendar_year(series: DailySeries, profile: ThresholdProfile, year: int) -> List[Event]:
    definition = profile.definition
    values = calendar_year_view(series.statistic(definition.statistic), year, series.start_year)
    extremes = calendar_year_view(series.statistic(definition.extremum_statistic), year, series.start_year)
    return detect_calendar_runs(values, extremes, profile.calendar, definition, series.unit_id, year)


YEAR_DETECTORS: Dict[Family, Callable[[DailySeries, ThresholdProfile, int], List[Event]]] = {
    Family.FIXED: _fixed_year,
    Family.DUAL: _dual_year,
    Family.CALENDAR: _calendar_year,
}


def detect_year_events(series: DailySeries, profile: ThresholdProfile, year: int) -> List[Event]:
    """
    检测一个区域一年内的规范事件
    Canonical events of one region in one year.

    Dual-threshold candidates are merged before returning, so every family
    yields non-overlapping events here.
    """
    if profile.region_id != series.unit_id:
        raise ValueError(
            f"threshold profile of {profile.region_id!r} applied to series {series.unit_id!r}"
        )
    family = profile.definition.family
    if (family is Family.CALENDAR) != profile.is_calendar:
        raise InvalidDefinitionError(
            f"profile of {profile.definition.name} does not match family {family.value}"
        )
    return YEAR_DETECTORS[family](series, profile, year)


def detect_region_events(
    series: DailySeries,
    profile: ThresholdProfile,
    years: Iterable[int],
) -> List[Event]:
    """Canonical events of one region over several years, in date order."""
    events: List[Event] = []
    for year in years:
        events.extend(detect_year_events(series, profile, year))
    return events
