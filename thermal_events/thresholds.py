"""
阈值计算模块 (Threshold Engine)

本模块为每个区域和每个事件定义计算温度阈值。
This module derives the temperature thresholds of every region under every
event definition.

主要方法 (Main Methods):
-----------------------
1. 固定分位数 (Fixed quantile, Families A and B)
   - 对整个多年记录计算一个（或两个）经验分位数
   - One (or two) empirical quantiles over the whole multi-year record

2. 日历日滚动分位数 (Rolling calendar-day quantile, Family C)
   - 对每个日历日，汇集所有年份中以该日为中心的 15 天窗口
   - For each of the 366 calendar days, pool the centred 15-day window of
     every year and take one quantile of the pooled sample

分位数定义 (Quantile definition):
--------------------------------
Inclusive linear interpolation of the order statistics (Hyndman & Fan type 7,
numpy's default ``linear`` method).  Missing values are dropped before the
quantile is taken; an empty sample gives NaN, never zero.
"""

import warnings
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .calendar_index import calendar_matrix
from .config import (
    CALENDAR_SLOTS,
    LEAP_DAY_ABSENT,
    LEAP_DAY_CARRY_FORWARD,
    LEAP_DAY_POLICIES,
    ROLLING_HALF_WINDOW,
)
from .definitions import Definition, Family
from .exceptions import MissingInputError, UndefinedThresholdWarning
from .series import DailySeries


# ============================================================================
# 分位数 (Quantiles)
# ============================================================================

def empirical_quantile(sample: Union[np.ndarray, Iterable[float]], probability: float) -> float:
    """
    计算样本的经验分位数，忽略缺失值
    Empirical quantile of a sample, ignoring missing values.

    Parameters
    ----------
    sample : array-like
        样本值 (sample values); NaN entries are treated as absent
    probability : float
        分位水平，范围 [0, 1] (probability level in [0, 1])

    Returns
    -------
    float
        分位数；样本为空时返回 NaN
        The quantile, or NaN when no valid value remains.

    Examples
    --------
    >>> empirical_quantile([1.0, 2.0, 3.0, 4.0], 0.5)
    2.5
    >>> empirical_quantile([np.nan, np.nan], 0.9)
    nan
    """
    if not 0 <= probability <= 1:
        raise ValueError(f"probability must be in [0, 1], got {probability}")
    sample = np.asarray(sample, dtype=float).ravel()
    sample = sample[np.isfinite(sample)]
    if sample.size == 0:
        return float("nan")
    return float(np.quantile(sample, probability))


def fixed_threshold(values: np.ndarray, probability: float) -> float:
    """单一固定阈值 / One quantile over the whole record."""
    threshold = empirical_quantile(values, probability)
    if np.isnan(threshold):
        warnings.warn(
            "No valid values in record; fixed threshold is undefined",
            UndefinedThresholdWarning,
            stacklevel=2,
        )
    return threshold


def rolling_calendar_thresholds(
    values: np.ndarray,
    years: Iterable[int],
    start_year: int,
    probability: float,
    half_window: int = ROLLING_HALF_WINDOW,
    leap_day_policy: str = LEAP_DAY_ABSENT,
) -> np.ndarray:
    """
    计算 366 个日历日的滚动分位数阈值
    Calendar-day thresholds from a centred rolling window pooled across years.

    算法步骤 (Algorithm Steps):
    -------------------------
    1. 将记录排列为 (366, n_years) 矩阵，非闰年第 366 天填充 NaN
       Arrange the record as a (366, n_years) matrix; slot 366 of non-leap
       years is NaN
    2. 矩阵首尾各填充 ``half_window`` 行 NaN，窗口不跨年
       Pad ``half_window`` NaN rows above and below, so windows never wrap
       into the neighbouring year
    3. 对每个日历日取 (2 * half_window + 1) 行，汇集所有年份后计算分位数
       For each calendar day take the (2 * half_window + 1) rows around it,
       pool every year and compute one quantile

    Parameters
    ----------
    values : np.ndarray
        整个记录的日值 (daily values of the whole record)
    years : iterable of int
        参与汇集的完整年份 (complete years pooled into the sample)
    start_year : int
        记录起始年份 (first year of the record)
    probability : float
        分位水平 (quantile level)
    half_window : int, default=7
        窗口半宽，7 即 15 天窗口 (half width; 7 gives a 15-day window)
    leap_day_policy : {"absent", "carry_forward"}, default="absent"
        第 366 天无样本时的处理方式
        ``"absent"`` leaves an undefined day 366 as NaN; ``"carry_forward"``
        reuses the day-365 threshold for it.

    Returns
    -------
    thresholds : np.ndarray
        长度 366 的阈值数组，索引 0 = 第 1 天
        Array of 366 thresholds, index 0 = day 1.  Days without any valid
        pooled value are NaN.
    """
    if half_window < 0:
        raise ValueError(f"half_window must be >= 0, got {half_window}")
    if leap_day_policy not in LEAP_DAY_POLICIES:
        raise ValueError(f"leap_day_policy must be one of {LEAP_DAY_POLICIES}")

    matrix = calendar_matrix(values, years, start_year)
    if matrix.shape[1] == 0:
        raise MissingInputError("no complete calendar year available for rolling thresholds")
    pad = np.full((half_window, matrix.shape[1]), np.nan)
    padded = np.vstack([pad, matrix, pad])

    # (366, n_years, window) -> (366, n_years * window)
    windows = sliding_window_view(padded, 2 * half_window + 1, axis=0)
    pooled = windows.reshape(CALENDAR_SLOTS, -1)

    thresholds = np.array([empirical_quantile(row, probability) for row in pooled])

    if leap_day_policy == LEAP_DAY_CARRY_FORWARD and np.isnan(thresholds[-1]):
        thresholds[-1] = thresholds[-2]

    undefined = np.flatnonzero(np.isnan(thresholds)) + 1
    if undefined.size:
        warnings.warn(
            f"Calendar days without a valid pooled sample: {undefined.tolist()}",
            UndefinedThresholdWarning,
            stacklevel=2,
        )
    return thresholds


# ============================================================================
# 阈值概况 (Threshold Profiles)
# ============================================================================

@dataclass(frozen=True, eq=False)
class ThresholdProfile:
    """
    一个区域在一个定义下的阈值
    Thresholds of one region under one definition.

    ``strict`` is the fixed threshold of Families A and B (threshold1 for B),
    ``loose`` the second fixed threshold of Family B, and ``calendar`` the 366
    day-of-year thresholds of Family C.
    """

    region_id: str
    definition: Definition
    strict: Optional[float] = None
    loose: Optional[float] = None
    calendar: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.calendar is not None:
            calendar = np.array(self.calendar, dtype=float, copy=True)
            if calendar.shape != (CALENDAR_SLOTS,):
                raise ValueError(
                    f"calendar thresholds must have {CALENDAR_SLOTS} entries, got {calendar.shape}"
                )
            calendar.flags.writeable = False
            object.__setattr__(self, "calendar", calendar)

    @property
    def is_calendar(self) -> bool:
        return self.calendar is not None

    def for_days_of_year(self, days_of_year) -> np.ndarray:
        """Thresholds of the given ordinal days (1..366)."""
        days_of_year = np.asarray(days_of_year, dtype=int)
        if self.is_calendar:
            return self.calendar[days_of_year - 1]
        return np.full(days_of_year.shape, self.strict, dtype=float)


def compute_threshold_profile(
    series: DailySeries,
    definition: Definition,
    years: Optional[Iterable[int]] = None,
    leap_day_policy: str = LEAP_DAY_ABSENT,
) -> ThresholdProfile:
    """
    根据定义族计算区域阈值
    Compute a region's thresholds according to the definition family.

    Fixed modes use every day of the record; the rolling mode pools the
    complete calendar years in ``years`` (default: every complete year of the
    series).
    """
    values = series.statistic(definition.statistic)

    if definition.family is Family.CALENDAR:
        years = list(series.years if years is None else years)
        calendar = rolling_calendar_thresholds(
            values,
            years,
            series.start_year,
            definition.quantile,
            leap_day_policy=leap_day_policy,
        )
        return ThresholdProfile(series.unit_id, definition, calendar=calendar)

    strict = fixed_threshold(values, definition.quantile)
    loose = None
    if definition.family is Family.DUAL:
        loose = fixed_threshold(values, definition.quantile_loose)
    return ThresholdProfile(series.unit_id, definition, strict=strict, loose=loose)
