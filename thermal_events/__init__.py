"""
thermal_events: NERC 子区域热浪与寒潮事件库
Heat Wave and Cold Snap Event Libraries for NERC Subregions

本工具包为每个 NERC 子区域、每种空间聚合方法和每个事件定义构建热浪与
寒潮事件库，并计算每个事件的空间覆盖率。
This toolkit builds heat wave and cold snap event libraries for every NERC
subregion, every spatial-aggregation method and every event definition, and
annotates each event with its spatial coverage.

主要功能 / Main Features:
--------------------------
1. 阈值计算 / Threshold Engine
   - 固定分位数 (定义族 A, B) / Fixed quantiles (Families A and B)
   - 日历日滚动分位数 (定义族 C) / Rolling calendar-day quantiles (Family C)

2. 事件检测 / Event Detection
   - 族 A: 连续 >= 2 天超过阈值 / Runs of >= 2 days beyond the threshold
   - 族 B: 双阈值增长与合并 / Dual-threshold growth and merge
   - 族 C: 连续 >= 3 天超过日历日阈值 / Runs of >= 3 days beyond calendar thresholds

3. 空间覆盖率 / Spatial Coverage
   - 满足事件条件的县所占百分比
   - Percentage of member counties that satisfy the event criteria

4. 流水线与 IO / Pipeline and IO
   - 按工作单元并行 / Parallel over independent work units
   - CSV 事件库读写 / CSV event library read and write

使用示例 / Usage Example:
--------------------------
>>> from thermal_events import (
...     LibraryConfig, build_event_library, get_definition, generate_synthetic_series,
... )
>>> regional = generate_synthetic_series(["NERC1", "NERC2"], start_year=1980, n_years=5)
>>> config = LibraryConfig(start_year=1980, end_year=1984)
>>> library = build_event_library(regional, get_definition("heat", 2), "unweighted", config)
>>> frame = library.to_frame()
>>> list(frame.columns)
['start_date', 'end_date', 'centroid_date', 'highest_temperature', 'duration', 'NERC_ID']

包结构 / Package Structure:
---------------------------
thermal_events/
├── __init__.py          # 本文件 / This file
├── config.py            # 常量与运行配置 / Constants and run configuration
├── definitions.py       # 24 个事件定义 / The 24 event definitions
├── calendar_index.py    # 日期与日序 / Calendar arithmetic
├── series.py            # 日序列容器 / Daily series containers
├── thresholds.py        # 阈值计算 / Threshold engine
├── detection.py         # 事件检测 / Event detection
├── merge.py             # 重叠事件合并 / Overlap merge
├── events.py            # 事件与事件表 / Events and library tables
├── coverage.py          # 空间覆盖率 / Spatial coverage
├── pipeline.py          # 流水线 / Orchestration
├── io_utils.py          # 输入输出 / IO
└── utils.py             # 工具函数 / Utilities

依赖项 / Dependencies:
---------------------
- numpy >= 1.21.0
- pandas >= 1.3.0
- scipy >= 1.7.0
- xarray, netCDF4 (可选 / optional, NetCDF input)
"""

# ============================================================================
# 版本信息 / Version Information
# ============================================================================

__version__ = "0.1.0"
__author__ = "NERC Thermal Events Team"
__license__ = "MIT"
__status__ = "Development"

# ============================================================================
# 模块导入 / Module Imports
# ============================================================================

from .config import LibraryConfig, AGGREGATION_METHODS

from .exceptions import (
    ThermalEventError,
    MissingInputError,
    DegenerateRegionError,
    InvalidDefinitionError,
    UndefinedThresholdWarning,
)

# 事件定义 / Event definitions
from .definitions import (
    EventKind,
    Family,
    Definition,
    DEFINITIONS,
    get_definition,
    iter_definitions,
)

from .series import DailySeries, SeriesCollection, CountyMembership

# 阈值计算 / Threshold engine
from .thresholds import (
    empirical_quantile,
    rolling_calendar_thresholds,
    ThresholdProfile,
    compute_threshold_profile,
)

# 事件检测与合并 / Detection and merge
from .events import Event, CoverageAnnotation, events_to_frame, frame_to_events
from .detection import (
    find_runs,
    detect_fixed_runs,
    detect_dual_threshold_segments,
    detect_calendar_runs,
    detect_year_events,
    detect_region_events,
)
from .merge import merge_pair, merge_overlapping_events

# 空间覆盖率 / Spatial coverage
from .coverage import county_satisfies, spatial_coverage

# 流水线 / Pipeline
from .pipeline import (
    RunReport,
    UnitFailure,
    LibraryResult,
    AnnotatedLibrary,
    build_event_library,
    annotate_event_library,
    run_all,
)

from .io_utils import (
    read_series_csv,
    read_series_netcdf,
    read_membership_csv,
    library_path,
    write_event_library,
    read_event_library,
)

from .utils import generate_synthetic_series, summarize_library

# ============================================================================
# 公共 API / Public API
# ============================================================================

__all__ = [
    # 配置 / Configuration
    "LibraryConfig",
    "AGGREGATION_METHODS",

    # 错误 / Errors
    "ThermalEventError",
    "MissingInputError",
    "DegenerateRegionError",
    "InvalidDefinitionError",
    "UndefinedThresholdWarning",

    # 定义 / Definitions
    "EventKind",
    "Family",
    "Definition",
    "DEFINITIONS",
    "get_definition",
    "iter_definitions",

    # 数据 / Data
    "DailySeries",
    "SeriesCollection",
    "CountyMembership",

    # 阈值 / Thresholds
    "empirical_quantile",
    "rolling_calendar_thresholds",
    "ThresholdProfile",
    "compute_threshold_profile",

    # 事件 / Events
    "Event",
    "CoverageAnnotation",
    "events_to_frame",
    "frame_to_events",
    "find_runs",
    "detect_fixed_runs",
    "detect_dual_threshold_segments",
    "detect_calendar_runs",
    "detect_year_events",
    "detect_region_events",
    "merge_pair",
    "merge_overlapping_events",

    # 空间覆盖率 / Spatial coverage
    "county_satisfies",
    "spatial_coverage",

    # 流水线 / Pipeline
    "RunReport",
    "UnitFailure",
    "LibraryResult",
    "AnnotatedLibrary",
    "build_event_library",
    "annotate_event_library",
    "run_all",

    # 输入输出 / IO
    "read_series_csv",
    "read_series_netcdf",
    "read_membership_csv",
    "library_path",
    "write_event_library",
    "read_event_library",

    # 工具函数 / Utilities
    "generate_synthetic_series",
    "summarize_library",
]

