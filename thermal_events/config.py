"""Default paths, record constants and per-run settings of the event library.

数据路径默认位于项目的 data/ 目录，可按本地环境修改。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"

# Inputs produced by the upstream aggregation scripts (user-provided)
NERC_LEVEL_TEMP_DIR = DATA_DIR / "NERC_level_temp_data"
COUNTY_LEVEL_TEMP_PATH = DATA_DIR / "daily_stats_county.csv"
COUNTY_NERC_PATH = DATA_DIR / "county_nerc.csv"

# Outputs
HEAT_WAVE_LIBRARY_DIR = DATA_DIR / "heat_wave_library"
COLD_SNAP_LIBRARY_DIR = DATA_DIR / "cold_snap_library"
COVERAGE_SUBDIR = "With_spatial_coverage"

# Historical record span
RECORD_START_YEAR = 1980
RECORD_END_YEAR = 2024

# Daily statistic names (same order as the county-level daily stats array)
STAT_MEAN = "T_mean"
STAT_MAX = "T_max"
STAT_MIN = "T_min"
STATISTICS = (STAT_MEAN, STAT_MAX, STAT_MIN)

# Spatial aggregation methods -> input file stems
AGGREGATION_METHODS = {
    "unweighted": "NERC_average",
    "area": "NERC_average_area",
    "population": "NERC_average_pop",
}

REGION_PREFIX = "NERC"

# Rolling calendar-day window: 7 days either side -> 15 days
ROLLING_HALF_WINDOW = 7
CALENDAR_SLOTS = 366

# Leap-day threshold handling for rolling thresholds
LEAP_DAY_ABSENT = "absent"
LEAP_DAY_CARRY_FORWARD = "carry_forward"
LEAP_DAY_POLICIES = (LEAP_DAY_ABSENT, LEAP_DAY_CARRY_FORWARD)

LIBRARY_FILE_PATTERNS = {
    "heat": "heat_wave_library_{stem}_def{definition_id}.csv",
    "cold": "cold_snap_library_{stem}_def{definition_id}.csv",
}


@dataclass
class LibraryConfig:
    """Explicit settings for one library-construction run."""

    start_year: int = RECORD_START_YEAR
    end_year: int = RECORD_END_YEAR
    leap_day_policy: str = LEAP_DAY_ABSENT
    max_workers: int = 1
    output_dir: Optional[Path] = None
    methods: Tuple[str, ...] = field(default_factory=lambda: tuple(AGGREGATION_METHODS))

    def __post_init__(self):
        if self.end_year < self.start_year:
            raise ValueError(
                f"end_year ({self.end_year}) must not precede start_year ({self.start_year})"
            )
        if self.leap_day_policy not in LEAP_DAY_POLICIES:
            raise ValueError(
                f"leap_day_policy must be one of {LEAP_DAY_POLICIES}, got {self.leap_day_policy!r}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        unknown = [m for m in self.methods if m not in AGGREGATION_METHODS]
        if unknown:
            raise ValueError(f"Unknown aggregation methods: {unknown}")
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)

    @property
    def years(self) -> range:
        return range(self.start_year, self.end_year + 1)
