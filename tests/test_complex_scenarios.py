"""
复杂场景集成测试 (Complex Scenario Integration Tests)

本模块在合成数据上运行完整流程，并检查事件库的不变量：
1. 规范事件互不重叠
2. 持续时间不短于定义族的最短长度
3. 质心日期位于事件窗口内
4. 定义族 A 和 C 的事件不跨年
5. 空间覆盖率位于 [0, 100]
"""

import numpy as np
import pandas as pd
import pytest

from thermal_events import (
    CountyMembership,
    Family,
    LibraryConfig,
    generate_synthetic_series,
    iter_definitions,
    read_event_library,
    run_all,
    summarize_library,
)
from thermal_events.merge import has_overlaps

REGIONS = ["NERC1", "NERC2", "NERC3"]
COUNTIES = {"1001": 1, "1003": 1, "2001": 2, "2003": 2, "2005": 2, "3001": 3}


# ============================================================================
# 测试夹具 (Test Fixtures)
# ============================================================================

@pytest.fixture(scope="module")
def scenario():
    """
    三个区域、六个县的五年合成记录
    Five years of synthetic records for three regions and six counties.
    """
    regional = generate_synthetic_series(REGIONS, start_year=1980, n_years=5, seed=3)
    counties = generate_synthetic_series(sorted(COUNTIES), start_year=1980, n_years=5, seed=4)
    membership = CountyMembership(COUNTIES)
    config = LibraryConfig(start_year=1980, end_year=1984, methods=("unweighted",))
    return regional, counties, membership, config


def check_library_properties(library, annotated):
    definition = library.definition
    events = library.events
    assert not has_overlaps(events)
    assert events == sorted(events, key=lambda e: (e.region_id, e.start_date))
    for event in events:
        assert event.duration >= definition.min_run_length
        assert event.start_date <= event.centroid_date <= event.end_date
        assert event.duration == (event.end_date - event.start_date).days + 1
        if definition.family is not Family.DUAL:
            assert event.start_date.year == event.end_date.year
    coverage = annotated.coverage
    assert np.all((coverage >= 0) & (coverage <= 100))


# ============================================================================
# 测试 1: 全部定义的端到端流程
# ============================================================================

@pytest.mark.parametrize("kind", ["heat", "cold"])
def test_all_definitions_end_to_end(scenario, kind):
    regional, counties, membership, config = scenario
    outcome = run_all({"unweighted": regional}, kind, counties, membership, config)

    assert outcome.report.ok
    assert len(outcome.libraries) == 12
    for key, library in outcome.libraries.items():
        check_library_properties(library, outcome.annotated[key])

    # 3 regions x 5 years per definition, zero-event units included
    summary = outcome.report.unit_summary()
    assert len(summary) == 12 * len(REGIONS) * 5
    assert (summary["n_events"] >= 0).all()
    print(f"✓ {kind}: {int(summary['n_events'].sum())} events over 12 definitions")


# ============================================================================
# 测试 2: 更严格的分位数产生更少的事件日
# ============================================================================

def test_stricter_quantile_gives_fewer_event_days(scenario):
    regional, counties, membership, config = scenario
    outcome = run_all({"unweighted": regional}, "heat", config=config,
                      definitions=list(iter_definitions("heat", "A"))[:4])
    event_days = [
        sum(e.duration for e in outcome.libraries[("unweighted", i)].events) for i in (1, 2, 3, 4)
    ]
    assert event_days == sorted(event_days, reverse=True)
    assert event_days[0] > 0


# ============================================================================
# 测试 3: 写出并读回事件库
# ============================================================================

def test_written_libraries_match_memory(scenario, tmp_path):
    regional, counties, membership, _ = scenario
    config = LibraryConfig(start_year=1980, end_year=1984, methods=("unweighted",), output_dir=tmp_path)
    definitions = list(iter_definitions("cold", "B"))
    outcome = run_all({"unweighted": regional}, "cold", counties, membership, config, definitions)

    for definition in definitions:
        annotated = outcome.annotated[("unweighted", definition.definition_id)]
        path = tmp_path / "With_spatial_coverage" / f"cold_snap_library_NERC_average_def{definition.definition_id}.csv"
        restored = read_event_library(path, definition)
        expected = annotated.to_frame()
        assert len(restored) == len(expected)
        pd.testing.assert_series_equal(restored["start_date"], expected["start_date"], check_dtype=False)
        np.testing.assert_allclose(restored["spatial_coverage"], expected["spatial_coverage"])

        summary = summarize_library(restored, regions=REGIONS)
        assert list(summary.index) == REGIONS
        assert summary["n_events"].sum() == len(restored)
