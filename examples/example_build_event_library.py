"""
Heat Wave and Cold Snap Library Example

This example builds event libraries on synthetic regional and county records:
1. Thresholds and events for every heat wave definition
2. Spatial coverage of each event from county records
3. Cold snap libraries written to CSV
4. Per-region summaries and the unit report
"""

import logging
import os
import sys
# Ensure project root (parent of 'examples' and 'thermal_events') is on sys.path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from thermal_events import (
    CountyMembership,
    LibraryConfig,
    generate_synthetic_series,
    get_definition,
    iter_definitions,
    run_all,
    summarize_library,
)

REGIONS = ["NERC1", "NERC2", "NERC3", "NERC4"]


def build_synthetic_inputs(n_years=10):
    """Regional series for each aggregation method plus member counties."""
    regional_by_method = {
        method: generate_synthetic_series(REGIONS, n_years=n_years, seed=seed, label=method)
        for seed, method in enumerate(("unweighted", "area", "population"))
    }
    assignment = {f"{r}{c:03d}": r for r in range(1, len(REGIONS) + 1) for c in (1, 3, 5)}
    counties = generate_synthetic_series(sorted(assignment), n_years=n_years, seed=99, label="counties")
    return regional_by_method, counties, CountyMembership(assignment)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    print("=" * 70)
    print("NERC Thermal Event Library - synthetic example")
    print("=" * 70)

    regional_by_method, counties, membership = build_synthetic_inputs()
    output_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "outputs")

    # 1. Heat waves, all definitions, in memory
    print("\n[1] Heat wave libraries")
    config = LibraryConfig(start_year=1980, end_year=1989, max_workers=2)
    heat = run_all(regional_by_method, "heat", counties, membership, config)
    for (method, definition_id), annotated in sorted(heat.annotated.items()):
        frame = annotated.to_frame()
        print(f"  {method:<11s} HW{definition_id:<2d}: {len(frame):4d} events, "
              f"mean coverage {frame['spatial_coverage'].mean():5.1f}%")

    # 2. Per-region summary of one library
    print("\n[2] Region summary of HW8 (unweighted)")
    library = heat.annotated[("unweighted", get_definition("heat", 8).definition_id)]
    print(summarize_library(library.to_frame(), regions=REGIONS).round(2))

    # 3. Cold snaps written to CSV
    print("\n[3] Cold snap libraries (Family B) written to", output_dir)
    cold_config = LibraryConfig(start_year=1980, end_year=1989, output_dir=output_dir)
    cold = run_all(regional_by_method, "cold", counties, membership, cold_config,
                   definitions=iter_definitions("cold", "B"))

    # 4. Unit report
    summary = cold.report.unit_summary()
    print("\n[4] Units completed:", len(summary), "| zero-event units:",
          int((summary["n_events"] == 0).sum()), "| failures:", len(cold.report.failures))

    print("\n" + "=" * 70)
    print("Analysis complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
