"""Build the event libraries from the NERC data files.

Edit the paths in ``thermal_events.config`` (or below) to point at your data:
one tidy CSV per aggregation method under ``NERC_level_temp_data``, the county
statistics CSV and the county -> NERC table.
"""

import logging
import os
import sys

parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(parent_dir)

from thermal_events import (
    AGGREGATION_METHODS,
    LibraryConfig,
    MissingInputError,
    read_membership_csv,
    read_series_csv,
    run_all,
)
from thermal_events.config import (
    COLD_SNAP_LIBRARY_DIR,
    COUNTY_LEVEL_TEMP_PATH,
    COUNTY_NERC_PATH,
    HEAT_WAVE_LIBRARY_DIR,
    NERC_LEVEL_TEMP_DIR,
)
from thermal_events.series import format_region_id, normalize_county_id


def main():
    logging.basicConfig(level=logging.INFO)
    try:
        regional_by_method = {
            method: read_series_csv(
                NERC_LEVEL_TEMP_DIR / f"{stem}.csv", "ID", label=method, id_formatter=format_region_id
            )
            for method, stem in AGGREGATION_METHODS.items()
        }
        counties = read_series_csv(
            COUNTY_LEVEL_TEMP_PATH, "GEOID", label="counties", id_formatter=normalize_county_id
        )
        membership = read_membership_csv(COUNTY_NERC_PATH)
    except MissingInputError as e:
        print("Input data not found:", e)
        return

    for kind, output_dir in (("heat", HEAT_WAVE_LIBRARY_DIR), ("cold", COLD_SNAP_LIBRARY_DIR)):
        config = LibraryConfig(max_workers=os.cpu_count() or 1, output_dir=output_dir)
        outcome = run_all(regional_by_method, kind, counties, membership, config)
        print(f"{kind}: {len(outcome.libraries)} libraries, {len(outcome.report.failures)} failed units")


if __name__ == "__main__":
    main()
