"""
事件定义 (Event Definitions)

The twelve heat-wave and twelve cold-snap definitions used to build the event
libraries, grouped into three algorithm families:

- Family A (1, 2, 3, 4, 5, 9): one fixed quantile, runs of >= 2 days.
- Family B (6, 7, 10, 11): two fixed quantiles with greedy growth and
  overlap merging, segments of >= 3 days.
- Family C (8, 12): 366 calendar-day quantiles from a 15-day rolling window,
  runs of >= 3 days.

Heat waves exceed their thresholds strictly, cold snaps fall strictly below.
The extremum of an event is always taken from the opposite tail statistic:
daily maximum temperature for heat waves, daily minimum for cold snaps.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from .config import STAT_MAX, STAT_MEAN, STAT_MIN, STATISTICS
from .exceptions import InvalidDefinitionError


class EventKind(str, Enum):
    HEAT = "heat"
    COLD = "cold"


class Family(str, Enum):
    FIXED = "A"
    DUAL = "B"
    CALENDAR = "C"


MIN_RUN_LENGTH = {
    Family.FIXED: 2,
    Family.DUAL: 3,
    Family.CALENDAR: 3,
}


@dataclass(frozen=True)
class Definition:
    """One parameterized event-detection rule."""

    kind: EventKind
    definition_id: int
    statistic: str
    family: Family
    quantile: float
    quantile_loose: Optional[float] = None

    def __post_init__(self):
        if self.statistic not in STATISTICS:
            raise InvalidDefinitionError(f"unknown statistic {self.statistic!r}")
        if not 0 < self.quantile < 1:
            raise InvalidDefinitionError(f"quantile must be in (0, 1), got {self.quantile}")
        if self.family is Family.DUAL:
            if self.quantile_loose is None or not 0 < self.quantile_loose < 1:
                raise InvalidDefinitionError(
                    f"dual-threshold definition {self.name} needs a loose quantile in (0, 1)"
                )
        elif self.quantile_loose is not None:
            raise InvalidDefinitionError(
                f"definition {self.name} of family {self.family.value} takes a single quantile"
            )

    @property
    def name(self) -> str:
        prefix = "HW" if self.kind is EventKind.HEAT else "CS"
        return f"{prefix}{self.definition_id}"

    @property
    def min_run_length(self) -> int:
        return MIN_RUN_LENGTH[self.family]

    @property
    def extremum_statistic(self) -> str:
        return STAT_MAX if self.kind is EventKind.HEAT else STAT_MIN

    @property
    def extremum_column(self) -> str:
        return "highest_temperature" if self.kind is EventKind.HEAT else "lowest_temperature"

    def beyond(self, values, threshold) -> np.ndarray:
        """Element-wise criterion: strictly above (heat) or below (cold).

        Comparisons against NaN are False, so missing values and undefined
        thresholds never satisfy the criterion.
        """
        values = np.asarray(values, dtype=float)
        threshold = np.asarray(threshold, dtype=float)
        with np.errstate(invalid="ignore"):
            if self.kind is EventKind.HEAT:
                return values > threshold
            return values < threshold

    def more_extreme(self, a: float, b: float) -> float:
        """The more extreme of two values; a missing value loses to a present one."""
        pick = np.fmax if self.kind is EventKind.HEAT else np.fmin
        return float(pick(a, b))

    def extremum_index(self, values) -> int:
        """Position of the first most-extreme value (0 when every value is missing)."""
        values = np.asarray(values, dtype=float)
        if np.isnan(values).all():
            return 0
        if self.kind is EventKind.HEAT:
            return int(np.nanargmax(values))
        return int(np.nanargmin(values))


def _build_registry() -> Dict[Tuple[EventKind, int], Definition]:
    heat, cold = EventKind.HEAT, EventKind.COLD
    a, b, c = Family.FIXED, Family.DUAL, Family.CALENDAR
    table = [
        # heat waves
        Definition(heat, 1, STAT_MEAN, a, 0.90),
        Definition(heat, 2, STAT_MEAN, a, 0.95),
        Definition(heat, 3, STAT_MEAN, a, 0.98),
        Definition(heat, 4, STAT_MEAN, a, 0.99),
        Definition(heat, 5, STAT_MAX, a, 0.95),
        Definition(heat, 6, STAT_MAX, b, 0.975, 0.81),
        Definition(heat, 7, STAT_MAX, b, 0.90, 0.75),
        Definition(heat, 8, STAT_MAX, c, 0.90),
        Definition(heat, 9, STAT_MIN, a, 0.90),
        Definition(heat, 10, STAT_MIN, b, 0.975, 0.81),
        Definition(heat, 11, STAT_MIN, b, 0.90, 0.75),
        Definition(heat, 12, STAT_MIN, c, 0.90),
        # cold snaps
        Definition(cold, 1, STAT_MEAN, a, 0.10),
        Definition(cold, 2, STAT_MEAN, a, 0.05),
        Definition(cold, 3, STAT_MEAN, a, 0.02),
        Definition(cold, 4, STAT_MEAN, a, 0.01),
        Definition(cold, 5, STAT_MAX, a, 0.05),
        Definition(cold, 6, STAT_MAX, b, 0.025, 0.19),
        Definition(cold, 7, STAT_MAX, b, 0.10, 0.25),
        Definition(cold, 8, STAT_MAX, c, 0.10),
        Definition(cold, 9, STAT_MIN, a, 0.10),
        Definition(cold, 10, STAT_MIN, b, 0.025, 0.19),
        Definition(cold, 11, STAT_MIN, b, 0.10, 0.25),
        Definition(cold, 12, STAT_MIN, c, 0.10),
    ]
    return {(d.kind, d.definition_id): d for d in table}


DEFINITIONS = _build_registry()


def get_definition(kind, definition_id: int) -> Definition:
    """Look up a definition by event kind ('heat'/'cold') and number."""
    key = (EventKind(kind), int(definition_id))
    try:
        return DEFINITIONS[key]
    except KeyError:
        raise InvalidDefinitionError(
            f"no {key[0].value} definition numbered {definition_id}"
        ) from None


def iter_definitions(kind=None, family=None) -> Iterator[Definition]:
    """Iterate definitions, optionally filtered by kind and family, in id order."""
    kind = EventKind(kind) if kind is not None else None
    family = Family(family) if family is not None else None
    for (k, _), definition in sorted(DEFINITIONS.items(), key=lambda item: (item[0][0].value, item[0][1])):
        if kind is not None and k is not kind:
            continue
        if family is not None and definition.family is not family:
            continue
        yield definition
