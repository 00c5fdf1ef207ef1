"""Error and warning types raised by the event library engine."""


class ThermalEventError(Exception):
    """Base class for library-construction errors."""


class MissingInputError(ThermalEventError, LookupError):
    """A required series, statistic or membership entry is absent."""


class DegenerateRegionError(ThermalEventError, ValueError):
    """A region has no counties mapped to it."""


class InvalidDefinitionError(ThermalEventError, ValueError):
    """A definition is inconsistent with the operation requested."""


class UndefinedThresholdWarning(UserWarning):
    """Some calendar days have no valid pooled sample."""
