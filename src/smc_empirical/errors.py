"""
Error taxonomy for population operations.

Every error aborts the population operation that raised it. Retrying with
a different population size or regularized weights is left to the caller.
"""


class PopulationError(Exception):
    """Base class for errors raised by population operations."""


class InvalidArgument(PopulationError, ValueError):
    """A branch count, sample count or weight is out of range."""


class EmptyPopulation(PopulationError):
    """Resampling was attempted on a population with no particles."""


class DegenerateWeights(PopulationError):
    """Every particle has zero weight, so no ancestor can be drawn."""
