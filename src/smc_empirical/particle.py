"""
Particle class for empirical populations.

A Particle pairs a value (one hypothesis) with a non-negative weight held
in log domain.
"""

from typing import Any, Tuple, Union

from .logweight import LogWeight


class Particle:
    """
    A single weighted hypothesis in a population.

    Attributes:
        value: The hypothesis carried by this particle
        weight: Unnormalized importance weight (LogWeight)
    """

    __slots__ = ("value", "weight")

    def __init__(self, value: Any, weight: Union[LogWeight, float, None] = None):
        """
        Initialize a particle.

        Args:
            value: Hypothesis value
            weight: Initial weight, LogWeight or linear number (default 1)
        """
        self.value = value
        self.weight = LogWeight.one() if weight is None else LogWeight.coerce(weight)

    def copy(self) -> "Particle":
        """
        Create a copy of this particle.

        Values are treated as immutable, so the copy shares the value
        reference and only the weight is independent.
        """
        return Particle(self.value, self.weight)

    def update_weight(self, likelihood: Union[LogWeight, float]):
        """
        Multiply the weight by a likelihood.

        Args:
            likelihood: LogWeight or linear likelihood
        """
        self.weight = self.weight * LogWeight.coerce(likelihood)

    def as_pair(self) -> Tuple[Any, LogWeight]:
        return (self.value, self.weight)

    def __eq__(self, other):
        if not isinstance(other, Particle):
            return NotImplemented
        return self.value == other.value and self.weight == other.weight

    __hash__ = None

    def __repr__(self) -> str:
        return f"Particle(value={self.value!r}, weight={self.weight.linear:.6f})"
