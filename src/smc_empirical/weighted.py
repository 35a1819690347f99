"""
Running-weight context for a single branch of computation.

A branch draws from its sampler and conditions on observations by
multiplying its running weight. The same context type represents a parent
computation into which a finished population is folded.
"""

from typing import Optional, Union

from .logweight import LogWeight
from .sampler import Sampler


class Weighted:
    """
    Branch context exposing sampling and conditioning.

    Attributes:
        sampler: Sampler for base-distribution draws in this branch
        weight: Running weight of this branch
    """

    def __init__(self, sampler: Sampler, weight: Optional[LogWeight] = None):
        self.sampler = sampler
        self.weight = LogWeight.one() if weight is None else LogWeight.coerce(weight)

    def factor(self, weight: Union[LogWeight, float]):
        """
        Multiply the running weight by `weight`.

        Args:
            weight: Non-negative LogWeight or linear number

        Raises:
            InvalidArgument: If weight is negative or NaN
        """
        self.weight = self.weight * LogWeight.coerce(weight)

    def observe(self, log_likelihood: float):
        """Condition on an observation given its log likelihood."""
        self.factor(LogWeight.from_log(log_likelihood))

    def __repr__(self) -> str:
        return f"Weighted(weight={self.weight!r})"
