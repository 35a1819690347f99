"""
Log-domain weights.

A LogWeight is a non-negative real number stored as its natural logarithm,
so that long products of small likelihoods neither underflow nor overflow.
Zero probability is represented by a log of -inf and survives sums and
comparisons.
"""

import functools
import numbers

import numpy as np
from typing import Iterable, Union

from .errors import InvalidArgument


@functools.total_ordering
class LogWeight:
    """
    Non-negative real number held in log domain.

    Multiplication adds logs, addition is log-sum-exp. Plain numbers are
    accepted as linear values in arithmetic and ordering; equality holds only
    between LogWeight objects.

    Attributes:
        log: Natural logarithm of the weight
    """

    __slots__ = ("log",)

    def __init__(self, log: float):
        """
        Initialize from a log value. Use `from_linear` for linear values.

        Args:
            log: Natural logarithm of the weight
        """
        self.log = float(log)

    @classmethod
    def from_log(cls, log: float) -> "LogWeight":
        """
        Create a weight from its natural logarithm.

        Raises:
            InvalidArgument: If log is NaN or +inf (an infinite weight)
        """
        log = float(log)
        if np.isnan(log) or log == np.inf:
            raise InvalidArgument(f"Log weights must be finite or -inf, got {log}")
        return cls(log)

    @classmethod
    def from_linear(cls, value: float) -> "LogWeight":
        """
        Create a weight from its linear value.

        Args:
            value: Non-negative real number

        Returns:
            LogWeight whose linear value is `value`

        Raises:
            InvalidArgument: If value is negative, infinite or NaN
        """
        value = float(value)
        if np.isnan(value) or np.isinf(value) or value < 0:
            raise InvalidArgument(f"Weights must be finite and non-negative, got {value}")
        with np.errstate(divide="ignore"):
            return cls(np.log(value))

    @classmethod
    def zero(cls) -> "LogWeight":
        return cls(-np.inf)

    @classmethod
    def one(cls) -> "LogWeight":
        return cls(0.0)

    @classmethod
    def coerce(cls, weight: Union["LogWeight", float]) -> "LogWeight":
        """Return `weight` as a LogWeight, reading plain numbers as linear values."""
        if isinstance(weight, LogWeight):
            return weight
        if isinstance(weight, numbers.Real):
            return cls.from_linear(weight)
        raise TypeError(f"Cannot interpret {type(weight).__name__} as a weight")

    @property
    def linear(self) -> float:
        """The weight in linear domain (may underflow to 0.0)."""
        return float(np.exp(self.log))

    def is_zero(self) -> bool:
        return self.log == -np.inf

    def __float__(self) -> float:
        return self.linear

    def __mul__(self, other):
        try:
            other = LogWeight.coerce(other)
        except TypeError:
            return NotImplemented
        return LogWeight(self.log + other.log)

    __rmul__ = __mul__

    def __truediv__(self, other):
        try:
            other = LogWeight.coerce(other)
        except TypeError:
            return NotImplemented
        if other.is_zero():
            raise ZeroDivisionError("Division by a zero weight")
        return LogWeight(self.log - other.log)

    def __add__(self, other):
        try:
            other = LogWeight.coerce(other)
        except TypeError:
            return NotImplemented
        return LogWeight(np.logaddexp(self.log, other.log))

    __radd__ = __add__

    def __eq__(self, other):
        # only weights compare equal, so equal objects always hash alike
        if not isinstance(other, LogWeight):
            return NotImplemented
        return self.log == other.log

    def __lt__(self, other):
        try:
            other = LogWeight.coerce(other)
        except (TypeError, InvalidArgument):
            return NotImplemented
        return self.log < other.log

    def __hash__(self):
        return hash(self.log)

    def __repr__(self) -> str:
        return f"LogWeight({self.linear:.6g}, log={self.log:.6g})"


def log_sum(weights: Iterable[Union[LogWeight, float]]) -> LogWeight:
    """
    Sum weights in log domain (log-sum-exp).

    The empty sum and a sum of zero weights are both `LogWeight.zero()`.

    Args:
        weights: Iterable of LogWeight objects or linear numbers

    Returns:
        Total weight
    """
    logs = np.array([LogWeight.coerce(w).log for w in weights], dtype=float)
    if logs.size == 0:
        return LogWeight.zero()

    if np.isnan(logs).any():
        return LogWeight(np.nan)

    max_log = np.max(logs)
    if not np.isfinite(max_log):
        # all terms zero (-inf), or an infinite term dominates
        return LogWeight(max_log)

    return LogWeight(max_log + np.log(np.sum(np.exp(logs - max_log))))
