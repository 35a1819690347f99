"""
Unweighted folds over population values.

These are coarse diagnostics: weights are ignored, so a particle of
vanishing weight counts as much as a dominant one.
"""

import functools
import operator

from typing import Any, Callable, TypeVar

T = TypeVar("T")


def fold(population, combine: Callable[[T, T], T], initial: T) -> T:
    """
    Combine all particle values with an associative, commutative operation.

    Args:
        population: Population to fold
        combine: Binary combination operation
        initial: Identity element of `combine`, returned for an empty population

    Returns:
        The combined value
    """
    values = [value for value, _ in population.materialize()]
    return functools.reduce(combine, values, initial)


def all_satisfy(predicate: Callable[[Any], bool], population) -> bool:
    """True iff `predicate` holds for every particle value, zero-weight ones included."""
    return fold(population.map(lambda value: bool(predicate(value))), operator.and_, True)
