"""
Resampling methods for empirical populations.

This module implements mass-preserving resampling: a weighted particle list
is replaced by one where every particle carries weight Z/N, Z being the
total weight of the input. Ancestors are chosen with probability
proportional to their weight, so zero-weight particles are never selected.
"""

import logging

import numpy as np
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import DegenerateWeights, EmptyPopulation, InvalidArgument
from .logweight import LogWeight, log_sum
from .particle import Particle
from .sampler import Sampler

logger = logging.getLogger(__name__)

AncestorScheme = Callable[[np.ndarray, int, Sampler], np.ndarray]


def normalize_weights(
    weights: Sequence[LogWeight],
    operation: str = "normalize_weights"
) -> Tuple[np.ndarray, LogWeight]:
    """
    Normalize log-domain weights to probabilities.

    Args:
        weights: Sequence of LogWeight objects
        operation: Name of the calling operation, used in error messages

    Returns:
        Tuple of (probabilities, total weight Z)

    Raises:
        DegenerateWeights: If Z is zero (every weight is zero), infinite or NaN
    """
    total = log_sum(weights)

    if total.is_zero() or not np.isfinite(total.log):
        logger.warning(
            "%s: total weight of %d particles is %s", operation, len(weights), total.log
        )
        raise DegenerateWeights(
            f"{operation}: total weight of {len(weights)} particles is not a "
            f"positive finite number (log Z={total.log}); cannot draw ancestors"
        )

    logs = np.array([w.log for w in weights], dtype=float)
    probabilities = np.exp(logs - total.log)
    # Guard against rounding so that the vector is a valid distribution
    probabilities /= np.sum(probabilities)

    return probabilities, total


def multinomial_indices(
    probabilities: np.ndarray,
    num_samples: int,
    sampler: Sampler
) -> np.ndarray:
    """
    Multinomial ancestor selection.

    Each of the `num_samples` ancestors is drawn independently from the
    categorical distribution given by `probabilities`.

    Args:
        probabilities: Normalized probabilities (sum to 1)
        num_samples: Number of ancestors to draw
        sampler: Source of randomness

    Returns:
        Array of ancestor indices
    """
    return np.asarray(sampler.categorical(probabilities, size=num_samples), dtype=int)


def systematic_indices(
    probabilities: np.ndarray,
    num_samples: int,
    sampler: Sampler
) -> np.ndarray:
    """
    Systematic ancestor selection.

    Uses a single uniform offset and deterministic spacing 1/N, which has
    lower variance than multinomial selection.
    """
    positions = (np.arange(num_samples) + sampler.uniform()) / num_samples
    return _inverse_cdf(probabilities, positions)


def stratified_indices(
    probabilities: np.ndarray,
    num_samples: int,
    sampler: Sampler
) -> np.ndarray:
    """
    Stratified ancestor selection.

    Divides [0, 1) into N equal strata and draws one point uniformly from
    each.
    """
    positions = (np.arange(num_samples) + sampler.uniform(size=num_samples)) / num_samples
    return _inverse_cdf(probabilities, positions)


def residual_indices(
    probabilities: np.ndarray,
    num_samples: int,
    sampler: Sampler
) -> np.ndarray:
    """
    Residual ancestor selection.

    Deterministically replicates each particle floor(N * p) times, then fills
    the remaining slots by multinomial selection on the residuals.
    """
    expected = num_samples * probabilities
    counts = np.floor(expected).astype(int)
    indices = np.repeat(np.arange(len(probabilities)), counts)

    remaining = num_samples - len(indices)
    if remaining > 0:
        residual = expected - counts
        residual_sum = np.sum(residual)
        if residual_sum > 0:
            residual_probabilities = residual / residual_sum
        else:
            residual_probabilities = probabilities
        extra = multinomial_indices(residual_probabilities, remaining, sampler)
        indices = np.concatenate([indices, extra])

    return indices


def _inverse_cdf(probabilities: np.ndarray, positions: np.ndarray) -> np.ndarray:
    """Map sorted positions in [0, 1) to indices through the cumulative weights."""
    cumsum = np.cumsum(probabilities)
    # Trailing zero-weight particles must stay unreachable despite rounding
    last = np.flatnonzero(probabilities)[-1]
    cumsum[last:] = 1.0
    indices = np.searchsorted(cumsum, positions, side="right")
    return np.minimum(indices, last)


RESAMPLING_SCHEMES: Dict[str, AncestorScheme] = {
    "multinomial": multinomial_indices,
    "systematic": systematic_indices,
    "stratified": stratified_indices,
    "residual": residual_indices,
}


def get_resampling_scheme(name: str) -> AncestorScheme:
    """
    Look up an ancestor selection scheme by name.

    Args:
        name: One of 'multinomial', 'systematic', 'stratified', 'residual'

    Returns:
        The ancestor selection function
    """
    try:
        return RESAMPLING_SCHEMES[name]
    except KeyError:
        raise ValueError(
            f"Unknown resampling scheme: {name} "
            f"(expected one of {sorted(RESAMPLING_SCHEMES)})"
        ) from None


def resample_list(
    particles: Sequence[Particle],
    sampler: Sampler,
    num_samples: Optional[int] = None,
    scheme: str = "multinomial",
    operation: str = "resample_list"
) -> List[Particle]:
    """
    Resample a list of particles, preserving total weight.

    Every output particle carries weight Z / num_samples, where Z is the
    total weight of the input, so the output sums to Z exactly. An ancestor
    may be chosen by zero, one or several descendants.

    Args:
        particles: Input particles
        sampler: Source of randomness
        num_samples: Size of the output (default: size of the input)
        scheme: Ancestor selection scheme name
        operation: Name of the calling operation, used in error messages

    Returns:
        List of resampled particles

    Raises:
        InvalidArgument: If num_samples is not positive
        EmptyPopulation: If there are no particles
        DegenerateWeights: If every particle has zero weight
    """
    M = len(particles)
    N = M if num_samples is None else num_samples
    select = get_resampling_scheme(scheme)

    if M == 0:
        logger.warning("%s: attempted to resample an empty population", operation)
        raise EmptyPopulation(f"{operation}: cannot resample an empty population (size 0)")

    if N <= 0:
        raise InvalidArgument(
            f"{operation}: number of samples must be positive, got {N} "
            f"(population size {M})"
        )

    probabilities, total = normalize_weights(
        [p.weight for p in particles], operation=operation
    )

    ancestors = select(probabilities, N, sampler)
    new_weight = total / N

    logger.debug(
        "%s: %d -> %d particles (%s, log Z=%.4f)", operation, M, N, scheme, total.log
    )

    return [Particle(particles[i].value, new_weight) for i in ancestors]
