"""
Random sampling for populations.

A Sampler wraps a numpy Generator seeded from a SeedSequence. Child
samplers spawned from it give each particle an independent stream that is
still reproducible from the parent seed, whatever order the particles are
evaluated in.
"""

import numpy as np
from typing import List, Optional, Union


class Sampler:
    """
    Source of randomness for a population and its branches.

    Attributes:
        seed_sequence: SeedSequence the generator was built from
        rng: numpy Generator used for every draw
    """

    def __init__(self, seed: Optional[Union[int, np.random.SeedSequence]] = None):
        """
        Initialize a sampler.

        Args:
            seed: Integer seed, SeedSequence, or None for fresh OS entropy
        """
        if isinstance(seed, np.random.SeedSequence):
            self.seed_sequence = seed
        else:
            self.seed_sequence = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_sequence)

    def spawn(self, n: int) -> List["Sampler"]:
        """
        Create `n` independent child samplers.

        Successive calls return fresh children, so two steps on the same
        population never reuse a stream.

        Args:
            n: Number of children

        Returns:
            List of child samplers, one per branch
        """
        return [Sampler(child) for child in self.seed_sequence.spawn(n)]

    def categorical(self, probabilities: np.ndarray, size: Optional[int] = None):
        """
        Draw indices from a categorical distribution.

        Args:
            probabilities: Normalized probabilities (sum to 1)
            size: Number of draws (None for a single int)

        Returns:
            Index or array of indices into `probabilities`
        """
        probabilities = np.asarray(probabilities, dtype=float)
        return self.rng.choice(len(probabilities), size=size, replace=True, p=probabilities)

    def uniform(self, low: float = 0.0, high: float = 1.0, size=None):
        return self.rng.uniform(low, high, size=size)

    def normal(self, loc: float = 0.0, scale: float = 1.0, size=None):
        return self.rng.normal(loc, scale, size=size)
