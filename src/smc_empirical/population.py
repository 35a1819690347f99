"""
Empirical populations of weighted particles.

A Population is an ordered, eagerly materialized list of (value, weight)
particles together with the sampler that drives its randomness. It starts
as a singleton of weight 1, may be spawned into many branches, evolves
branch by branch under forward simulation and conditioning, is resampled
to counter weight degeneracy, and finally collapses into a single weighted
value that can be folded into a parent computation.

There is no implicit normalization: the total weight of a population is an
unnormalized estimate of the model evidence and is never rescaled to 1.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from . import aggregate
from .errors import InvalidArgument
from .logweight import LogWeight, log_sum
from .particle import Particle
from .resampling import get_resampling_scheme, resample_list
from .sampler import Sampler
from .weighted import Weighted

logger = logging.getLogger(__name__)

WeightedPair = Tuple[Any, LogWeight]


@dataclass
class PopulationConfig:
    """Configuration shared by a population and every population derived from it."""

    resampling_scheme: str = "multinomial"
    """Ancestor selection: multinomial, systematic, stratified or residual"""

    random_seed: Optional[int] = None
    """Random seed for reproducibility"""

    parallel: bool = False
    """Evaluate branches of a step on a thread pool"""

    max_workers: Optional[int] = None
    """Thread pool size when parallel (None = executor default)"""

    def __post_init__(self):
        get_resampling_scheme(self.resampling_scheme)
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


class Population:
    """
    Weighted set of hypotheses approximating a distribution.

    Every operation returns a new Population and leaves its input intact.
    Derived populations share the sampler and configuration of their parent.

    Attributes:
        particles: Ordered list of Particle objects
        sampler: Source of randomness for branches and resampling
        config: PopulationConfig
    """

    def __init__(
        self,
        particles: Iterable[Particle] = (),
        sampler: Optional[Sampler] = None,
        config: Optional[PopulationConfig] = None
    ):
        """
        Initialize a population.

        Args:
            particles: Particles, in order
            sampler: Sampler (default: seeded from config.random_seed)
            config: Configuration object
        """
        self.config = config or PopulationConfig()
        self.sampler = sampler or Sampler(self.config.random_seed)
        self.particles: List[Particle] = list(particles)

    # ------------------------------------------------------------------
    # Construction and materialization

    @classmethod
    def from_list(
        cls,
        source: Iterable[Tuple[Any, Union[LogWeight, float]]],
        sampler: Optional[Sampler] = None,
        config: Optional[PopulationConfig] = None
    ) -> "Population":
        """
        Wrap an externally produced sequence of weighted values.

        The sequence is taken verbatim, in order; it may be empty. Weights
        may be LogWeight objects or linear numbers.

        Args:
            source: Iterable of (value, weight) pairs
            sampler: Sampler for the new population
            config: Configuration object

        Returns:
            Population holding one particle per pair
        """
        return cls(
            (Particle(value, weight) for value, weight in source),
            sampler=sampler,
            config=config
        )

    @classmethod
    def unit(
        cls,
        value: Any = None,
        sampler: Optional[Sampler] = None,
        config: Optional[PopulationConfig] = None
    ) -> "Population":
        """Singleton population holding `value` with weight 1."""
        return cls([Particle(value)], sampler=sampler, config=config)

    def _derive(self, particles: Iterable[Particle]) -> "Population":
        return Population(particles, sampler=self.sampler, config=self.config)

    def materialize(self) -> List[WeightedPair]:
        """
        Return the concrete (value, weight) pairs of this population.

        Steps are applied eagerly, so nothing is re-executed here.
        """
        return [p.as_pair() for p in self.particles]

    def size(self) -> int:
        """Number of particles."""
        return len(self.materialize())

    def __len__(self) -> int:
        return len(self.particles)

    def total_weight(self) -> LogWeight:
        """Sum of all weights (Z) without resampling."""
        return log_sum(p.weight for p in self.particles)

    # ------------------------------------------------------------------
    # Branching and forward simulation

    def spawn(self, n: int) -> "Population":
        """
        Split every branch into `n` identical branches of weight 1/n each.

        Spawning twice multiplies the number of branches: spawn(n1) followed
        by spawn(n2) gives n1 * n2 branches of weight 1/(n1 * n2), exactly as
        spawn(n1 * n2) does.

        Args:
            n: Number of branches per current branch

        Returns:
            Population of size n * len(self)

        Raises:
            InvalidArgument: If n is not positive
        """
        if n <= 0:
            raise InvalidArgument(
                f"spawn: number of branches must be positive, got {n} "
                f"(population size {len(self)})"
            )

        share = LogWeight.from_linear(1.0 / n)
        logger.debug("spawn: %d -> %d particles", len(self), n * len(self))

        branches = [p.copy() for p in self.particles for _ in range(n)]
        for particle in branches:
            particle.update_weight(share)

        return self._derive(branches)

    def map(self, fn: Callable[[Any], Any]) -> "Population":
        """Apply a deterministic function to every value, keeping weights."""
        return self._derive(Particle(fn(p.value), p.weight) for p in self.particles)

    def factor(self, weight: Union[LogWeight, float]) -> "Population":
        """Condition every branch on the same weight."""
        weight = LogWeight.coerce(weight)
        conditioned = [p.copy() for p in self.particles]
        for particle in conditioned:
            particle.update_weight(weight)

        return self._derive(conditioned)

    def step(self, fn: Callable[[Any, Weighted], Any]) -> "Population":
        """
        Advance every branch by one forward-simulation step.

        `fn(value, branch)` receives the particle value and a Weighted
        context that starts at the particle's weight. It may draw from
        `branch.sampler` and condition with `branch.factor`; the returned
        value and the branch's final weight form the new particle.

        Args:
            fn: Per-branch step function

        Returns:
            Population of the same size
        """
        def advance(branch: Weighted, particle: Particle) -> List[Particle]:
            return [Particle(fn(particle.value, branch), branch.weight)]

        return self._expand(advance)

    def flat_map(
        self,
        fn: Callable[[Any, Weighted], Union["Population", Iterable[Tuple[Any, Any]]]]
    ) -> "Population":
        """
        Replace every branch by the weighted branches it produces.

        `fn(value, branch)` returns a Population or an iterable of
        (value, weight) pairs. Each child weight is multiplied by the
        branch's final weight.

        Args:
            fn: Per-branch expansion function

        Returns:
            Population of all children, in parent order
        """
        def expand(branch: Weighted, particle: Particle) -> List[Particle]:
            children = fn(particle.value, branch)
            if isinstance(children, Population):
                children = children.materialize()
            return [
                Particle(value, branch.weight * LogWeight.coerce(weight))
                for value, weight in children
            ]

        return self._expand(expand)

    def _expand(
        self,
        expand: Callable[[Weighted, Particle], List[Particle]]
    ) -> "Population":
        """
        Run `expand` on every branch with its own sampler and running weight.

        Samplers are assigned in particle order before any branch runs, so
        sequential and parallel evaluation give the same result for a seed.
        An exception in any branch aborts the whole step.
        """
        samplers = self.sampler.spawn(len(self.particles))
        branches = [Weighted(s, p.weight) for s, p in zip(samplers, self.particles)]

        if self.config.parallel and len(self.particles) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                results = list(executor.map(expand, branches, self.particles))
        else:
            results = [expand(b, p) for b, p in zip(branches, self.particles)]

        return self._derive(child for children in results for child in children)

    # ------------------------------------------------------------------
    # Resampling

    def resample_n(self, n: int) -> "Population":
        """
        Resample to `n` particles of equal weight Z/n.

        Args:
            n: Size of the new population

        Returns:
            New population whose total weight equals Z

        Raises:
            InvalidArgument: If n is not positive
            EmptyPopulation: If this population has no particles
            DegenerateWeights: If every particle has zero weight
        """
        return self._resample(n, "resample_n")

    def resample(self) -> "Population":
        """Resample, keeping the population size."""
        return self._resample(None, "resample")

    def _resample(self, n: Optional[int], operation: str) -> "Population":
        return self._derive(
            resample_list(
                self.particles,
                self.sampler,
                num_samples=n,
                scheme=self.config.resampling_scheme,
                operation=operation
            )
        )

    # ------------------------------------------------------------------
    # Collapsing

    def proper(self) -> WeightedPair:
        """
        Draw one value together with the evidence estimate.

        The weight returned is the total weight Z of this population; only
        the value is random. Every call performs a fresh draw.

        Returns:
            Tuple of (value, Z)
        """
        return self._proper("proper")

    def _proper(self, operation: str) -> WeightedPair:
        (pair,) = self._resample(1, operation).materialize()
        return pair

    def collapse(self) -> Any:
        """Pick one value at random according to the weights."""
        value, _ = self._proper("collapse")
        return value

    def evidence(self) -> LogWeight:
        """Model evidence (pseudo-marginal likelihood) estimate."""
        _, weight = self._proper("evidence")
        return weight

    def transform(self, context: Weighted) -> Any:
        """
        Fold this population into a parent computation.

        One value is drawn with `proper` and the parent is conditioned on
        the evidence, so the whole population becomes a single particle of
        its parent.

        Args:
            context: Running-weight context of the parent computation

        Returns:
            The drawn value
        """
        value, weight = self._proper("transform")
        context.factor(weight)
        return value

    # ------------------------------------------------------------------
    # Aggregation

    def fold(self, combine: Callable[[Any, Any], Any], initial: Any) -> Any:
        """Combine all values, ignoring weights."""
        return aggregate.fold(self, combine, initial)

    def all(self, predicate: Callable[[Any], bool]) -> bool:
        """True iff `predicate` holds for every value, ignoring weights."""
        return aggregate.all_satisfy(predicate, self)

    def __repr__(self) -> str:
        return (
            f"Population(size={len(self.particles)}, "
            f"log_total_weight={self.total_weight().log:.6g})"
        )


def from_list(
    source: Iterable[Tuple[Any, Union[LogWeight, float]]],
    sampler: Optional[Sampler] = None,
    config: Optional[PopulationConfig] = None
) -> Population:
    """Wrap a sequence of (value, weight) pairs as a Population."""
    return Population.from_list(source, sampler=sampler, config=config)


def materialize(population: Population) -> List[WeightedPair]:
    return population.materialize()


def size(population: Population) -> int:
    return population.size()


def spawn(
    n: int,
    sampler: Optional[Sampler] = None,
    config: Optional[PopulationConfig] = None
) -> Population:
    """
    Start a computation with `n` branches of weight 1/n and value None.

    Args:
        n: Number of branches
        sampler: Sampler for the new population
        config: Configuration object

    Returns:
        Population of size n
    """
    return Population.unit(sampler=sampler, config=config).spawn(n)


def resample(population: Population) -> Population:
    return population.resample()


def resample_n(n: int, population: Population) -> Population:
    return population.resample_n(n)


def proper(population: Population) -> WeightedPair:
    return population.proper()


def collapse(population: Population) -> Any:
    return population.collapse()


def evidence(population: Population) -> LogWeight:
    return population.evidence()


def transform(population: Population, context: Weighted) -> Any:
    return population.transform(context)
