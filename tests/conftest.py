"""Shared fixtures for the smc_empirical test suite."""

import pytest

from smc_empirical import LogWeight, Population, PopulationConfig, Sampler


@pytest.fixture
def sampler() -> Sampler:
    """Seeded sampler for reproducible draws."""
    return Sampler(0)


@pytest.fixture
def abc_population() -> Population:
    """Three particles with total weight 1: A=0.1, B=0.6, C=0.3."""
    return Population.from_list(
        [("A", 0.1), ("B", 0.6), ("C", 0.3)],
        config=PopulationConfig(random_seed=1234),
    )


@pytest.fixture
def unnormalized_population() -> Population:
    """Particles whose weights sum to 2.5, one of them impossible."""
    return Population.from_list(
        [
            (0, LogWeight.from_linear(1.0)),
            (1, LogWeight.from_linear(0.0)),
            (2, LogWeight.from_linear(0.5)),
            (3, LogWeight.from_linear(1.0)),
        ],
        config=PopulationConfig(random_seed=7),
    )


@pytest.fixture(params=["multinomial", "systematic", "stratified", "residual"])
def scheme(request) -> str:
    """Every ancestor selection scheme."""
    return request.param
