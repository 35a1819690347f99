#!/usr/bin/env python3
"""
Simple demonstration of smc-empirical populations.

This script:
1. Simulates observations from a Gaussian random walk
2. Runs a bootstrap particle filter built from Population operations
3. Nests that filter inside an outer population over the noise scale, so
   every inner filter collapses into one particle weighted by its evidence

Usage:
    python examples/demo.py
"""

import logging

import numpy as np

import smc_empirical as smc


def simulate_data(num_steps=50, process_scale=1.0, noise_scale=0.5, random_seed=42):
    """
    Simulate a Gaussian random walk observed with Gaussian noise.

    Args:
        num_steps: Number of observations
        process_scale: Standard deviation of the random walk increments
        noise_scale: Standard deviation of the observation noise
        random_seed: Random seed for reproducibility

    Returns:
        Tuple of (states, observations)
    """
    rng = np.random.default_rng(random_seed)
    states = np.cumsum(rng.normal(0.0, process_scale, size=num_steps))
    observations = states + rng.normal(0.0, noise_scale, size=num_steps)
    return states, observations


def gaussian_log_likelihood(y, mean, scale):
    return -0.5 * np.log(2 * np.pi * scale ** 2) - 0.5 * ((y - mean) / scale) ** 2


def particle_filter(population, observations, noise_scale, process_scale=1.0):
    """
    Run a bootstrap particle filter on an existing population.

    Particles hold the current latent state. Each observation moves every
    particle, weights it by the observation likelihood, then resamples.

    Args:
        population: Population of initial states
        observations: Observed values
        noise_scale: Observation noise used for weighting
        process_scale: Random walk increment scale

    Returns:
        Final population; its total weight estimates the evidence
    """
    for y in observations:
        def move(x, branch):
            x_new = x + branch.sampler.normal(0.0, process_scale)
            branch.observe(gaussian_log_likelihood(y, x_new, noise_scale))
            return x_new

        population = population.step(move).resample()

    return population


def run_filter(observations, num_particles=200, noise_scale=0.5, random_seed=1):
    print("=" * 60)
    print("BOOTSTRAP PARTICLE FILTER")
    print("=" * 60)

    config = smc.PopulationConfig(random_seed=random_seed)
    population = smc.spawn(num_particles, config=config).map(lambda _: 0.0)
    population = particle_filter(population, observations, noise_scale)

    print(f"Particles: {population.size()}")
    print(f"Log evidence: {population.evidence().log:.3f}")
    print(f"Filtered final state (one draw): {population.collapse():.3f}")
    print()


def run_nested(observations, num_particles=100, random_seed=2):
    print("=" * 60)
    print("NESTED SMC OVER NOISE SCALE")
    print("=" * 60)

    candidates = [0.25, 0.5, 1.0, 2.0]
    config = smc.PopulationConfig(random_seed=random_seed, parallel=True)

    outer = smc.Population.from_list(
        [(scale, 1.0 / len(candidates)) for scale in candidates], config=config
    )

    def inner_filter(scale, branch):
        inner = smc.Population.unit(0.0, sampler=branch.sampler).spawn(num_particles)
        inner = particle_filter(inner, observations, scale)
        inner.transform(branch)
        return scale

    posterior = outer.step(inner_filter)
    z = posterior.total_weight()

    for scale, weight in posterior.materialize():
        print(f"  noise scale {scale:5.2f}: posterior {float(weight / z):.3f}")
    print(f"Log evidence (marginal over scale): {z.log:.3f}")
    print()


def main():
    logging.basicConfig(level=logging.INFO)
    _, observations = simulate_data()
    run_filter(observations)
    run_nested(observations)


if __name__ == "__main__":
    main()
