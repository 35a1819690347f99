"""Tests for Population construction, spawning and forward simulation."""

import math

import pytest

import smc_empirical as smc
from smc_empirical import (
    InvalidArgument,
    LogWeight,
    Population,
    PopulationConfig,
    Sampler,
    log_sum,
)


def total(population: Population) -> float:
    return log_sum(w for _, w in population.materialize()).linear


class TestFromList:
    """fromList / materialize / size."""

    def test_round_trip_is_verbatim(self):
        xs = [
            ("a", LogWeight.from_linear(0.1)),
            ("b", LogWeight.zero()),
            ("a", LogWeight.from_log(-700.0)),
            (("nested", 1), LogWeight.from_linear(3.0)),
        ]
        assert Population.from_list(xs).materialize() == xs

    def test_round_trip_linear_weights(self):
        xs = [("x", 0.25), ("y", 0.0), ("z", 2.0)]
        expected = [(value, LogWeight.coerce(weight)) for value, weight in xs]
        assert smc.materialize(smc.from_list(xs)) == expected

    def test_empty(self):
        population = Population.from_list([])
        assert population.materialize() == []
        assert population.size() == 0
        assert smc.size(population) == 0

    def test_size(self, abc_population):
        assert abc_population.size() == 3
        assert len(abc_population) == 3

    def test_no_implicit_normalization(self, unnormalized_population):
        assert math.isclose(total(unnormalized_population), 2.5)
        assert math.isclose(unnormalized_population.total_weight().linear, 2.5)

    def test_unit(self):
        assert Population.unit("start").materialize() == [("start", LogWeight.one())]


class TestSpawn:
    """Spawning branches."""

    def test_spawn_four_unit_branches(self):
        population = Population.unit(()).spawn(4)
        pairs = population.materialize()

        assert len(pairs) == 4
        for value, weight in pairs:
            assert value == ()
            assert math.isclose(weight.linear, 0.25)
        assert math.isclose(total(population), 1.0)

    def test_module_level_spawn(self):
        population = smc.spawn(3)
        assert population.size() == 3
        assert all(value is None for value, _ in population.materialize())
        assert math.isclose(total(population), 1.0)

    @pytest.mark.parametrize("n1, n2", [(2, 3), (4, 1), (5, 5)])
    def test_spawn_composes_multiplicatively(self, n1, n2):
        twice = Population.unit().spawn(n1).spawn(n2)
        once = Population.unit().spawn(n1 * n2)

        assert twice.size() == once.size() == n1 * n2
        for (_, w_twice), (_, w_once) in zip(twice.materialize(), once.materialize()):
            assert math.isclose(w_twice.linear, 1.0 / (n1 * n2))
            assert math.isclose(w_twice.log, w_once.log)

    def test_spawn_scales_existing_weights(self, abc_population):
        spawned = abc_population.spawn(2)
        assert [v for v, _ in spawned.materialize()] == ["A", "A", "B", "B", "C", "C"]
        assert math.isclose(spawned.materialize()[2][1].linear, 0.3)
        assert math.isclose(total(spawned), 1.0)

    def test_spawn_leaves_input_particles_untouched(self, abc_population):
        before = [p.weight for p in abc_population.particles]
        spawned = abc_population.spawn(3)

        assert [p.weight for p in abc_population.particles] == before
        assert not any(
            child is parent
            for child in spawned.particles
            for parent in abc_population.particles
        )

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_branches_rejected(self, n):
        with pytest.raises(InvalidArgument, match="spawn"):
            Population.unit().spawn(n)


class TestForwardSimulation:
    """map, factor, step and flat_map."""

    def test_map_keeps_weights(self, abc_population):
        mapped = abc_population.map(str.lower)
        assert mapped.materialize() == [
            ("a", LogWeight.from_linear(0.1)),
            ("b", LogWeight.from_linear(0.6)),
            ("c", LogWeight.from_linear(0.3)),
        ]

    def test_factor_conditions_every_branch(self, abc_population):
        conditioned = abc_population.factor(0.5)
        assert math.isclose(total(conditioned), 0.5)
        # input untouched
        assert math.isclose(total(abc_population), 1.0)

    def test_step_updates_values_and_weights(self):
        population = Population.unit(0.0, config=PopulationConfig(random_seed=3)).spawn(5)

        def move(x, branch):
            branch.factor(0.5)
            return x + branch.sampler.normal()

        stepped = population.step(move)
        assert stepped.size() == 5
        assert math.isclose(total(stepped), 0.5)
        assert len({v for v, _ in stepped.materialize()}) == 5
        assert all(v == 0.0 for v, _ in population.materialize())

    def test_step_is_reproducible(self):
        def move(x, branch):
            branch.observe(-abs(x))
            return x + branch.sampler.normal()

        runs = [
            Population.unit(0.0, config=PopulationConfig(random_seed=11))
            .spawn(8)
            .step(move)
            .step(move)
            .materialize()
            for _ in range(2)
        ]
        assert runs[0] == runs[1]

    def test_parallel_matches_sequential(self):
        def move(x, branch):
            branch.observe(-x * x)
            return x + branch.sampler.normal()

        def run(parallel):
            config = PopulationConfig(random_seed=5, parallel=parallel, max_workers=4)
            return Population.unit(0.0, config=config).spawn(16).step(move).step(move)

        assert run(True).materialize() == run(False).materialize()

    @pytest.mark.parametrize("parallel", [False, True])
    def test_failure_in_one_branch_aborts_step(self, parallel):
        population = Population.from_list(
            [(1, 1.0), (0, 1.0), (2, 1.0)], config=PopulationConfig(parallel=parallel)
        )

        def invert(x, branch):
            if x == 0:
                raise ZeroDivisionError("branch failed")
            return 1 / x

        with pytest.raises(ZeroDivisionError, match="branch failed"):
            population.step(invert)

    def test_flat_map_expands_branches(self):
        population = Population.from_list([(0, 0.5), (10, 0.25)])

        def branch_out(x, branch):
            return [(x, 0.5), (x + 1, 0.5)]

        expanded = population.flat_map(branch_out)
        assert [v for v, _ in expanded.materialize()] == [0, 1, 10, 11]
        weights = [w.linear for _, w in expanded.materialize()]
        assert weights == pytest.approx([0.25, 0.25, 0.125, 0.125])

    def test_flat_map_accepts_population(self):
        population = Population.unit("root").spawn(2)

        def children(value, branch):
            branch.factor(2.0)
            return Population.from_list([(value + "/l", 0.1), (value + "/r", 0.2)])

        expanded = population.flat_map(children)
        assert expanded.size() == 4
        assert math.isclose(total(expanded), 0.6)

    def test_step_can_spawn_nested_population(self):
        population = Population.unit(config=PopulationConfig(random_seed=2)).spawn(3)

        def nested(_, branch):
            inner = Population.from_list([(1, 0.2), (2, 0.3)], sampler=branch.sampler)
            return inner.transform(branch)

        result = population.step(nested)
        for value, weight in result.materialize():
            assert value in (1, 2)
            assert math.isclose(weight.linear, 0.5 / 3)


class TestConfig:
    """PopulationConfig validation and sharing."""

    def test_unknown_scheme_rejected(self):
        with pytest.raises(ValueError, match="Unknown resampling scheme"):
            PopulationConfig(resampling_scheme="roulette")

    def test_bad_worker_count_rejected(self):
        with pytest.raises(ValueError):
            PopulationConfig(max_workers=0)

    def test_derived_populations_share_sampler_and_config(self, abc_population):
        derived = abc_population.spawn(2).resample()
        assert derived.sampler is abc_population.sampler
        assert derived.config is abc_population.config

    def test_explicit_sampler(self):
        sampler = Sampler(9)
        population = Population.unit(sampler=sampler)
        assert population.sampler is sampler
