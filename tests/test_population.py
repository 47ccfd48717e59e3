import random
from collections import Counter

import pytest

from tsp_evolve.cities import CityCatalog
from tsp_evolve.individual import FITNESS_SCALE, Individual
from tsp_evolve.population import EvolutionConfig, Population


SQUARE = [(0, 0), (1, 0), (1, 1), (0, 1)]


def _population(n=8, size=10, rate=0.2, seed=0):
    catalog = CityCatalog.random(n, seed=seed)
    return Population(catalog, size, rate, rng=random.Random(seed))


@pytest.mark.parametrize("size", [0, 1, 3, 7])
def test_rejects_odd_or_empty_population(size):
    catalog = CityCatalog.from_coordinates(SQUARE)

    with pytest.raises(ValueError):
        Population(catalog, size, 0.1)


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_rejects_mutation_rate_outside_unit_interval(rate):
    catalog = CityCatalog.from_coordinates(SQUARE)

    with pytest.raises(ValueError):
        Population(catalog, 4, rate)


def test_initial_population_shares_catalog():
    pop = _population(size=12)

    assert len(pop) == 12
    assert all(ind.catalog is pop.catalog for ind in pop.individuals)
    assert all(ind.is_valid() for ind in pop.individuals)


def test_from_config_uses_seed():
    catalog = CityCatalog.random(9, seed=4)
    cfg = EvolutionConfig(population_size=6, mutation_rate=0.3, random_seed=99)

    first = Population.from_config(catalog, cfg)
    second = Population.from_config(catalog, cfg)

    assert [i.tour for i in first.individuals] == [i.tour for i in second.individuals]
    first.evolve_one_generation()
    second.evolve_one_generation()
    assert [i.tour for i in first.individuals] == [i.tour for i in second.individuals]


def test_generation_replaces_everyone_and_keeps_size():
    pop = _population(size=10)

    for _ in range(5):
        old = pop.individuals
        pop.evolve_one_generation()
        assert len(pop) == 10
        assert not any(new is prev for new in pop.individuals for prev in old)
        assert all(ind.is_valid() for ind in pop.individuals)
    assert pop.generation == 5


def test_select_parent_is_fitness_proportionate():
    catalog = CityCatalog.random(6, seed=3)
    pop = Population(catalog, 4, 0.0, rng=random.Random(17))
    fits = [ind.get_fitness() for ind in pop.individuals]
    total = sum(fits)

    trials = 20000
    counts = Counter(id(pop.select_parent()) for _ in range(trials))

    for ind, fit in zip(pop.individuals, fits):
        assert counts[id(ind)] / trials == pytest.approx(fit / total, abs=0.02)


def test_get_best_returns_first_strict_maximum():
    catalog = CityCatalog.from_coordinates(SQUARE)
    pop = Population.from_individuals(
        [
            Individual(catalog, [0, 2, 1, 3]),
            Individual(catalog, [0, 1, 2, 3]),
            Individual(catalog, [1, 2, 3, 0]),
            Individual(catalog, [0, 3, 1, 2]),
        ],
        0.0,
        rng=random.Random(1),
    )

    best = pop.get_best()

    assert best is pop.individuals[1]
    assert best.get_fitness() == pytest.approx(FITNESS_SCALE / 4.0)


def test_zero_mutation_rate_never_mutates_parents(monkeypatch):
    pop = _population(size=6, rate=0.0)
    calls = []
    monkeypatch.setattr(Individual, "mutate", lambda self: calls.append(self))

    pop.evolve_one_generation()

    assert calls == []


def test_full_mutation_rate_mutates_both_parents(monkeypatch):
    pop = _population(size=6, rate=1.0)
    calls = []
    monkeypatch.setattr(Individual, "mutate", lambda self: calls.append(self))

    pop.evolve_one_generation()

    assert len(calls) == 6


def test_parents_are_distinct_instances(monkeypatch):
    pop = _population(size=8)
    pairs = []
    original = Individual.recombine

    def spy(self, other, max_retries=32):
        pairs.append((self, other))
        return original(self, other, max_retries=max_retries)

    monkeypatch.setattr(Individual, "recombine", spy)
    pop.evolve_one_generation()

    assert len(pairs) == 4
    assert all(a is not b for a, b in pairs)


def test_square_converges_to_optimum():
    catalog = CityCatalog.from_coordinates(SQUARE)
    pop = Population(catalog, 50, 0.1, rng=random.Random(2024))

    for _ in range(200):
        pop.evolve_one_generation()

    assert pop.get_best().get_fitness() == pytest.approx(FITNESS_SCALE / 4.0)
    assert pop.get_best().total_distance() == pytest.approx(4.0)


class _FixedDraw:
    """Random source whose uniform draw is pinned, for deterministic roulette picks."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class _ScriptedIndices:
    def __init__(self, indices):
        self.indices = list(indices)

    def randrange(self, *args, **kwargs):
        return self.indices.pop(0)


def test_from_individuals_validates_members():
    square = CityCatalog.from_coordinates(SQUARE)
    other = CityCatalog.from_coordinates(SQUARE)

    with pytest.raises(ValueError):
        Population.from_individuals([], 0.1)
    with pytest.raises(ValueError):
        Population.from_individuals([Individual(square, [0, 1, 2, 3])] * 3, 0.1)
    with pytest.raises(ValueError):
        Population.from_individuals(
            [Individual(square, [0, 1, 2, 3]), Individual(other, [0, 1, 2, 3])], 0.1
        )


def test_mutation_is_visible_to_later_selection():
    catalog = CityCatalog.from_coordinates(SQUARE)
    first = Individual(catalog, [0, 1, 2, 3], rng=_ScriptedIndices([1, 2]))
    second = Individual(catalog, [1, 2, 3, 0])
    pop = Population.from_individuals([first, second], 0.0, rng=_FixedDraw(0.49))

    assert pop.fitnesses() == pytest.approx([FITNESS_SCALE / 4.0, FITNESS_SCALE / 4.0])
    assert pop.select_parent() is first

    first.mutate()

    assert first.tour == [0, 2, 1, 3]
    crossed = catalog.tour_length([0, 2, 1, 3])
    assert pop.fitnesses() == pytest.approx([FITNESS_SCALE / crossed, FITNESS_SCALE / 4.0])
    assert pop.select_parent() is second


def test_odd_size_is_rejected_when_advancing():
    pop = _population(size=6)
    pop.pop_size = 5

    with pytest.raises(ValueError):
        pop.evolve_one_generation()


def test_two_city_population_still_evolves():
    catalog = CityCatalog.from_coordinates([(0, 0), (3, 4)])
    pop = Population(catalog, 4, 0.5, rng=random.Random(9))

    for _ in range(5):
        pop.evolve_one_generation()

    assert len(pop) == 4
    assert pop.generation == 5
    assert all(sorted(ind.tour) == [0, 1] for ind in pop.individuals)
    assert pop.get_best().total_distance() == pytest.approx(10.0)
