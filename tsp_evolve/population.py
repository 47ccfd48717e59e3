import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cities import CityCatalog
from .individual import DEFAULT_CROSSOVER_RETRIES, Individual


logger = logging.getLogger(__name__)


@dataclass
class EvolutionConfig:
    population_size: int = 50
    mutation_rate: float = 0.1
    generations: int = 200
    crossover_retries: int = DEFAULT_CROSSOVER_RETRIES
    random_seed: Optional[int] = 123


class Population:
    """
    A generation of tours evolved by roulette selection, swap mutation and
    ordered crossover. Each generation fully replaces the previous one.
    """

    def __init__(
        self,
        catalog: CityCatalog,
        pop_size: int,
        mutation_rate: float,
        rng: random.Random = None,
        crossover_retries: int = DEFAULT_CROSSOVER_RETRIES,
        individuals: Optional[Sequence[Individual]] = None,
    ):
        if pop_size < 2 or pop_size % 2:
            raise ValueError(f"Population size must be a positive even number, got {pop_size}.")
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError(f"Mutation rate must lie in [0, 1], got {mutation_rate}.")
        self.catalog = catalog
        self.pop_size = pop_size
        self.mutation_rate = mutation_rate
        self.crossover_retries = crossover_retries
        self.rng = rng or random.Random()
        self.generation = 0
        if individuals is None:
            individuals = [Individual.random(catalog, self.rng) for _ in range(pop_size)]
        individuals = list(individuals)
        if len(individuals) != pop_size:
            raise ValueError(f"Expected {pop_size} individuals, got {len(individuals)}.")
        if any(ind.catalog is not catalog for ind in individuals):
            raise ValueError("All individuals must share the population's catalog.")
        self._individuals: List[Individual] = individuals

    @classmethod
    def from_config(cls, catalog: CityCatalog, config: EvolutionConfig) -> "Population":
        return cls(
            catalog,
            config.population_size,
            config.mutation_rate,
            rng=random.Random(config.random_seed),
            crossover_retries=config.crossover_retries,
        )

    @classmethod
    def from_individuals(
        cls,
        individuals: Sequence[Individual],
        mutation_rate: float,
        rng: random.Random = None,
        crossover_retries: int = DEFAULT_CROSSOVER_RETRIES,
    ) -> "Population":
        individuals = list(individuals)
        if not individuals:
            raise ValueError("A population needs at least one individual.")
        return cls(
            individuals[0].catalog,
            len(individuals),
            mutation_rate,
            rng=rng,
            crossover_retries=crossover_retries,
            individuals=individuals,
        )

    @property
    def individuals(self) -> Tuple[Individual, ...]:
        return tuple(self._individuals)

    def __len__(self) -> int:
        return len(self._individuals)

    def fitnesses(self) -> List[float]:
        return [ind.get_fitness() for ind in self._individuals]

    def select_parent(self) -> Individual:
        fitness_sum = sum(self.fitnesses())
        x = self.rng.random() * fitness_sum
        partial = 0.0
        for ind in self._individuals:
            partial += ind.get_fitness()
            if partial > x:
                return ind
        # Rounding can leave the running sum a hair below x.
        return self._individuals[-1]

    def _maybe_mutate(self, ind: Individual) -> None:
        if self.rng.random() < self.mutation_rate:
            ind.mutate()

    def evolve_one_generation(self) -> None:
        if self.pop_size % 2 or len(self._individuals) != self.pop_size:
            raise ValueError("Population size must stay even to be replaced pairwise.")
        next_gen: List[Individual] = []
        for _ in range(self.pop_size // 2):
            parent1 = self.select_parent()
            self._maybe_mutate(parent1)
            parent2 = self.select_parent()
            while parent2 is parent1:
                parent2 = self.select_parent()
            self._maybe_mutate(parent2)
            child1, child2 = parent1.recombine(parent2, max_retries=self.crossover_retries)
            next_gen.append(child1)
            next_gen.append(child2)
        self._individuals = next_gen
        self.generation += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("generation %d: best length %.4f", self.generation, self.get_best().total_distance())

    def get_best(self) -> Individual:
        best = self._individuals[0]
        best_fit = best.get_fitness()
        for ind in self._individuals[1:]:
            fit = ind.get_fitness()
            if fit > best_fit:
                best, best_fit = ind, fit
        return best
