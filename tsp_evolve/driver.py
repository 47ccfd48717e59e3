import logging
from typing import Callable, List, Optional

import torch

from .cities import CityCatalog
from .evaluation import GenerationStats, RunResult, distance_tensor, summarize
from .population import EvolutionConfig, Population


logger = logging.getLogger(__name__)


class Driver:
    """Owns one population and advances it for a fixed number of generations."""

    def __init__(
        self,
        catalog: CityCatalog,
        config: EvolutionConfig,
        optimum: Optional[float] = None,
        device=None,
    ):
        self.cfg = config
        self.catalog = catalog
        self.optimum = optimum
        self.device = device or torch.device("cpu")
        self.population = Population.from_config(catalog, config)
        self.dist = distance_tensor(catalog, device=self.device)
        self.history: List[GenerationStats] = []

    def step(self) -> GenerationStats:
        self.population.evolve_one_generation()
        stats = summarize(self.population, dist=self.dist, optimum=self.optimum)
        self.history.append(stats)
        return stats

    def run(
        self,
        generations: Optional[int] = None,
        callback: Optional[Callable[[GenerationStats], None]] = None,
    ) -> RunResult:
        if generations is None:
            generations = self.cfg.generations
        if generations < 0:
            raise ValueError(f"Generation count must be non-negative, got {generations}.")
        logger.info(
            "evolving %r: pop=%d mutation_rate=%.3f generations=%d",
            self.catalog,
            self.cfg.population_size,
            self.cfg.mutation_rate,
            generations,
        )
        for _ in range(generations):
            stats = self.step()
            if callback is not None:
                callback(stats)
        return self.result()

    def result(self) -> RunResult:
        best = self.population.get_best()
        return RunResult(
            tour=best.tour[:],
            length=best.total_distance(),
            optimum=self.optimum,
            generations=self.population.generation,
        )
