import math
from dataclasses import dataclass
from typing import Optional, Sequence

import torch

from .cities import CityCatalog, Tour
from .population import Population


@dataclass
class GenerationStats:
    generation: int
    best_length: float
    mean_length: float
    best_fitness: float
    gap: float


@dataclass
class RunResult:
    tour: Tour
    length: float
    optimum: Optional[float]
    generations: int

    @property
    def gap(self) -> float:
        return optimality_gap(self.length, self.optimum)


def optimality_gap(length: float, optimum: Optional[float]) -> float:
    if optimum is None or math.isclose(optimum, 0.0):
        return float("inf")
    return (length - optimum) / optimum


def distance_tensor(catalog: CityCatalog, device=None) -> torch.Tensor:
    # The catalog matrix is read-only; torch wants a writable buffer.
    return torch.as_tensor(catalog.matrix.copy(), dtype=torch.float64, device=device)


def tour_lengths_torch(dist: torch.Tensor, tours: Sequence[Sequence[int]]) -> torch.Tensor:
    """Closed-tour lengths for a batch of equal-length tours, shape [B]."""
    idx = torch.tensor(tours, device=dist.device, dtype=torch.long)
    a = idx
    b = idx.roll(-1, dims=1)
    return dist[a, b].sum(dim=1)


def summarize(
    population: Population,
    dist: Optional[torch.Tensor] = None,
    optimum: Optional[float] = None,
) -> GenerationStats:
    if dist is None:
        dist = distance_tensor(population.catalog)
    lengths = tour_lengths_torch(dist, [ind.tour for ind in population.individuals])
    best_length = lengths.min().item()
    best = population.get_best()
    return GenerationStats(
        generation=population.generation,
        best_length=best_length,
        mean_length=lengths.mean().item(),
        best_fitness=best.get_fitness(),
        gap=optimality_gap(best_length, optimum),
    )

