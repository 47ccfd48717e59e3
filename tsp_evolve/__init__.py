"""
Genetic-algorithm optimizer for the Euclidean TSP: roulette selection, ordered
crossover and swap mutation over a population of tours.
"""

from .cities import CityCatalog
from .individual import Individual
from .population import EvolutionConfig, Population

__all__ = [
    "CityCatalog",
    "EvolutionConfig",
    "Individual",
    "Population",
    "cities",
    "data",
    "driver",
    "evaluation",
    "individual",
    "population",
]
