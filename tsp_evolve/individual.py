import logging
import random
from typing import Dict, Optional, Sequence, Tuple

from .cities import CityCatalog, Tour, is_degenerate


logger = logging.getLogger(__name__)

# Fitness is FITNESS_SCALE / tour length; the scale only changes the magnitude
# of fitness sums used by roulette selection.
FITNESS_SCALE = 50.0
DEFAULT_CROSSOVER_RETRIES = 32


def _spawn(rng: random.Random) -> random.Random:
    return random.Random(rng.getrandbits(64))


def crossover_child(p1: "Individual", p2: "Individual", b: int, e: int) -> Tour:
    """
    Ordered crossover of two tours.

    The child holds ``p1.tour[b:e]`` at the same positions; every other
    position is filled left to right with the cities of ``p2`` in ``p2``'s
    order, skipping the cities already placed from ``p1``'s window.
    """
    child = list(p1.tour)
    cursor = 0
    for i in range(len(child)):
        if b <= i < e:
            continue
        while p1.is_in_range(p2.tour[cursor], b, e):
            cursor += 1
        child[i] = p2.tour[cursor]
        cursor += 1
    return child


class Individual:
    """A candidate tour: a permutation of the catalog's city indices."""

    def __init__(self, catalog: CityCatalog, tour: Sequence[int], rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.tour: Tour = list(tour)
        self.rng = rng or random.Random()
        self._length: Optional[float] = None
        self._positions: Optional[Dict[int, int]] = None
        self.check()

    @staticmethod
    def random(catalog: CityCatalog, rng: random.Random) -> "Individual":
        tour = list(range(catalog.size()))
        rng.shuffle(tour)
        return Individual(catalog, tour, rng=_spawn(rng))

    def clone(self) -> "Individual":
        return Individual(self.catalog, self.tour[:], rng=_spawn(self.rng))

    def is_valid(self) -> bool:
        return sorted(self.tour) == list(range(self.catalog.size()))

    def check(self) -> None:
        if not self.is_valid():
            raise AssertionError(f"tour is not a permutation of range({self.catalog.size()}): {self.tour}")

    def mutate(self) -> None:
        n = len(self.tour)
        pt1 = self.rng.randrange(n)
        pt2 = self.rng.randrange(n)
        while pt1 == pt2:
            pt2 = self.rng.randrange(n)
        self.tour[pt1], self.tour[pt2] = self.tour[pt2], self.tour[pt1]
        self._length = None
        self._positions = None
        self.check()

    def total_distance(self) -> float:
        if self._length is None:
            self._length = self.catalog.tour_length(self.tour)
        return self._length

    def get_fitness(self) -> float:
        length = self.total_distance()
        if is_degenerate(length):
            raise ValueError(f"cannot score a tour of length {length}; are there duplicate cities?")
        return FITNESS_SCALE / length

    def is_in_range(self, value: int, begin: int, end: int) -> bool:
        if self._positions is None:
            self._positions = {city: pos for pos, city in enumerate(self.tour)}
        pos = self._positions.get(value)
        return pos is not None and begin <= pos < end

    def cut_points(self) -> Tuple[int, int]:
        n = len(self.tour)
        e = self.rng.randrange(n)
        while e == 0:
            e = self.rng.randrange(n)
        b = self.rng.randrange(n)
        while b >= e:
            b = self.rng.randrange(n)
        return b, e

    def _child_of(
        self, p1: "Individual", p2: "Individual", b: int, e: int, max_retries: int
    ) -> "Individual":
        tour = crossover_child(p1, p2, b, e)
        # Identical parents can only reproduce themselves, whatever the window.
        if p1.tour != p2.tour:
            attempts = 0
            while (tour == p1.tour or tour == p2.tour) and attempts < max_retries:
                b, e = self.cut_points()
                tour = crossover_child(p1, p2, b, e)
                attempts += 1
            if tour == p1.tour or tour == p2.tour:
                logger.debug("crossover kept a copy of a parent after %d retries", attempts)
        return Individual(self.catalog, tour, rng=_spawn(self.rng))

    def recombine(
        self, other: "Individual", max_retries: int = DEFAULT_CROSSOVER_RETRIES
    ) -> Tuple["Individual", "Individual"]:
        """
        Ordered crossover with ``other``; returns two new children and leaves
        both parents untouched.

        Both children start from the same cut points. A child equal to either
        parent is rebuilt from fresh cut points, at most ``max_retries`` times.
        """
        self.check()
        other.check()
        b, e = self.cut_points()
        child1 = self._child_of(self, other, b, e, max_retries)
        child2 = self._child_of(other, self, b, e, max_retries)
        return child1, child2

    def __eq__(self, other) -> bool:
        if not isinstance(other, Individual):
            return NotImplemented
        return self.tour == other.tour

    # Tours mutate in place, so value-equal individuals are not hashable.
    __hash__ = None

    def __repr__(self) -> str:
        return f"Individual(length={self.total_distance():.4f}, tour={self.tour})"
