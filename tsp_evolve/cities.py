import math
from typing import Hashable, List, Optional, Sequence

import networkx as nx
import numpy as np


Tour = List[int]


class CityCatalog:
    """
    Read-only set of cities shared by every individual of a run.

    Only the pairwise distance matrix is needed by the search; coordinates and
    node labels are kept when known so tours can be mapped back to the source.
    """

    def __init__(
        self,
        matrix,
        coords: Optional[np.ndarray] = None,
        labels: Optional[Sequence[Hashable]] = None,
        name: str = "",
    ):
        mat = np.array(matrix, dtype=float)
        if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
            raise ValueError(f"Distance matrix must be square, got shape {mat.shape}.")
        if mat.shape[0] < 2:
            raise ValueError("A catalog needs at least two cities.")
        if (mat < 0).any():
            raise ValueError("Distances must be non-negative.")
        mat.setflags(write=False)
        self.matrix = mat
        self.coords = None if coords is None else np.array(coords, dtype=float)
        self.labels = list(labels) if labels is not None else list(range(mat.shape[0]))
        self.name = name

    def __len__(self) -> int:
        return self.matrix.shape[0]

    def size(self) -> int:
        return self.matrix.shape[0]

    def distance(self, i: int, j: int) -> float:
        return float(self.matrix[i, j])

    def tour_length(self, tour: Sequence[int]) -> float:
        idx = np.asarray(tour, dtype=np.intp)
        return float(self.matrix[idx, np.roll(idx, -1)].sum())

    def index_tour(self, labels: Sequence[Hashable]) -> Tour:
        lookup = {label: i for i, label in enumerate(self.labels)}
        return [lookup[label] for label in labels]

    @classmethod
    def from_coordinates(cls, coords, name: str = "") -> "CityCatalog":
        pts = np.asarray(coords, dtype=float)
        if pts.ndim != 2:
            raise ValueError("Coordinates must be a 2-D array of points.")
        diff = pts[:, None, :] - pts[None, :, :]
        mat = np.sqrt((diff ** 2).sum(axis=-1))
        return cls(mat, coords=pts, name=name)

    @classmethod
    def from_graph(cls, graph: nx.Graph, name: str = "") -> "CityCatalog":
        nodes = list(graph.nodes())
        mat = nx.to_numpy_array(graph, nodelist=nodes, weight="weight")
        # tsplib95 graphs carry self-loops; a city is at distance zero from itself.
        np.fill_diagonal(mat, 0.0)
        coords = None
        if all(graph.nodes[n].get("coord") is not None for n in nodes):
            coords = np.array([graph.nodes[n]["coord"] for n in nodes], dtype=float)
        return cls(mat, coords=coords, labels=nodes, name=name or graph.graph.get("name", ""))

    @classmethod
    def random(cls, n: int, seed: Optional[int] = None) -> "CityCatalog":
        rng = np.random.default_rng(seed)
        return cls.from_coordinates(rng.random((n, 2)), name=f"random{n}")

    def __repr__(self) -> str:
        label = self.name or "catalog"
        return f"CityCatalog({label!r}, n={self.size()})"


def is_degenerate(length: float) -> bool:
    return not math.isfinite(length) or length <= 0.0
