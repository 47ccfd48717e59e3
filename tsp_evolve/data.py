import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import tsplib95

from .cities import CityCatalog


logger = logging.getLogger(__name__)


@dataclass
class Instance:
    name: str
    path: Path
    catalog: CityCatalog
    optimum: Optional[float]


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _read_dimension(path: Path) -> Optional[int]:
    with path.open("r") as f:
        for line in f:
            if "DIMENSION" in line.upper():
                parts = line.replace(":", " ").split()
                for token in parts:
                    if token.isdigit():
                        return int(token)
    return None


def _load_optimum(catalog: CityCatalog, path: Path) -> Optional[float]:
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        tour_file = tsplib95.load(candidate)
        if not tour_file.tours:
            logger.warning("%s holds no tour; ignoring", candidate)
            continue
        try:
            tour = catalog.index_tour(tour_file.tours[0])
        except KeyError:
            logger.warning("%s references cities missing from %s; ignoring", candidate, path)
            continue
        return catalog.tour_length(tour)
    return None


def load_instance(path: Path) -> Instance:
    path = Path(path)
    problem = tsplib95.load(path)
    catalog = CityCatalog.from_graph(problem.get_graph(), name=problem.name or path.stem)
    optimum = _load_optimum(catalog, path)
    return Instance(name=catalog.name, path=path, catalog=catalog, optimum=optimum)


def load_tsplib_instances(
    root: Path, max_nodes: Optional[int] = None, max_instances: Optional[int] = None
) -> List[Instance]:
    tsp_files = sorted(Path(root).glob("*.tsp"))
    instances: List[Instance] = []
    for p in tsp_files:
        if max_nodes is not None:
            dim = _read_dimension(p)
            if dim is not None and dim > max_nodes:
                continue
        instances.append(load_instance(p))
        if max_instances is not None and len(instances) >= max_instances:
            break
    return instances
