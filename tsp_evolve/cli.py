import argparse
import logging
import time
from pathlib import Path
from typing import Optional

import torch

from tsp_evolve.cities import CityCatalog
from tsp_evolve.data import load_instance
from tsp_evolve.driver import Driver
from tsp_evolve.evaluation import GenerationStats, RunResult
from tsp_evolve.population import EvolutionConfig


SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def _config_from_args(args) -> EvolutionConfig:
    return EvolutionConfig(
        population_size=args.pop_size,
        mutation_rate=args.mutation_rate,
        generations=args.generations,
        random_seed=args.seed,
    )


def _device() -> torch.device:
    return torch.device("cuda:0") if torch.cuda.is_available() else torch.device("cpu")


def _report(result: RunResult) -> None:
    gap = "n/a" if result.optimum is None else f"{result.gap:.2%}"
    log(f"best length={result.length:.4f} gap={gap} after {result.generations} generations")
    log(f"best tour: {' '.join(str(c) for c in result.tour)}")


def evolve(catalog: CityCatalog, cfg: EvolutionConfig, optimum: Optional[float], log_every: int) -> RunResult:
    driver = Driver(catalog, cfg, optimum=optimum, device=_device())

    def progress(stats: GenerationStats) -> None:
        if log_every and stats.generation % log_every == 0:
            gap = "" if stats.gap == float("inf") else f" gap={stats.gap:.2%}"
            log(
                f"gen {stats.generation}: best={stats.best_length:.4f} "
                f"mean={stats.mean_length:.4f}{gap}"
            )

    t0 = time.perf_counter()
    result = driver.run(callback=progress)
    log(f"evolved {result.generations} generations in {time.perf_counter() - t0:.2f}s")
    return result


def run(args) -> None:
    if args.instance:
        path = Path(args.instance)
        if not path.exists():
            raise FileNotFoundError(f"No TSPLIB instance at {path}.")
        log(f"loading {path}")
        instance = load_instance(path)
        catalog, optimum = instance.catalog, instance.optimum
    else:
        catalog, optimum = CityCatalog.random(args.random, seed=args.seed), None
    log(f"using {catalog!r}")
    _report(evolve(catalog, _config_from_args(args), optimum, args.log_every))


def square(args) -> None:
    catalog = CityCatalog.from_coordinates(SQUARE, name="square")
    _report(evolve(catalog, _config_from_args(args), 4.0, args.log_every))


def _add_evolution_args(parser: argparse.ArgumentParser) -> None:
    defaults = EvolutionConfig()
    parser.add_argument("--generations", type=int, default=defaults.generations)
    parser.add_argument("--pop-size", type=int, default=defaults.population_size)
    parser.add_argument("--mutation-rate", type=float, default=defaults.mutation_rate)
    parser.add_argument("--seed", type=int, default=defaults.random_seed)
    parser.add_argument("--log-every", type=int, default=10, help="Progress interval in generations (0 = quiet)")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Genetic-algorithm TSP optimizer")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evolve tours for a TSPLIB instance or random cities")
    source = run_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--instance", help="Path to a TSPLIB .tsp file")
    source.add_argument("--random", type=int, metavar="N", help="Generate N random cities in the unit square")
    _add_evolution_args(run_parser)
    run_parser.set_defaults(func=run)

    square_parser = subparsers.add_parser("square", help="Solve the four-city unit square")
    _add_evolution_args(square_parser)
    square_parser.set_defaults(func=square)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
