from pathlib import Path

from tsp_evolve.data import load_tsplib_instances
from tsp_evolve.driver import Driver
from tsp_evolve.population import EvolutionConfig


def main():
    data_root = Path("data/tsplib")
    if not data_root.exists():
        raise FileNotFoundError("Place TSPLIB files in data/tsplib")

    instances = load_tsplib_instances(data_root, max_nodes=60, max_instances=3)
    cfg = EvolutionConfig(population_size=40, mutation_rate=0.2, generations=50)
    for inst in instances:
        driver = Driver(inst.catalog, cfg, optimum=inst.optimum)
        result = driver.run()
        gap = "n/a" if inst.optimum is None else f"{result.gap:.2%}"
        print(f"{inst.name}: best length={result.length:.2f} gap={gap}")


if __name__ == "__main__":
    main()
