"""Entry point for the agropastoral household simulation."""

from __future__ import annotations

import argparse
import time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Agropastoral Household Demography Simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--years", type=int, default=500, help="Number of annual steps to simulate")
    parser.add_argument("--households", type=int, default=1, help="Households in the settlement")
    parser.add_argument("--occupants", type=int, default=6, help="Initial occupants per household")
    parser.add_argument("--age", type=int, default=25, help="Initial occupant age (-1 for random ages)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--precipitation", type=float, default=1.0, help="Baseline precipitation")
    parser.add_argument("--runoff", type=float, default=0.2, help="Baseline runoff")
    parser.add_argument("--area", type=float, default=1.0, help="Cultivable area (km^2)")
    parser.add_argument("--arable", type=float, default=1.0, help="Arable proportion of the area")
    parser.add_argument(
        "--drought", type=float, nargs=3, metavar=("START", "END", "FACTOR"), default=None,
        help="Scale precipitation by FACTOR from year START to END",
    )
    parser.add_argument(
        "--land-mode", choices=["unlimited", "step", "asymptote"], default="asymptote",
        help="Land constraint policy",
    )
    parser.add_argument("--memory", type=int, default=1, help="Years of yield memory")
    parser.add_argument("--no-fallow", action="store_true", help="Disable biennial fallow")
    parser.add_argument("--no-food-sensitivity", action="store_true", help="Survival ignores food shortage")
    parser.add_argument("--runs", type=int, default=1, help="Independent replicates")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes for replicates")
    parser.add_argument("--verbosity", type=int, default=0, choices=[-1, 0, 1, 2, 3], help="Log verbosity level")
    parser.add_argument("--log-file", type=str, default=None, help="Path to log file")
    return parser


def main(argv: "list[str] | None" = None) -> None:
    args = build_parser().parse_args(argv)

    # Import here to allow --help without loading everything
    from agrosim.core.config import ModelConfig
    from agrosim.monte_carlo import RunSettings, monte_carlo
    from agrosim.simulation.engine import single_settlement_engine
    from agrosim.viz.logger import SimLogger
    from agrosim.world.climate import ClimateSeries

    config = ModelConfig(
        land_constraint_mode=args.land_mode,
        memory_length=args.memory,
        fallow=not args.no_fallow,
        food_sensitivity=not args.no_food_sensitivity,
    ).validate()
    climate = ClimateSeries.constant(args.precipitation, args.runoff)
    if args.drought:
        start, end, factor = args.drought
        climate = climate.with_drought(int(start), int(end), factor)
    age = None if args.age < 0 else args.age

    logger = SimLogger(verbosity=args.verbosity, log_file=args.log_file, stdout=args.verbosity >= 0)

    print(f"=== Agropastoral Household Simulation ===")
    print(f"Households: {args.households} x {args.occupants} | Years: {args.years} | Seed: {args.seed}")
    print()

    if args.runs > 1:
        settings = RunSettings(
            steps=args.years,
            n_households=args.households,
            occupants=args.occupants,
            age=age,
            climate=climate,
            cultivable_area=args.area,
            arable_proportion=args.arable,
            config=config,
        )
        t0 = time.time()
        outcome = monte_carlo(args.runs, settings, base_seed=args.seed, workers=args.workers, logger=logger)
        print(f"All {args.runs} runs completed in {time.time() - t0:.1f}s")
        print(outcome.report())
        logger.close()
        return

    engine = single_settlement_engine(
        seed=args.seed,
        config=config,
        n_households=args.households,
        occupants=args.occupants,
        age=age,
        climate=climate,
        cultivable_area=args.area,
        arable_proportion=args.arable,
        logger=logger,
    )

    milestone = max(1, args.years // 10)

    def progress(step: int, snapshot) -> None:
        if step % milestone == 0 or step == args.years:
            print(f"  Year {step:>4}/{args.years}  |  Pop: {snapshot.population:>5}  |  "
                  f"Food ratio: {snapshot.mean_food_ratio:.2f}  |  Land: {snapshot.total_land:.1f} ha")

    engine.set_step_callback(progress)

    t0 = time.time()
    try:
        engine.run(args.years)
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
    elapsed = time.time() - t0
    print(f"\nSimulation complete: {engine.clock.step} years in {elapsed:.2f}s")
    print()
    print(engine.metrics.summary_report())
    logger.close()


if __name__ == "__main__":
    main()
