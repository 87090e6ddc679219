"""Monte Carlo analysis: run independent replicates, aggregate statistics."""

from __future__ import annotations

import statistics
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy.random import SeedSequence

from agrosim.core.config import (
    DEFAULT_ARABLE_PROPORTION,
    DEFAULT_CULTIVABLE_AREA,
    DEFAULT_OCCUPANT_AGE,
    DEFAULT_OCCUPANTS,
    DEFAULT_YEARS,
    ModelConfig,
)
from agrosim.core.errors import ConfigurationError
from agrosim.viz.logger import SimLogger
from agrosim.world.climate import ClimateSeries


@dataclass(frozen=True)
class RunSettings:
    """Everything a replicate needs apart from its random stream."""

    steps: int = DEFAULT_YEARS
    n_households: int = 1
    occupants: int = DEFAULT_OCCUPANTS
    age: Optional[int] = DEFAULT_OCCUPANT_AGE
    climate: ClimateSeries = field(default_factory=ClimateSeries)
    cultivable_area: float = DEFAULT_CULTIVABLE_AREA
    arable_proportion: float = DEFAULT_ARABLE_PROPORTION
    config: ModelConfig = field(default_factory=ModelConfig)


@dataclass
class RunResult:
    """Summary and time series of a single replicate."""
    replicate_id: int
    final_population: int
    peak_population: int
    min_population: int
    total_births: int
    total_deaths: int
    final_mean_food_ratio: float
    final_land: float
    final_dependency_ratio: float
    extinction_step: int  # first step with nobody left, or -1
    elapsed_seconds: float
    population_series: tuple[int, ...] = ()
    food_ratio_series: tuple[float, ...] = ()


@dataclass
class ReplicateFailure:
    replicate_id: int
    error: str


@dataclass
class MonteCarloResult:
    """Completed replicates and failures, keyed by replicate id."""

    results: dict[int, RunResult] = field(default_factory=dict)
    failures: dict[int, ReplicateFailure] = field(default_factory=dict)

    @property
    def n_runs(self) -> int:
        return len(self.results) + len(self.failures)

    def mean_population_series(self) -> np.ndarray:
        """Mean population per step over successful replicates."""
        if not self.results:
            return np.zeros(0)
        series = np.array([r.population_series for r in self.results.values()], dtype=np.float64)
        return series.mean(axis=0)

    def report(self) -> str:
        def stat_line(label: str, values: list[float], fmt: str = ".1f") -> str:
            if not values:
                return f"  {label}: no data"
            mn = min(values)
            mx = max(values)
            avg = statistics.mean(values)
            med = statistics.median(values)
            std = statistics.stdev(values) if len(values) > 1 else 0
            return f"  {label:<30s}  mean={avg:{fmt}}  median={med:{fmt}}  std={std:{fmt}}  min={mn:{fmt}}  max={mx:{fmt}}"

        results = list(self.results.values())
        lines = ["=" * 70, "AGGREGATE RESULTS", "=" * 70, "", "POPULATION"]
        lines.append(stat_line("Final population", [r.final_population for r in results]))
        lines.append(stat_line("Peak population", [r.peak_population for r in results]))
        lines.append(stat_line("Min population", [r.min_population for r in results]))
        lines.append(stat_line("Total births", [r.total_births for r in results]))
        lines.append(stat_line("Total deaths", [r.total_deaths for r in results]))
        extinct = sum(1 for r in results if r.final_population == 0)
        if results:
            lines.append(f"  Extinction rate: {extinct}/{len(results)} ({extinct / len(results) * 100:.0f}%)")

        lines += ["", "FOOD AND LAND"]
        lines.append(stat_line("Final mean food ratio", [r.final_mean_food_ratio for r in results], ".3f"))
        lines.append(stat_line("Final land (ha)", [r.final_land for r in results]))
        lines.append(stat_line("Final dependency ratio", [r.final_dependency_ratio for r in results]))

        if self.failures:
            lines += ["", f"FAILED REPLICATES: {len(self.failures)}/{self.n_runs}"]
            for failure in self.failures.values():
                lines.append(f"  #{failure.replicate_id}: {failure.error}")
        return "\n".join(lines)


def run_single(replicate_id: int, seed: "int | SeedSequence", settings: RunSettings) -> RunResult:
    """Run one replicate and return its summary."""
    from agrosim.simulation.engine import single_settlement_engine

    engine = single_settlement_engine(
        seed=seed,
        config=settings.config,
        n_households=settings.n_households,
        occupants=settings.occupants,
        age=settings.age,
        climate=settings.climate,
        cultivable_area=settings.cultivable_area,
        arable_proportion=settings.arable_proportion,
    )

    t0 = time.time()
    snaps = engine.run(settings.steps)
    elapsed = time.time() - t0

    last = snaps[-1]
    populations = [s.population for s in snaps]

    extinction_step = -1
    for s in snaps:
        if s.population == 0:
            extinction_step = s.step
            break

    return RunResult(
        replicate_id=replicate_id,
        final_population=last.population,
        peak_population=max(populations),
        min_population=min(populations),
        total_births=sum(s.births for s in snaps),
        total_deaths=sum(s.deaths for s in snaps),
        final_mean_food_ratio=last.mean_food_ratio,
        final_land=last.total_land,
        final_dependency_ratio=last.dependency_ratio,
        extinction_step=extinction_step,
        elapsed_seconds=elapsed,
        population_series=tuple(populations),
        food_ratio_series=tuple(s.mean_food_ratio for s in snaps),
    )


def replicate_seeds(n_runs: int, base_seed: int = 0) -> list[SeedSequence]:
    """Independent, reproducible random streams, one per replicate."""
    return SeedSequence(base_seed).spawn(n_runs)


def monte_carlo(
    n_runs: int = 20,
    settings: Optional[RunSettings] = None,
    base_seed: int = 0,
    workers: int = 1,
    logger: Optional[SimLogger] = None,
) -> MonteCarloResult:
    """Run replicates, in worker processes when workers > 1.

    A replicate that raises is recorded as a failure; its siblings carry on.
    """
    if n_runs < 0:
        raise ConfigurationError(f"cannot run a negative number of replicates ({n_runs})")
    settings = settings or RunSettings()
    settings.config.validate()
    logger = logger or SimLogger(verbosity=-1, stdout=False)

    outcome = MonteCarloResult()
    seeds = replicate_seeds(n_runs, base_seed)
    total_t0 = time.time()

    def record_failure(replicate_id: int, exc: Exception) -> None:
        outcome.failures[replicate_id] = ReplicateFailure(replicate_id, f"{type(exc).__name__}: {exc}")
        logger.log(SimLogger.REPLICATE, f"Replicate {replicate_id} failed: {exc}", step=replicate_id)

    if workers <= 1:
        for replicate_id, seed in enumerate(seeds):
            try:
                outcome.results[replicate_id] = run_single(replicate_id, seed, settings)
            except Exception as exc:
                record_failure(replicate_id, exc)
    else:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            futures = {
                ex.submit(run_single, replicate_id, seed, settings): replicate_id
                for replicate_id, seed in enumerate(seeds)
            }
            for fut in as_completed(futures):
                replicate_id = futures[fut]
                try:
                    outcome.results[replicate_id] = fut.result()
                except Exception as exc:
                    record_failure(replicate_id, exc)

    # Key order follows replicate id, not completion order.
    outcome.results = dict(sorted(outcome.results.items()))
    outcome.failures = dict(sorted(outcome.failures.items()))

    logger.log(
        SimLogger.REPLICATE,
        f"{len(outcome.results)}/{n_runs} replicates completed in {time.time() - total_t0:.1f}s",
        step=0,
    )
    logger.flush_step(0)
    return outcome
