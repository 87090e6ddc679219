"""Main simulation loop: one annual step of environment then households."""

from __future__ import annotations

import itertools
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np
from numpy.random import Generator, SeedSequence

from agrosim.agents.vital_rates import VitalRates, default_vital_rates
from agrosim.core.clock import SimClock
from agrosim.core.config import (
    DEFAULT_ARABLE_PROPORTION,
    DEFAULT_CULTIVABLE_AREA,
    DEFAULT_OCCUPANT_AGE,
    DEFAULT_OCCUPANTS,
    DROUGHT_LOG_THRESHOLD,
    ModelConfig,
)
from agrosim.core.errors import ConfigurationError, SimulationError
from agrosim.simulation.metrics import MetricsCollector, PopulationSnapshot
from agrosim.viz.logger import SimLogger
from agrosim.world.climate import ClimateSeries
from agrosim.world.settlement import Settlement

Seed = Union[int, SeedSequence, None]


class EngineState(Enum):
    NEW = "new"
    INITIALIZED = "initialized"
    RUNNING = "running"
    COMPLETED = "completed"


class SimulationEngine:
    """Orchestrates one replicate: settlements, households and their occupants."""

    def __init__(
        self,
        seed: Seed = 42,
        config: Optional[ModelConfig] = None,
        vital_rates: Optional[VitalRates] = None,
    ) -> None:
        self.config = (config or ModelConfig()).validate()
        self.vital_rates = vital_rates or default_vital_rates(self.config.max_age, self.config.fertile_age)
        self.rng: Generator = np.random.default_rng(seed)

        self.clock = SimClock()
        self.settlements: list[Settlement] = []
        self.state = EngineState.NEW
        self._ids = itertools.count()
        self._next_household_id: int = 0

        self.metrics = MetricsCollector()
        self.logger = SimLogger(verbosity=-1, stdout=False, keep_entries=False)

        # Progress callback (set externally)
        self._step_callback: Optional[Callable[[int, PopulationSnapshot], None]] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_settlement(
        self,
        n_households: int = 1,
        occupants: int = DEFAULT_OCCUPANTS,
        age: Optional[int] = DEFAULT_OCCUPANT_AGE,
        climate: Optional[ClimateSeries] = None,
        cultivable_area: float = DEFAULT_CULTIVABLE_AREA,
        arable_proportion: float = DEFAULT_ARABLE_PROPORTION,
        location: tuple[float, float] = (0.0, 0.0),
        **settlement_options,
    ) -> Settlement:
        """Found a settlement and seed its households. age=None draws random ages."""
        if self.state is not EngineState.NEW:
            raise ConfigurationError("settlements must be added before initialize()")
        settlement = Settlement(
            settlement_id=len(self.settlements),
            location=location,
            climate=climate or ClimateSeries(),
            cultivable_area=cultivable_area,
            arable_proportion=arable_proportion,
            **settlement_options,
        )
        settlement.populate(
            n_households, occupants, self.rng, self._ids, self.config,
            age=age, first_household_id=self._next_household_id,
        )
        self._next_household_id += n_households
        self.settlements.append(settlement)
        return settlement

    def initialize(self) -> PopulationSnapshot:
        """Prime yield memories from the year-0 climate and record step 0."""
        if self.state is not EngineState.NEW:
            raise ConfigurationError("engine already initialised")
        if not self.settlements:
            raise ConfigurationError("no settlements to simulate")

        for settlement in self.settlements:
            env = settlement.environment_dynamics(self.clock.step, self.config)
            for hh in settlement.households:
                hh.remember_yield(env.climatic_yield, self.config.memory_length)

        self.state = EngineState.INITIALIZED
        snapshot = self.metrics.collect(self.clock.step, self.settlements)
        self.logger.log(
            SimLogger.EVENT,
            f"Founded {len(self.settlements)} settlement(s) with {snapshot.population} people "
            f"in {len(snapshot.households)} households",
            step=self.clock.step,
        )
        self.logger.flush_step(self.clock.step)
        return snapshot

    def set_step_callback(self, callback: Callable[[int, PopulationSnapshot], None]) -> None:
        """Set a callback invoked with every recorded snapshot."""
        self._step_callback = callback

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, steps: int) -> list[PopulationSnapshot]:
        """Run a number of annual steps; returns every snapshot including step 0."""
        if steps < 0:
            raise ConfigurationError(f"cannot run a negative number of steps ({steps})")
        if self.state is EngineState.NEW:
            self.initialize()
        if self.state is EngineState.COMPLETED:
            raise SimulationError("run already completed", self.clock.step)

        self.state = EngineState.RUNNING
        for _ in range(steps):
            self.step()
        self.state = EngineState.COMPLETED
        self.logger.log(
            SimLogger.EVENT,
            f"Run complete after {self.clock.step} years, population {self.population}",
            step=self.clock.step,
        )
        self.logger.flush_step(self.clock.step)
        return list(self.metrics.snapshots)

    def step(self) -> PopulationSnapshot:
        """One year: couple every settlement to the climate, then update households."""
        if self.state not in (EngineState.INITIALIZED, EngineState.RUNNING):
            raise SimulationError(f"cannot step an engine in state {self.state.value}", self.clock.step)

        self.clock.advance()
        step = self.clock.step

        # Environment first, for every settlement, before any household moves.
        environments = [s.environment_dynamics(step, self.config) for s in self.settlements]
        for settlement in self.settlements:
            self._log_climate(settlement, step)

        for settlement, env in zip(self.settlements, environments):
            for hh in settlement.households:
                was_extinct = hh.is_extinct
                decision, outcome = hh.update(
                    env, self.rng, self.vital_rates, self.config, self._ids, step,
                )
                self.metrics.record_births(outcome.births)
                self.metrics.record_deaths(outcome.deaths)

                if outcome.births or outcome.deaths:
                    self.logger.log(
                        SimLogger.LIFECYCLE,
                        f"Household {hh.household_id}: {outcome.births} born, {outcome.deaths} died "
                        f"(food ratio {hh.food_ratio:.2f})",
                        household_ids=[hh.household_id], step=step,
                        births=outcome.births, deaths=outcome.deaths,
                    )
                if decision.requirement_capped:
                    self.logger.log(
                        SimLogger.LAND,
                        f"Household {hh.household_id} has no yield to plan on, "
                        f"land requirement capped at {decision.desired:.0e} ha",
                        household_ids=[hh.household_id], step=step, requirement_capped=True,
                    )
                if decision.area_limited:
                    self.logger.log(
                        SimLogger.LAND,
                        f"Household {hh.household_id} wanted {decision.desired:.1f} ha, "
                        f"area allows {decision.ceiling:.1f} ha",
                        household_ids=[hh.household_id], step=step,
                    )
                if hh.is_extinct and not was_extinct:
                    self.logger.log(
                        SimLogger.EVENT, f"Household {hh.household_id} died out",
                        household_ids=[hh.household_id], step=step,
                    )

        if self.population < 0:
            raise SimulationError(f"negative population {self.population}", step)

        snapshot = self.metrics.collect(step, self.settlements)
        self.logger.flush_step(step)
        if self._step_callback:
            self._step_callback(step, snapshot)
        return snapshot

    def _log_climate(self, settlement: Settlement, step: int) -> None:
        baseline = settlement.climate.base_precipitation
        if settlement.climatic_yield <= 0:
            self.logger.log(
                SimLogger.CLIMATE,
                f"Settlement {settlement.settlement_id}: total crop failure "
                f"(precipitation {settlement.precipitation:.2f})",
                step=step,
            )
        elif baseline > 0 and settlement.precipitation < DROUGHT_LOG_THRESHOLD * baseline:
            self.logger.log(
                SimLogger.CLIMATE,
                f"Settlement {settlement.settlement_id}: drought, precipitation "
                f"{settlement.precipitation:.2f} of baseline {baseline:.2f}",
                step=step,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def population(self) -> int:
        return sum(s.population for s in self.settlements)

    @property
    def snapshots(self) -> tuple[PopulationSnapshot, ...]:
        return tuple(self.metrics.snapshots)


def single_settlement_engine(
    seed: Seed = 42,
    config: Optional[ModelConfig] = None,
    n_households: int = 1,
    occupants: int = DEFAULT_OCCUPANTS,
    age: Optional[int] = DEFAULT_OCCUPANT_AGE,
    climate: Optional[ClimateSeries] = None,
    cultivable_area: float = DEFAULT_CULTIVABLE_AREA,
    arable_proportion: float = DEFAULT_ARABLE_PROPORTION,
    vital_rates: Optional[VitalRates] = None,
    logger: Optional[SimLogger] = None,
) -> SimulationEngine:
    """An initialised engine with one settlement, the common case."""
    engine = SimulationEngine(seed=seed, config=config, vital_rates=vital_rates)
    if logger is not None:
        engine.logger = logger
    engine.add_settlement(
        n_households=n_households,
        occupants=occupants,
        age=age,
        climate=climate,
        cultivable_area=cultivable_area,
        arable_proportion=arable_proportion,
    )
    engine.initialize()
    return engine
