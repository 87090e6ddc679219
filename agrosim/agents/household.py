"""Household units: labour, land, farming, food and the demographic draw."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np
from numpy.random import Generator

from agrosim.agents.individual import Individual
from agrosim.agents.vital_rates import VitalRates, fertility_reduction, survival_reduction
from agrosim.core.config import INITIAL_STORAGE, ModelConfig
from agrosim.core.errors import SimulationError
from agrosim.economy.allocation import AllocationInputs, allocate_time
from agrosim.economy.food import eat, harvest
from agrosim.world.land import land_requirement, max_cultivable_land


@dataclass(frozen=True)
class HouseholdEnvironment:
    """The settlement's view of the year, identical for all its households."""

    precipitation: float
    runoff: float
    climatic_yield: float
    available_area: float


@dataclass(frozen=True)
class LandDecision:
    desired: float
    ceiling: float
    land: float
    requirement_capped: bool = False

    @property
    def area_limited(self) -> bool:
        return self.ceiling < self.desired


@dataclass(frozen=True)
class DemographicOutcome:
    births: int = 0
    deaths: int = 0


@dataclass
class Household:
    """A household and the occupants it exclusively owns."""

    household_id: int
    occupants: list[Individual] = field(default_factory=list)
    land: float = 0.0
    storage: float = INITIAL_STORAGE
    yield_memory: float = 0.0
    farming_labor_fraction: float = 1.0
    food_ratio: float = 1.0
    last_harvest: float = 0.0
    occupant_count: int = 0
    laborer_count: int = 0
    _yield_history: deque = field(default_factory=deque, repr=False)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @property
    def is_extinct(self) -> bool:
        return not self.occupants

    @property
    def ages(self) -> np.ndarray:
        return np.fromiter((o.age for o in self.occupants), dtype=np.int64, count=len(self.occupants))

    def recompute_aggregates(self, config: ModelConfig) -> None:
        """Derive occupant and laborer counts from the occupant set."""
        self.occupant_count = len(self.occupants)
        self.laborer_count = sum(1 for o in self.occupants if o.is_laborer(config.working_age))

    def remember_yield(self, crop_yield: float, memory_length: int = 1) -> None:
        """Update yield memory; memory_length 1 feeds the latest yield straight through."""
        if self._yield_history.maxlen != memory_length:
            self._yield_history = deque(self._yield_history, maxlen=memory_length)
        self._yield_history.append(crop_yield)
        self.yield_memory = float(sum(self._yield_history) / len(self._yield_history))

    # ------------------------------------------------------------------
    # Yearly pipeline
    # ------------------------------------------------------------------

    def allocate_time(self, env: HouseholdEnvironment, config: ModelConfig) -> float:
        inputs = AllocationInputs(
            yield_memory=self.yield_memory,
            land=self.land,
            laborers=self.laborer_count,
            precipitation=env.precipitation,
            runoff=env.runoff,
        )
        self.farming_labor_fraction = allocate_time(inputs, config)
        return self.farming_labor_fraction

    def allocate_land(self, available_area: float, config: ModelConfig) -> LandDecision:
        requirement = land_requirement(
            self.occupant_count, self.yield_memory, config.fallow,
            config.wheat_req, config.seed_proportion,
        )
        ceiling = max_cultivable_land(
            self.laborer_count,
            self.farming_labor_fraction,
            available_area,
            config.fallow,
            config.land_constraint_mode,
            config.max_labor,
            config.labor_per_hectare,
        )
        self.land = min(requirement.hectares, ceiling)
        return LandDecision(
            desired=requirement.hectares,
            ceiling=ceiling,
            land=self.land,
            requirement_capped=requirement.capped,
        )

    def farm(self, climatic_yield: float, config: ModelConfig) -> float:
        self.remember_yield(climatic_yield, config.memory_length)
        self.last_harvest = harvest(self.land, climatic_yield, config.sowing_rate, config.fallow)
        return self.last_harvest

    def eat(self, config: ModelConfig) -> float:
        self.food_ratio, self.storage = eat(
            self.occupant_count, self.storage, self.last_harvest, config.wheat_req,
        )
        return self.food_ratio

    def birth_death(
        self,
        rng: Generator,
        vital_rates: VitalRates,
        config: ModelConfig,
        ids: Iterator[int],
        step: int = 0,
    ) -> DemographicOutcome:
        """Reproduce, then die, then age the survivors, then add newborns at age 0."""
        if self.is_extinct:
            return DemographicOutcome()

        ages = self.ages
        lo, hi = config.fertile_age
        fertile = (ages >= lo) & (ages < hi)

        # All agents count as female equivalents, hence the halving.
        p_birth = vital_rates.fertility_rate(ages) / 2.0
        p_birth *= fertility_reduction(self.food_ratio, *config.fertility_gamma)
        p_birth[~fertile] = 0.0
        births = int(np.count_nonzero(rng.random(ages.size) < p_birth))

        p_survive = 1.0 - vital_rates.mortality_rate(ages)
        if config.food_sensitivity:
            p_survive *= survival_reduction(self.food_ratio, *config.survival_gamma)
        survives = (rng.random(ages.size) < p_survive) & (ages < config.max_age)

        survivors = [o for o, alive in zip(self.occupants, survives) if alive]
        for occupant in survivors:
            occupant.advance_year(config.max_age)
        newborns = [Individual(individual_id=next(ids), age=0, birth_step=step) for _ in range(births)]

        deaths = len(self.occupants) - len(survivors)
        self.occupants = survivors + newborns
        self.recompute_aggregates(config)
        return DemographicOutcome(births=births, deaths=deaths)

    def update(
        self,
        env: HouseholdEnvironment,
        rng: Generator,
        vital_rates: VitalRates,
        config: ModelConfig,
        ids: Iterator[int],
        step: int = 0,
    ) -> tuple[LandDecision, DemographicOutcome]:
        """One year for this household given the settlement's environment.

        A household with no occupants is inert: no land, no births, no deaths.
        """
        if self.is_extinct:
            self.land = 0.0
            self.food_ratio = 1.0
            return LandDecision(desired=0.0, ceiling=0.0, land=0.0), DemographicOutcome()

        self.allocate_time(env, config)
        decision = self.allocate_land(env.available_area, config)
        self.farm(env.climatic_yield, config)
        self.eat(config)
        outcome = self.birth_death(rng, vital_rates, config, ids, step)
        self.check_invariants(step)
        return decision, outcome

    def check_invariants(self, step: Optional[int] = None) -> None:
        if self.laborer_count > self.occupant_count:
            raise SimulationError(
                f"household {self.household_id} has {self.laborer_count} laborers "
                f"but {self.occupant_count} occupants", step,
            )
        if not 0.0 <= self.food_ratio <= 1.0:
            raise SimulationError(f"household {self.household_id} food ratio {self.food_ratio}", step)
        if self.land < 0 or self.storage < 0:
            raise SimulationError(
                f"household {self.household_id} has land {self.land} and storage {self.storage}", step,
            )
