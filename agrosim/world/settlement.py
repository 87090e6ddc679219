"""Settlements: shared environment, canals and the households living there."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from numpy.random import Generator

from agrosim.agents.household import Household, HouseholdEnvironment
from agrosim.agents.individual import create_population
from agrosim.core.config import (
    DEFAULT_ARABLE_PROPORTION,
    DEFAULT_CULTIVABLE_AREA,
    DEFAULT_SOIL_FERTILITY,
    HECTARES_PER_KM2,
    ModelConfig,
)
from agrosim.core.errors import ConfigurationError
from agrosim.world.climate import ClimateSeries, climatic_yield, yield_reduction
from agrosim.world.infrastructure import Infrastructure


@dataclass
class Settlement:
    """A settlement owns its households and couples them to the climate."""

    settlement_id: int
    location: tuple[float, float] = (0.0, 0.0)
    climate: ClimateSeries = field(default_factory=ClimateSeries)
    cultivable_area: float = DEFAULT_CULTIVABLE_AREA      # km^2
    arable_proportion: float = DEFAULT_ARABLE_PROPORTION
    soil_fertility: float = DEFAULT_SOIL_FERTILITY
    households: list[Household] = field(default_factory=list)
    infrastructure: Infrastructure = field(default_factory=Infrastructure)

    # Environment state of the current step
    precipitation: float = 0.0
    runoff: float = 0.0
    climatic_yield: float = 0.0
    total_land: float = 0.0

    def __post_init__(self) -> None:
        if self.cultivable_area < 0:
            raise ConfigurationError(f"cultivable area must be non-negative, got {self.cultivable_area}")
        if not 0.0 <= self.arable_proportion <= 1.0:
            raise ConfigurationError(f"arable proportion must be within [0, 1], got {self.arable_proportion}")

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def populate(
        self,
        n_households: int,
        occupants: int,
        rng: Generator,
        ids: Iterator[int],
        config: ModelConfig,
        age: Optional[int] = None,
        first_household_id: int = 0,
    ) -> list[Household]:
        """Found n_households households of the given size."""
        if n_households < 0:
            raise ConfigurationError(f"cannot found a negative number of households ({n_households})")
        for i in range(n_households):
            hh = Household(
                household_id=first_household_id + i,
                occupants=create_population(occupants, rng, ids, age=age, max_age=config.max_age),
            )
            hh.recompute_aggregates(config)
            self.households.append(hh)
        return self.households

    @property
    def active_households(self) -> list[Household]:
        return [hh for hh in self.households if not hh.is_extinct]

    @property
    def population(self) -> int:
        return sum(hh.occupant_count for hh in self.households)

    @property
    def laborers(self) -> int:
        return sum(hh.laborer_count for hh in self.households)

    @property
    def is_extinct(self) -> bool:
        return self.population == 0

    @property
    def arable_hectares(self) -> float:
        return self.cultivable_area * self.arable_proportion * HECTARES_PER_KM2

    # ------------------------------------------------------------------
    # Environment coupling
    # ------------------------------------------------------------------

    def environment_dynamics(self, step: int, config: ModelConfig) -> HouseholdEnvironment:
        """Fold household land and labour into canal state and this year's yield.

        Every household of the settlement receives the same environment.
        Area is shared equally among surviving households, all of which
        allocate at once from the same snapshot.
        """
        active = self.active_households
        self.precipitation = self.climate.precipitation(step)
        self.runoff = self.climate.runoff(step)
        self.total_land = sum(hh.land for hh in active)
        total_maintenance = sum(1.0 - hh.farming_labor_fraction for hh in active)

        irrigation = self.infrastructure.update(
            total_maintenance, self.runoff, self.total_land,
            config.psi, config.epsilon, config.max_capacity,
        )
        base_yield = climatic_yield(
            self.precipitation + irrigation,
            config.max_yield, config.yield_log_slope, config.yield_log_intercept,
        )
        self.climatic_yield = yield_reduction(self.soil_fertility, base_yield, config.fertility_log_slope)

        n_active = max(1, len(active))
        return HouseholdEnvironment(
            precipitation=self.precipitation,
            runoff=self.runoff / n_active,
            climatic_yield=self.climatic_yield,
            available_area=self.arable_hectares / n_active,
        )
