"""Population snapshots, time-series statistics and the run summary."""

from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class HouseholdSnapshot:
    """State of one household at the end of a step."""

    household_id: int
    settlement_id: int
    occupants: int
    laborers: int
    land: float
    storage: float
    food_ratio: float
    farming_labor_fraction: float
    yield_memory: float

    @property
    def is_extinct(self) -> bool:
        return self.occupants == 0


@dataclass(frozen=True)
class SettlementSnapshot:
    """Environment and aggregate state of one settlement at the end of a step."""

    settlement_id: int
    precipitation: float
    runoff: float
    climatic_yield: float
    infrastructure_condition: float
    irrigation_water: float
    total_land: float
    population: int


@dataclass(frozen=True)
class PopulationSnapshot:
    """The whole population after one step. Never mutated once recorded."""

    step: int
    households: tuple[HouseholdSnapshot, ...] = ()
    settlements: tuple[SettlementSnapshot, ...] = ()
    births: int = 0
    deaths: int = 0

    @property
    def population(self) -> int:
        return sum(h.occupants for h in self.households)

    @property
    def laborers(self) -> int:
        return sum(h.laborers for h in self.households)

    @property
    def occupant_counts(self) -> tuple[int, ...]:
        return tuple(h.occupants for h in self.households)

    @property
    def laborer_counts(self) -> tuple[int, ...]:
        return tuple(h.laborers for h in self.households)

    @property
    def total_land(self) -> float:
        return sum(h.land for h in self.households)

    @property
    def total_storage(self) -> float:
        return sum(h.storage for h in self.households)

    def _live_food_ratios(self) -> list[float]:
        return [h.food_ratio for h in self.households if not h.is_extinct]

    @property
    def mean_food_ratio(self) -> float:
        """Mean over inhabited households; 1.0 when nobody is left to feed."""
        ratios = self._live_food_ratios()
        return statistics.fmean(ratios) if ratios else 1.0

    @property
    def median_food_ratio(self) -> float:
        ratios = self._live_food_ratios()
        return statistics.median(ratios) if ratios else 1.0

    @property
    def dependency_ratio(self) -> float:
        """Dependants per hundred working-age people; 0 with no laborers."""
        if self.laborers == 0:
            return 0.0
        return (self.population - self.laborers) / self.laborers * 100.0

    @property
    def extinct_households(self) -> int:
        return sum(1 for h in self.households if h.is_extinct)


class MetricsCollector:
    """Collects a snapshot after every step."""

    def __init__(self) -> None:
        self.snapshots: list[PopulationSnapshot] = []
        self._step_births: int = 0
        self._step_deaths: int = 0

    def record_births(self, n: int) -> None:
        self._step_births += n

    def record_deaths(self, n: int) -> None:
        self._step_deaths += n

    def collect(self, step: int, settlements: list["Settlement"]) -> PopulationSnapshot:  # noqa: F821
        """Freeze the current state of every settlement and household."""
        households = tuple(
            HouseholdSnapshot(
                household_id=hh.household_id,
                settlement_id=s.settlement_id,
                occupants=hh.occupant_count,
                laborers=hh.laborer_count,
                land=hh.land,
                storage=hh.storage,
                food_ratio=hh.food_ratio,
                farming_labor_fraction=hh.farming_labor_fraction,
                yield_memory=hh.yield_memory,
            )
            for s in settlements
            for hh in s.households
        )
        settlement_rows = tuple(
            SettlementSnapshot(
                settlement_id=s.settlement_id,
                precipitation=s.precipitation,
                runoff=s.runoff,
                climatic_yield=s.climatic_yield,
                infrastructure_condition=s.infrastructure.condition,
                irrigation_water=s.infrastructure.irrigation_water,
                total_land=s.total_land,
                population=s.population,
            )
            for s in settlements
        )
        snapshot = PopulationSnapshot(
            step=step,
            households=households,
            settlements=settlement_rows,
            births=self._step_births,
            deaths=self._step_deaths,
        )
        self.snapshots.append(snapshot)

        # Reset step counters
        self._step_births = 0
        self._step_deaths = 0

        return snapshot

    def population_series(self) -> list[int]:
        return [s.population for s in self.snapshots]

    def food_ratio_series(self) -> list[float]:
        return [s.mean_food_ratio for s in self.snapshots]

    def summary_report(self, start_step: int = 0, end_step: Optional[int] = None) -> str:
        """Generate a human-readable summary of the simulation period."""
        relevant = [
            s for s in self.snapshots
            if s.step >= start_step and (end_step is None or s.step <= end_step)
        ]
        if not relevant:
            return "No data available for the specified period."

        first = relevant[0]
        last = relevant[-1]
        populations = [s.population for s in relevant]
        total_births = sum(s.births for s in relevant)
        total_deaths = sum(s.deaths for s in relevant)

        lines = [
            f"=== Simulation Summary: Year {first.step} to Year {last.step} ===",
            f"Duration: {last.step - first.step} years",
            f"",
            f"Population: {first.population} -> {last.population}",
            f"  Peak: {max(populations)}  Minimum: {min(populations)}",
            f"  Total births: {total_births}",
            f"  Total deaths: {total_deaths}",
            f"  Households: {len(last.households)} ({last.extinct_households} extinct)",
            f"",
            f"Final Metrics:",
            f"  Land under cultivation: {last.total_land:.1f} ha",
            f"  Food in storage: {last.total_storage:.0f} kg",
            f"  Mean food ratio: {last.mean_food_ratio:.2f}",
            f"  Median food ratio: {last.median_food_ratio:.2f}",
            f"  Dependency ratio: {last.dependency_ratio:.1f}",
        ]
        for row in last.settlements:
            lines.append(
                f"  Settlement {row.settlement_id}: pop {row.population}, "
                f"yield {row.climatic_yield:.0f} kg/ha, canals {row.infrastructure_condition:.0%}"
            )
        return "\n".join(lines)
