"""Irrigation infrastructure shared by the households of a settlement."""

from __future__ import annotations

from dataclasses import dataclass

from agrosim.core.config import EPSILON, HECTARES_PER_KM2, MAX_CAPACITY, PSI


def infrastructure_performance(
    maintenance_labor: float,
    psi: float = PSI,
    epsilon: float = EPSILON,
    max_capacity: float = MAX_CAPACITY,
) -> float:
    """Share of irrigation capacity realised for a given maintenance effort.

    Zero below psi - epsilon, max_capacity above psi + epsilon, and a straight
    ramp through max_capacity / 2 at psi in between.
    """
    lower = psi - epsilon
    upper = psi + epsilon
    if maintenance_labor <= lower:
        return 0.0
    if maintenance_labor >= upper:
        return max_capacity
    return max_capacity * (maintenance_labor - lower) / (upper - lower)


def irrigation_depth(condition: float, runoff: float, land: float) -> float:
    """Canal water per unit of land, in the units of precipitation.

    Runoff is given per square kilometre and land in hectares, so land is
    converted before dividing. No land gets no water.
    """
    if land <= 0:
        return 0.0
    return condition * runoff * HECTARES_PER_KM2 / land


@dataclass
class Infrastructure:
    """Canal condition and the irrigation water it delivers per hectare."""

    maintenance: float = 0.0
    condition: float = 0.0
    irrigation_water: float = 0.0

    def update(
        self,
        total_maintenance: float,
        runoff: float,
        total_land: float,
        psi: float = PSI,
        epsilon: float = EPSILON,
        max_capacity: float = MAX_CAPACITY,
    ) -> float:
        """Recompute condition and irrigation water; returns the water per unit of land."""
        self.maintenance = total_maintenance
        self.condition = infrastructure_performance(total_maintenance, psi, epsilon, max_capacity)
        self.irrigation_water = irrigation_depth(self.condition, runoff, total_land)
        return self.irrigation_water
