"""Land a household needs, and land its labour and territory allow."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from agrosim.core.config import (
    LABOR_PER_HECTARE,
    MAX_LABOR,
    MAX_LAND_REQUIREMENT,
    SEED_PROPORTION,
    WHEAT_REQ,
)
from agrosim.core.errors import ConfigurationError


class LandConstraint(Enum):
    UNLIMITED = "unlimited"
    STEP = "step"
    ASYMPTOTE = "asymptote"

    @classmethod
    def parse(cls, mode: "str | LandConstraint") -> "LandConstraint":
        if isinstance(mode, cls):
            return mode
        try:
            return cls(mode)
        except ValueError:
            raise ConfigurationError(f"unknown land constraint mode {mode!r}") from None


def potential_land(
    laborers: float,
    farming_labor_fraction: float,
    fallow: bool = True,
    max_labor: float = MAX_LABOR,
    labor_per_hectare: float = LABOR_PER_HECTARE,
) -> float:
    """Hectares the household's farming labour could work with no area limit."""
    fallow_factor = 2.0 if fallow else 1.0
    return max_labor * farming_labor_fraction * laborers * fallow_factor / labor_per_hectare


def constrain_land(potential: float, available_area: float, mode: LandConstraint) -> float:
    """Apply an area limit to a labour-limited land potential."""
    if mode is LandConstraint.UNLIMITED:
        return potential
    if available_area <= 0:
        return 0.0
    if mode is LandConstraint.STEP:
        return min(potential, available_area)
    return available_area * (1.0 - math.exp(-potential / available_area))


def max_cultivable_land(
    laborers: float,
    farming_labor_fraction: float,
    available_area: float,
    fallow: bool = True,
    mode: "str | LandConstraint" = LandConstraint.ASYMPTOTE,
    max_labor: float = MAX_LABOR,
    labor_per_hectare: float = LABOR_PER_HECTARE,
) -> float:
    potential = potential_land(laborers, farming_labor_fraction, fallow, max_labor, labor_per_hectare)
    return constrain_land(potential, available_area, LandConstraint.parse(mode))


@dataclass(frozen=True)
class LandRequirement:
    """Hectares needed to feed a household; capped when yield is zero."""

    hectares: float
    capped: bool = False


def land_requirement(
    n_occupants: int,
    crop_yield: float,
    fallow: bool = True,
    wheat_req: float = WHEAT_REQ,
    seed_proportion: float = SEED_PROPORTION,
) -> LandRequirement:
    if n_occupants <= 0:
        return LandRequirement(0.0)
    if crop_yield <= 0:
        return LandRequirement(MAX_LAND_REQUIREMENT, capped=True)
    fallow_factor = 2.0 if fallow else 1.0
    hectares = wheat_req * n_occupants * (1.0 + seed_proportion) / crop_yield * fallow_factor
    if hectares > MAX_LAND_REQUIREMENT:
        return LandRequirement(MAX_LAND_REQUIREMENT, capped=True)
    return LandRequirement(hectares)
