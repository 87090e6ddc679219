"""Household labour split between farming and canal maintenance.

The household maximises a Cobb-Douglas utility

    U = yield_memory * land^(1-j-k) * F^j * W^k

where F = (1 - m) * laborers * max_labor is farming labour, m the share of
labour spent on maintenance, and W = precipitation + performance(m) * runoff / land
the effective water, with land in km^2. performance(m) is piecewise linear,
so U is maximised in closed form on each of its three pieces and the best
piece wins.
"""

from __future__ import annotations

from dataclasses import dataclass

from agrosim.core.config import ModelConfig
from agrosim.world.infrastructure import infrastructure_performance, irrigation_depth


@dataclass(frozen=True)
class AllocationInputs:
    """What a household knows when it splits its labour for the year."""

    yield_memory: float
    land: float
    laborers: int
    precipitation: float
    runoff: float


def effective_water(maintenance: float, inputs: AllocationInputs, config: ModelConfig) -> float:
    performance = infrastructure_performance(
        maintenance, config.psi, config.epsilon, config.max_capacity,
    )
    irrigation = irrigation_depth(performance, inputs.runoff, inputs.land)
    return max(0.0, inputs.precipitation + irrigation)


def _labour_factor(maintenance: float, inputs: AllocationInputs, config: ModelConfig) -> float:
    """The part of U that depends on the maintenance share."""
    j, k = config.labor_elasticity, config.water_elasticity
    farming_share = max(0.0, 1.0 - maintenance)
    return farming_share ** j * effective_water(maintenance, inputs, config) ** k


def labour_utility(maintenance: float, inputs: AllocationInputs, config: ModelConfig) -> float:
    j, k = config.labor_elasticity, config.water_elasticity
    if inputs.land <= 0 or inputs.laborers <= 0 or inputs.yield_memory <= 0:
        return 0.0
    prefactor = (
        inputs.yield_memory
        * inputs.land ** (1.0 - j - k)
        * (inputs.laborers * config.max_labor) ** j
    )
    return prefactor * _labour_factor(maintenance, inputs, config)


def _ramp_optimum(inputs: AllocationInputs, config: ModelConfig) -> float:
    """Stationary point of U on the linear ramp, clamped to the ramp."""
    j, k = config.labor_elasticity, config.water_elasticity
    lower = config.psi - config.epsilon
    upper = config.psi + config.epsilon
    slope = irrigation_depth(config.max_capacity, inputs.runoff, inputs.land) / (upper - lower)
    if slope <= 0:
        return lower
    intercept = inputs.precipitation - slope * lower
    optimum = (k * slope - j * intercept) / (slope * (j + k))
    return min(max(optimum, lower), upper)


def candidate_allocations(inputs: AllocationInputs, config: ModelConfig) -> list[float]:
    """Best maintenance share within each regime, lowest regime first."""
    return [
        0.0,                                  # no working canals
        _ramp_optimum(inputs, config),        # partially working canals
        config.psi + config.epsilon,          # canals at full capacity
    ]


def allocate_time(inputs: AllocationInputs, config: ModelConfig) -> float:
    """Farming labour fraction in [0, 1] maximising the household utility.

    The positive prefactor of U does not move the optimum, so candidates are
    compared on the maintenance-dependent factor alone. This keeps the choice
    defined for households with no land or no yield yet. Ties keep the
    earlier (lower maintenance) candidate.
    """
    best_maintenance = 0.0
    best_score = -1.0
    for maintenance in candidate_allocations(inputs, config):
        score = _labour_factor(maintenance, inputs, config)
        if score > best_score:
            best_maintenance, best_score = maintenance, score
    return min(1.0, max(0.0, 1.0 - best_maintenance))
