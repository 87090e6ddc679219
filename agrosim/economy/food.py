"""Harvest and consumption accounting for a household granary."""

from __future__ import annotations

from agrosim.core.config import FALLOW_HARVEST_SHARE, SOWING_RATE, WHEAT_REQ


def harvest(
    land: float,
    crop_yield: float,
    sowing_rate: float = SOWING_RATE,
    fallow: bool = True,
) -> float:
    """Net grain from a year's land, after reserving seed.

    Under fallow only half the land produces. The result can be negative when
    seed costs more than the crop returns.
    """
    productive_share = FALLOW_HARVEST_SHARE if fallow else 1.0
    return land * crop_yield * productive_share - land * sowing_rate


def eat(
    n_occupants: int,
    storage: float,
    harvested: float,
    wheat_req: float = WHEAT_REQ,
) -> tuple[float, float]:
    """Feed the household for a year. Returns (food_ratio, new_storage).

    Grain older than two years spoils: when the old store alone covers the
    year's need, whatever is left of it is lost and only the new harvest is
    kept.
    """
    total_requirement = n_occupants * wheat_req
    if total_requirement <= 0:
        # Nobody to feed.
        return 1.0, max(harvested, 0.0)

    food_ratio = min(1.0, max(0.0, (storage + harvested) / total_requirement))

    if total_requirement <= storage:
        new_storage = harvested
    else:
        new_storage = max(harvested - (total_requirement - storage), 0.0)
    # A negative harvest cannot be banked.
    return food_ratio, max(new_storage, 0.0)
