"""Age-specific vital rates and their response to food shortage.

Tables are indexed by integer age. A lookup past the last tabulated age is not
an error: it yields zero fertility and certain death.

The food-sensitivity curves use a gamma CDF rescaled so that a fully fed
household (food ratio 1) keeps its baseline rates exactly and a household with
no food at all has zero fertility and zero survival.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from agrosim.core.config import (
    FERTILITY_PEAK,
    FERTILITY_PEAK_AGE,
    FERTILITY_SPREAD,
    FERTILE_AGE_RANGE,
    MAX_AGE,
    SILER_A1,
    SILER_A2,
    SILER_A3,
    SILER_B1,
    SILER_B3,
)
from agrosim.core.errors import ConfigurationError


@dataclass(frozen=True)
class VitalRates:
    """Read-only fertility and mortality tables shared by all households."""

    fertility: NDArray[np.float64]
    mortality: NDArray[np.float64]

    def __post_init__(self) -> None:
        # Shared across replicates and workers, so freeze the buffers too.
        self.fertility.setflags(write=False)
        self.mortality.setflags(write=False)

    @classmethod
    def from_arrays(cls, fertility: ArrayLike, mortality: ArrayLike) -> "VitalRates":
        fert = np.array(fertility, dtype=np.float64)
        mort = np.array(mortality, dtype=np.float64)
        if fert.ndim != 1 or mort.ndim != 1 or fert.shape != mort.shape:
            raise ConfigurationError("fertility and mortality tables must be 1-d and of equal length")
        if fert.size == 0:
            raise ConfigurationError("vital-rate tables must not be empty")
        if np.any(fert < 0) or np.any(mort < 0) or np.any(mort > 1):
            raise ConfigurationError("rates must be non-negative and mortality at most 1")
        return cls(fertility=fert, mortality=mort)

    @property
    def max_age(self) -> int:
        return int(self.mortality.size - 1)

    def fertility_rate(self, ages: ArrayLike) -> NDArray[np.float64]:
        """Births per woman per year; zero for untabulated ages."""
        ages = np.asarray(ages, dtype=np.int64)
        rates = np.zeros(ages.shape, dtype=np.float64)
        known = (ages >= 0) & (ages <= self.max_age)
        rates[known] = self.fertility[ages[known]]
        return rates

    def mortality_rate(self, ages: ArrayLike) -> NDArray[np.float64]:
        """Annual death probability; one for untabulated ages."""
        ages = np.asarray(ages, dtype=np.int64)
        rates = np.ones(ages.shape, dtype=np.float64)
        known = (ages >= 0) & (ages <= self.max_age)
        rates[known] = self.mortality[ages[known]]
        return rates


def siler_mortality(ages: NDArray[np.float64]) -> NDArray[np.float64]:
    """Annual death probability from a Siler competing-hazard model."""
    hazard = (
        SILER_A1 * np.exp(-SILER_B1 * ages)
        + SILER_A2
        + SILER_A3 * np.exp(SILER_B3 * ages)
    )
    return 1.0 - np.exp(-hazard)


def default_vital_rates(
    max_age: int = MAX_AGE,
    fertile_age: tuple[int, int] = FERTILE_AGE_RANGE,
) -> VitalRates:
    """Pre-industrial reference tables covering ages 0..max_age."""
    ages = np.arange(max_age + 1, dtype=np.float64)

    lo, hi = fertile_age
    fertility = FERTILITY_PEAK * np.exp(-(((ages - FERTILITY_PEAK_AGE) / FERTILITY_SPREAD) ** 2))
    fertility[(ages < lo) | (ages >= hi)] = 0.0

    mortality = siler_mortality(ages)
    # Nobody outlives the table.
    mortality[-1] = 1.0

    return VitalRates.from_arrays(fertility, mortality)


# ------------------------------------------------------------------
# Food sensitivity
# ------------------------------------------------------------------

Number = Union[float, NDArray[np.float64]]


def _gamma_response(food_ratio: ArrayLike, shape: float, scale: float) -> Number:
    ratio = np.clip(np.asarray(food_ratio, dtype=np.float64), 0.0, 1.0)
    response = stats.gamma.cdf(ratio, a=shape, scale=scale) / stats.gamma.cdf(1.0, a=shape, scale=scale)
    response = np.clip(response, 0.0, 1.0)
    if response.ndim == 0:
        return float(response)
    return response


def fertility_reduction(food_ratio: ArrayLike, shape: float, scale: float) -> Number:
    """Multiplier on baseline fertility for a given food ratio."""
    return _gamma_response(food_ratio, shape, scale)


def survival_reduction(food_ratio: ArrayLike, shape: float, scale: float) -> Number:
    """Multiplier on baseline survival for a given food ratio."""
    return _gamma_response(food_ratio, shape, scale)
