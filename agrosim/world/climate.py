"""Rainfall, runoff and the climatic crop yield they support."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from agrosim.core.config import (
    DEFAULT_PRECIPITATION,
    DEFAULT_RUNOFF,
    FERTILITY_LOG_SLOPE,
    MAX_YIELD,
    YIELD_LOG_INTERCEPT,
    YIELD_LOG_SLOPE,
)
from agrosim.core.errors import ConfigurationError


def climatic_yield(
    precipitation: float,
    max_yield: float = MAX_YIELD,
    a: float = YIELD_LOG_SLOPE,
    b: float = YIELD_LOG_INTERCEPT,
) -> float:
    """Crop yield (kg/ha) for a year's effective precipitation.

    Zero or negative precipitation yields nothing.
    """
    if precipitation <= 0:
        return 0.0
    return max_yield * max(0.0, a * math.log(precipitation) + b)


def yield_reduction(
    fertility: float,
    climatic_yield: float,
    c: float = FERTILITY_LOG_SLOPE,
) -> float:
    """Yield left after soil exhaustion; fertility is on a 0-100 scale."""
    if fertility <= 0:
        return 0.0
    return climatic_yield * max(0.0, c * math.log(fertility / 100.0) + 1.0)


@dataclass(frozen=True)
class ClimateAnomaly:
    """Multiplies precipitation over an inclusive window of steps."""

    start: int
    end: int
    factor: float

    def covers(self, step: int) -> bool:
        return self.start <= step <= self.end


@dataclass(frozen=True)
class ClimateSeries:
    """Exogenous precipitation and runoff for one settlement.

    Either constant, or a per-step sequence. A sequence shorter than the run
    holds its last value.
    """

    base_precipitation: float = DEFAULT_PRECIPITATION
    base_runoff: float = DEFAULT_RUNOFF
    precipitation_series: Optional[tuple[float, ...]] = None
    runoff_series: Optional[tuple[float, ...]] = None
    anomalies: tuple[ClimateAnomaly, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        for name in ("precipitation_series", "runoff_series"):
            series = getattr(self, name)
            if series is not None and len(series) == 0:
                raise ConfigurationError(f"{name} must not be empty")
        if self.base_runoff < 0:
            raise ConfigurationError(f"runoff must be non-negative, got {self.base_runoff}")

    @classmethod
    def constant(cls, precipitation: float, runoff: float = DEFAULT_RUNOFF) -> "ClimateSeries":
        return cls(base_precipitation=precipitation, base_runoff=runoff)

    @classmethod
    def from_series(
        cls,
        precipitation: Sequence[float],
        runoff: Optional[Sequence[float]] = None,
    ) -> "ClimateSeries":
        return cls(
            base_precipitation=float(precipitation[0]) if len(precipitation) else DEFAULT_PRECIPITATION,
            base_runoff=float(runoff[0]) if runoff is not None and len(runoff) else DEFAULT_RUNOFF,
            precipitation_series=tuple(float(p) for p in precipitation),
            runoff_series=tuple(float(r) for r in runoff) if runoff is not None else None,
        )

    def with_drought(self, start: int, end: int, factor: float) -> "ClimateSeries":
        """Copy with precipitation scaled by factor for steps start..end."""
        if end < start:
            raise ConfigurationError(f"drought window ends ({end}) before it starts ({start})")
        if factor < 0:
            raise ConfigurationError(f"drought factor must be non-negative, got {factor}")
        return replace(self, anomalies=self.anomalies + (ClimateAnomaly(start, end, factor),))

    @staticmethod
    def _at(series: Optional[tuple[float, ...]], base: float, step: int) -> float:
        if series is None:
            return base
        return series[min(max(step, 0), len(series) - 1)]

    def precipitation(self, step: int) -> float:
        value = self._at(self.precipitation_series, self.base_precipitation, step)
        for anomaly in self.anomalies:
            if anomaly.covers(step):
                value *= anomaly.factor
        return value

    def runoff(self, step: int) -> float:
        return self._at(self.runoff_series, self.base_runoff, step)

    def is_anomalous(self, step: int) -> bool:
        return any(a.covers(step) for a in self.anomalies)
