"""Core agent class: one occupant of a household, aging and lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from numpy.random import Generator

from agrosim.core.config import (
    MAX_AGE,
    SEED_AGE_RANGE,
    WORKING_AGE_RANGE,
)
from agrosim.core.errors import ConfigurationError


@dataclass
class Individual:
    """A single person. Owned by exactly one household."""

    individual_id: int
    age: int = 0
    birth_step: int = 0

    def is_laborer(self, working_age: tuple[int, int] = WORKING_AGE_RANGE) -> bool:
        lo, hi = working_age
        return lo <= self.age < hi

    def advance_year(self, max_age: int = MAX_AGE) -> None:
        """Age by one year. Only survivors of the death draw are aged."""
        if self.age >= max_age:
            raise ValueError(f"individual {self.individual_id} cannot age past {max_age}")
        self.age += 1


# ------------------------------------------------------------------
# Initial population generation
# ------------------------------------------------------------------

def create_population(
    n: int,
    rng: Generator,
    ids: Iterator[int],
    age: Optional[int] = None,
    age_range: tuple[int, int] = SEED_AGE_RANGE,
    max_age: int = MAX_AGE,
) -> list[Individual]:
    """Seed occupants, either all at a fixed age or uniformly over age_range."""
    if n < 0:
        raise ConfigurationError(f"cannot seed a negative population ({n})")
    if age is not None:
        if not 0 <= age <= max_age:
            raise ConfigurationError(f"seed age {age} outside [0, {max_age}]")
        return [Individual(individual_id=next(ids), age=age) for _ in range(n)]

    lo, hi = age_range
    if not 0 <= lo < hi <= max_age + 1:
        raise ConfigurationError(f"seed age range {age_range} outside [0, {max_age + 1}]")
    ages = rng.integers(lo, hi, size=n)
    return [Individual(individual_id=next(ids), age=int(a)) for a in ages]
