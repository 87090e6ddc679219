"""Time system for the simulation: one fixed annual step."""

from agrosim.core.config import STEPS_PER_YEAR


class SimClock:
    """Manages simulation time."""

    def __init__(self, start_year: int = 0) -> None:
        self.step: int = 0
        self.start_year = start_year

    @property
    def year(self) -> int:
        return self.start_year + self.step // STEPS_PER_YEAR

    def advance(self) -> None:
        """Advance the clock by one step."""
        self.step += 1
