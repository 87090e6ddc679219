"""Exceptions raised by the simulation core."""

from __future__ import annotations

from typing import Optional


class ConfigurationError(ValueError):
    """Raised at initialisation when options or seed data are invalid."""

    pass


class SimulationError(RuntimeError):
    """Raised when a step leaves the model in an impossible state."""

    def __init__(self, message: str, step: Optional[int] = None) -> None:
        self.step = step
        if step is not None:
            message = f"[step {step}] {message}"
        super().__init__(message)
