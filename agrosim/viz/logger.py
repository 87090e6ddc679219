"""Structured event logging for narrative and debugging."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class LogEntry:
    """A single log entry."""

    step: int
    category: str
    message: str
    household_ids: list[int] = field(default_factory=list)
    data: dict = field(default_factory=dict)


class SimLogger:
    """Structured logging with categories and verbosity control."""

    # Category constants
    EVENT = "EVENT"
    REPLICATE = "REPLICATE"
    CLIMATE = "CLIMATE"
    LIFECYCLE = "LIFECYCLE"
    LAND = "LAND"
    DEBUG = "DEBUG"

    _VERBOSITY_MAP = {
        EVENT: 0,
        REPLICATE: 0,
        CLIMATE: 0,
        LIFECYCLE: 1,
        LAND: 2,
        DEBUG: 3,
    }

    def __init__(
        self,
        verbosity: int = 1,
        log_file: Optional[str] = None,
        stdout: bool = True,
        keep_entries: bool = True,
    ) -> None:
        """
        verbosity levels:
            -1 = silent
             0 = engine events, climate anomalies, replicate failures
             1 = + yearly births and deaths
             2 = + land constrained by area
             3 = everything (debug)
        """
        self.verbosity = verbosity
        self.keep_entries = keep_entries
        self._buffer: list[LogEntry] = []
        self._all_entries: list[LogEntry] = []
        self._file: Optional[TextIO] = None
        self._stdout = stdout

        if log_file:
            os.makedirs(os.path.dirname(log_file) if os.path.dirname(log_file) else ".", exist_ok=True)
            self._file = open(log_file, "w", encoding="utf-8")

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._all_entries)

    def log(
        self,
        category: str,
        message: str,
        household_ids: Optional[list[int]] = None,
        step: int = 0,
        **data,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            step=step,
            category=category,
            message=message,
            household_ids=household_ids or [],
            data=data,
        )
        self._buffer.append(entry)

    def flush_step(self, step: int) -> None:
        """Write buffered logs for the step."""
        for entry in self._buffer:
            required_verbosity = self._VERBOSITY_MAP.get(entry.category, 1)
            if required_verbosity <= self.verbosity:
                line = f"[Year {entry.step:>4}] [{entry.category:<10}] {entry.message}"
                if self._stdout:
                    print(line)
                if self._file:
                    self._file.write(line + "\n")

        if self.keep_entries:
            self._all_entries.extend(self._buffer)
        self._buffer.clear()

        if self._file:
            self._file.flush()

    def get_narrative(self, step: int) -> str:
        """Generate a human-readable summary of a specific step."""
        step_entries = [e for e in self._all_entries if e.step == step]
        if not step_entries:
            return f"Year {step}: Nothing notable happened."

        lines = [f"=== Year {step} ==="]
        for entry in step_entries:
            lines.append(f"  [{entry.category}] {entry.message}")
        return "\n".join(lines)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
