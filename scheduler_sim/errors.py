from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every failure raised by the simulator."""


class InvalidInput(SchedulerError, ValueError):
    """The process list or the options cannot be simulated."""


class UnsupportedAlgorithm(SchedulerError, ValueError):
    """The algorithm tag is not one of the known schedulers."""

    def __init__(self, name: str, known) -> None:
        self.name = name
        self.known = sorted(known)
        super().__init__(f"Unknown algorithm '{name}' (choose from: {', '.join(self.known)})")


class InternalLimitExceeded(SchedulerError, RuntimeError):
    """The simulation loop hit its step ceiling without finishing."""

    def __init__(self, limit: int, time: int) -> None:
        self.limit = limit
        self.time = time
        super().__init__(f"Simulation did not finish within {limit} steps (stopped at t={time})")
