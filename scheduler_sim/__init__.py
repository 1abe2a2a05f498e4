"""
Scheduler simulation package.

Simulates CPU scheduling one time unit at a time (FCFS, SJF, Priority,
Round Robin, Multilevel Queue) and records a snapshot of the system for
every unit, together with per-process and aggregate statistics.
"""

from .algorithms import ALGORITHMS, normalize_processes, simulate
from .errors import InternalLimitExceeded, InvalidInput, SchedulerError, UnsupportedAlgorithm
from .models import Process, SimulationOptions, SimulationResult, Snapshot, Statistics, TraceEvent

__all__ = [
    "ALGORITHMS",
    "InternalLimitExceeded",
    "InvalidInput",
    "Process",
    "SchedulerError",
    "SimulationOptions",
    "SimulationResult",
    "Snapshot",
    "Statistics",
    "TraceEvent",
    "UnsupportedAlgorithm",
    "normalize_processes",
    "simulate",
]
