from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import InvalidInput

IDLE_EVENT = "idle"


def exec_label(pid: str) -> str:
    return f"exec({pid})"


def coerce_int(value: Any, label: str) -> int:
    """
    Accept ints, integral floats and numeric strings; reject anything fractional.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{label} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidInput(f"{label} must be a whole number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError as exc:
            raise InvalidInput(f"{label} must be an integer, got {value!r}") from exc
        return coerce_int(number, label)
    raise InvalidInput(f"{label} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Process:
    """
    Input descriptor for one process. Lower priority value means higher priority.
    """

    pid: str
    arrival: int
    burst: int
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"pid": self.pid, "arrival": self.arrival, "burst": self.burst, "priority": self.priority}


@dataclass(frozen=True)
class ProcessState:
    """
    Runtime view of a process at one instant. Successive states are produced
    with dataclasses.replace, so a recorded state never changes afterwards.
    """

    pid: str
    arrival: int
    burst: int
    priority: int
    remaining: int
    start_time: Optional[int] = None
    completion_time: Optional[int] = None
    admitted: bool = False

    @classmethod
    def from_process(cls, process: Process) -> "ProcessState":
        return cls(
            pid=process.pid,
            arrival=process.arrival,
            burst=process.burst,
            priority=process.priority,
            remaining=process.burst,
        )

    @property
    def done(self) -> bool:
        return self.remaining == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pid": self.pid,
            "arrival": self.arrival,
            "burst": self.burst,
            "remaining": self.remaining,
            "startTime": self.start_time,
            "completionTime": self.completion_time,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class Snapshot:
    """
    System state during one time unit: the CPU occupant (None when idle), the
    ready structure(s) without the running process, and every process state
    after the unit's work was applied.
    """

    time: int
    cpu: Optional[str]
    ready: Tuple[str, ...]
    processes: Tuple[ProcessState, ...]
    levels: Tuple[Tuple[str, ...], ...] = ()

    def process(self, pid: str) -> ProcessState:
        for proc in self.processes:
            if proc.pid == pid:
                return proc
        raise KeyError(pid)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "cpu": self.cpu,
            "ready": list(self.ready),
            "procs": [p.to_dict() for p in self.processes],
        }


@dataclass(frozen=True)
class TraceEvent:
    time: int
    cpu: Optional[str]
    event: str
    ready: Tuple[str, ...]

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "TraceEvent":
        event = IDLE_EVENT if snapshot.cpu is None else exec_label(snapshot.cpu)
        return cls(time=snapshot.time, cpu=snapshot.cpu, event=event, ready=snapshot.ready)

    @property
    def idle(self) -> bool:
        return self.cpu is None

    def format_line(self) -> str:
        cpu = self.cpu if self.cpu is not None else "Idle"
        return f"t={self.time} | CPU={cpu} | event={self.event} | ready=[{','.join(self.ready)}]"

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "cpu": self.cpu, "ready": list(self.ready), "event": self.event}


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution in the Gantt chart. pid is None for idle gaps.
    """

    pid: Optional[str]
    start_time: int
    end_time: int

    @property
    def idle(self) -> bool:
        return self.pid is None


@dataclass
class ProcessMetrics:
    pid: str
    arrival: int
    burst: int
    priority: int
    start_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pid": self.pid,
            "arrival": self.arrival,
            "burst": self.burst,
            "priority": self.priority,
            "startTime": self.start_time,
            "completionTime": self.completion_time,
            "turnaround": self.turnaround_time,
            "waiting": self.waiting_time,
            "response": self.response_time,
        }


@dataclass
class Statistics:
    avg_waiting: float
    avg_turnaround: float
    avg_response: float
    makespan: int
    throughput: float
    cpu_busy_time: int
    idle_time: int
    cpu_utilization: float
    context_switches: int
    processes: List[ProcessMetrics] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgWaiting": self.avg_waiting,
            "avgTurnaround": self.avg_turnaround,
            "avgResponse": self.avg_response,
            "makespan": self.makespan,
            "throughput": self.throughput,
            "cpuBusyTime": self.cpu_busy_time,
            "idleTime": self.idle_time,
            "cpuUtilization": self.cpu_utilization,
            "contextSwitches": self.context_switches,
            "processes": [p.to_dict() for p in self.processes],
        }


_OPTION_ALIASES = {
    "quantum": "quantum",
    "mlqFgQuantum": "mlq_fg_quantum",
    "mlq_fg_quantum": "mlq_fg_quantum",
    "mlqBgQuantum": "mlq_bg_quantum",
    "mlq_bg_quantum": "mlq_bg_quantum",
    "maxSteps": "max_steps",
    "max_steps": "max_steps",
}


@dataclass(frozen=True)
class SimulationOptions:
    """
    Parameters for one run. Options the chosen algorithm does not use are kept
    so they can be exported alongside the run. When max_steps is None the
    ceiling is derived from the workload (see engine.step_ceiling).
    """

    quantum: int = 4
    mlq_fg_quantum: int = 2
    mlq_bg_quantum: Optional[int] = None
    max_steps: Optional[int] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name in ("mlq_bg_quantum", "max_steps"):
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidInput(f"{f.name} must be a positive integer, got {value!r}")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "SimulationOptions":
        if not mapping:
            return cls()

        kwargs: Dict[str, Any] = {}
        for key, value in mapping.items():
            if key not in _OPTION_ALIASES:
                raise InvalidInput(f"Unknown simulation option '{key}'")
            name = _OPTION_ALIASES[key]
            if value is None and name != "mlq_bg_quantum":
                continue
            kwargs[name] = None if value is None else coerce_int(value, key)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quantum": self.quantum,
            "mlqFgQuantum": self.mlq_fg_quantum,
            "mlqBgQuantum": self.mlq_bg_quantum,
            "maxSteps": self.max_steps,
        }


@dataclass
class SimulationResult:
    tag: str
    algorithm: str
    options: SimulationOptions
    trace: List[TraceEvent] = field(default_factory=list)
    history_snapshots: List[Snapshot] = field(default_factory=list)
    stats: Optional[Statistics] = None

    @property
    def final_time(self) -> int:
        return len(self.history_snapshots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.tag,
            "name": self.algorithm,
            "trace": [t.to_dict() for t in self.trace],
            "historySnapshots": [s.to_dict() for s in self.history_snapshots],
            "stats": None if self.stats is None else self.stats.to_dict(),
        }
