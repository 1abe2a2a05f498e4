from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from . import engine
from .engine import Policy
from .errors import InvalidInput, UnsupportedAlgorithm
from .metrics import compute_statistics, finalize_processes
from .models import Process, ProcessState, SimulationOptions, SimulationResult, TraceEvent, coerce_int

logger = logging.getLogger(__name__)

ProcessLike = Union[Process, Mapping[str, Any]]
OptionsLike = Union[SimulationOptions, Mapping[str, Any], None]


def _first_present(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in mapping:
            return mapping[key]
    raise KeyError(keys[0])


def normalize_processes(processes: Iterable[ProcessLike]) -> List[Process]:
    """
    Validate and coerce raw process entries into Process descriptors.

    Entries may be Process instances or mappings with pid, arrival and burst
    (arrival_time/burst_time are accepted too) and an optional priority that
    defaults to 0. Arrival must be non-negative, burst positive, and pids unique.
    """
    normalized: List[Process] = []
    seen: set[str] = set()

    for entry in processes:
        if isinstance(entry, Process):
            pid, arrival, burst, priority = entry.pid, entry.arrival, entry.burst, entry.priority
        else:
            try:
                pid = entry["pid"]
                arrival = _first_present(entry, "arrival", "arrival_time")
                burst = _first_present(entry, "burst", "burst_time")
            except (KeyError, TypeError) as exc:
                raise InvalidInput(f"Invalid process entry: {entry!r}") from exc
            priority = entry.get("priority")

        if pid is None or str(pid).strip() == "":
            raise InvalidInput(f"Process entry without a pid: {entry!r}")
        pid = str(pid)
        if pid in seen:
            raise InvalidInput(f"Duplicate pid '{pid}'")
        seen.add(pid)

        arrival = coerce_int(arrival, f"arrival of process {pid}")
        burst = coerce_int(burst, f"burst of process {pid}")
        priority = 0 if priority in (None, "") else coerce_int(priority, f"priority of process {pid}")

        if arrival < 0:
            raise InvalidInput(f"arrival of process {pid} cannot be negative, got {arrival}")
        if burst <= 0:
            raise InvalidInput(f"burst of process {pid} must be positive, got {burst}")

        normalized.append(Process(pid=pid, arrival=arrival, burst=burst, priority=priority))

    if not normalized:
        raise InvalidInput("At least one process is required")
    return normalized


def _shortest_remaining(proc: ProcessState) -> tuple:
    return (proc.remaining, proc.arrival)


def _highest_priority(proc: ProcessState) -> tuple:
    # 0 is the highest priority; ties go to earlier arrival, then shorter burst.
    return (proc.priority, proc.arrival, proc.burst)


def _foreground_or_background(proc: ProcessState) -> int:
    return 0 if proc.priority == 0 else 1


def _simulate(tag: str, policy: Policy, processes: Iterable[ProcessLike], options: SimulationOptions) -> SimulationResult:
    procs = normalize_processes(processes)
    history, final_state = engine.run(policy, procs, options.max_steps)

    metrics = finalize_processes(final_state.processes, final_state.time)
    stats = compute_statistics(metrics, history)
    trace = [TraceEvent.from_snapshot(s) for s in history]

    return SimulationResult(
        tag=tag,
        algorithm=policy.name,
        options=options,
        trace=trace,
        history_snapshots=history,
        stats=stats,
    )


def simulate_fcfs(processes: Iterable[ProcessLike], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    First-Come First-Serve (non-preemptive).

    Processes run to completion in the order they were admitted.
    """
    options = options or SimulationOptions()
    return _simulate("FCFS", Policy("FCFS"), processes, options)


def simulate_sjf(processes: Iterable[ProcessLike], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among admitted processes that are not completed,
    choose the one with the least remaining time (tie-breaker: earlier arrival).
    """
    options = options or SimulationOptions()
    policy = Policy("SJF (non-preemptive)", sort_key=_shortest_remaining)
    return _simulate("SJF", policy, processes, options)


def simulate_priority(processes: Iterable[ProcessLike], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority. Ties are broken by
    earlier arrival, then shorter burst.
    """
    options = options or SimulationOptions()
    policy = Policy("Priority (non-preemptive)", sort_key=_highest_priority)
    return _simulate("PRIORITY", policy, processes, options)


def simulate_rr(processes: Iterable[ProcessLike], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    A preempted process goes back to the tail of the queue, behind any
    process that arrived while it was running.
    """
    options = options or SimulationOptions()
    policy = Policy("Round Robin", quanta=(options.quantum,))
    return _simulate("RR", policy, processes, options)


def simulate_mlq(processes: Iterable[ProcessLike], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Multilevel Queue with a foreground and a background level.

    - Priority 0 processes enter the foreground queue, everything else the
      background queue; processes never move between queues.
    - The foreground queue is always served first, round-robin with
      mlq_fg_quantum.
    - The background queue is FCFS to completion, or round-robin with
      mlq_bg_quantum when one is set.
    """
    options = options or SimulationOptions()
    policy = Policy(
        "Multilevel Queue",
        quanta=(options.mlq_fg_quantum, options.mlq_bg_quantum),
        route=_foreground_or_background,
    )
    return _simulate("MLQ", policy, processes, options)


ALGORITHMS: Dict[str, Callable[..., SimulationResult]] = {
    "fcfs": simulate_fcfs,
    "sjf": simulate_sjf,
    "priority": simulate_priority,
    "rr": simulate_rr,
    "mlq": simulate_mlq,
}


def simulate(algorithm: str, processes: Iterable[ProcessLike], options: OptionsLike = None) -> SimulationResult:
    """
    Dispatch to the requested algorithm.

    algorithm is one of FCFS, SJF, PRIORITY, RR or MLQ (case-insensitive);
    anything else raises UnsupportedAlgorithm. options may be a
    SimulationOptions or a mapping such as {"quantum": 2, "mlqFgQuantum": 2}.
    """
    name = str(algorithm).strip().lower()
    if name not in ALGORITHMS:
        raise UnsupportedAlgorithm(str(algorithm), ALGORITHMS)

    if not isinstance(options, SimulationOptions):
        options = SimulationOptions.from_mapping(options)

    logger.debug("Dispatching %s with %s", name, options)
    return ALGORITHMS[name](processes, options)
