from __future__ import annotations

from typing import Iterable, List, Sequence

from .errors import InvalidInput
from .models import ProcessMetrics, ProcessState, Snapshot, Statistics


def finalize_processes(processes: Iterable[ProcessState], final_time: int) -> List[ProcessMetrics]:
    """
    Derive per-process timing metrics once the run is over.

    A process that never got the CPU is treated as starting at its arrival,
    and one that never completed as completing at the final simulated time.
    """
    metrics: List[ProcessMetrics] = []
    for p in processes:
        start_time = p.start_time if p.start_time is not None else p.arrival
        completion_time = p.completion_time if p.completion_time is not None else final_time
        turnaround_time = completion_time - p.arrival
        metrics.append(
            ProcessMetrics(
                pid=p.pid,
                arrival=p.arrival,
                burst=p.burst,
                priority=p.priority,
                start_time=start_time,
                completion_time=completion_time,
                turnaround_time=turnaround_time,
                waiting_time=turnaround_time - p.burst,
                response_time=start_time - p.arrival,
            )
        )
    return metrics


def count_context_switches(snapshots: Sequence[Snapshot]) -> int:
    """
    Count how often the CPU passes from one process to a different one.
    Idle units in between do not reset the previous occupant.
    """
    switches = 0
    previous = None
    for snap in snapshots:
        if snap.cpu is None:
            continue
        if previous is not None and snap.cpu != previous:
            switches += 1
        previous = snap.cpu
    return switches


def compute_statistics(processes: List[ProcessMetrics], snapshots: Sequence[Snapshot]) -> Statistics:
    """
    Aggregate the finalized per-process metrics of a run.
    """
    if not processes:
        raise InvalidInput("Cannot compute statistics for an empty process list")

    n = len(processes)
    last_completion = max(p.completion_time for p in processes)
    cpu_busy_time = sum(1 for s in snapshots if s.cpu is not None)

    return Statistics(
        avg_waiting=sum(p.waiting_time for p in processes) / n,
        avg_turnaround=sum(p.turnaround_time for p in processes) / n,
        avg_response=sum(p.response_time for p in processes) / n,
        makespan=last_completion - min(p.arrival for p in processes),
        throughput=n / max(1, last_completion),
        cpu_busy_time=cpu_busy_time,
        idle_time=len(snapshots) - cpu_busy_time,
        cpu_utilization=cpu_busy_time / max(1, last_completion),
        context_switches=count_context_switches(snapshots),
        processes=list(processes),
    )

