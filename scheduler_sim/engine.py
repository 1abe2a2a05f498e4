from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import InternalLimitExceeded
from .models import Process, ProcessState, Snapshot

logger = logging.getLogger(__name__)


def _single_level(proc: ProcessState) -> int:
    return 0


@dataclass(frozen=True)
class Policy:
    """
    Selection and preemption rules of one algorithm.

    quanta has one entry per ready level; None means the selected process runs
    to completion. route maps an arriving process to its level. When sort_key
    is set the level is re-sorted (stably) before every selection, otherwise
    it is served FIFO. Lower levels are always served first.
    """

    name: str
    quanta: Tuple[Optional[int], ...] = (None,)
    route: Callable[[ProcessState], int] = _single_level
    sort_key: Optional[Callable[[ProcessState], tuple]] = None

    @property
    def levels(self) -> int:
        return len(self.quanta)


class Phase(Enum):
    SELECTING = "selecting"
    IDLE = "idle"
    EXECUTING = "executing"
    PREEMPTING = "preempting"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SchedulerState:
    time: int
    processes: Tuple[ProcessState, ...]
    queues: Tuple[Tuple[str, ...], ...]
    running: Optional[str] = None
    running_level: int = 0
    slice_used: int = 0
    phase: Phase = Phase.SELECTING

    def get(self, pid: str) -> ProcessState:
        for proc in self.processes:
            if proc.pid == pid:
                return proc
        raise KeyError(pid)

    @property
    def ready(self) -> Tuple[str, ...]:
        return tuple(pid for queue in self.queues for pid in queue)

    @property
    def pending(self) -> bool:
        """True while some process with work left has not arrived yet."""
        return any(not p.admitted and p.remaining > 0 for p in self.processes)

    @property
    def finished(self) -> bool:
        return all(p.done for p in self.processes)


def initial_state(policy: Policy, processes: Sequence[Process]) -> SchedulerState:
    return SchedulerState(
        time=0,
        processes=tuple(ProcessState.from_process(p) for p in processes),
        queues=tuple(() for _ in range(policy.levels)),
    )


def _with_process(processes: Tuple[ProcessState, ...], updated: ProcessState) -> Tuple[ProcessState, ...]:
    return tuple(updated if p.pid == updated.pid else p for p in processes)


def admit_arrivals(policy: Policy, state: SchedulerState) -> SchedulerState:
    """
    Move every process whose arrival time has been reached into its ready level.
    Processes are admitted once, in input order, whether or not the CPU is busy.
    """
    queues = [list(q) for q in state.queues]
    processes = list(state.processes)
    admitted = False

    for i, proc in enumerate(processes):
        if not proc.admitted and proc.arrival <= state.time and proc.remaining > 0:
            queues[policy.route(proc)].append(proc.pid)
            processes[i] = replace(proc, admitted=True)
            admitted = True

    if not admitted:
        return state
    return replace(state, processes=tuple(processes), queues=tuple(tuple(q) for q in queues))


def select_next(policy: Policy, state: SchedulerState) -> SchedulerState:
    """
    Take the head of the first non-empty level and give it the CPU.
    """
    for level, queue in enumerate(state.queues):
        if queue:
            break
    else:
        return state

    ordered = list(queue)
    if policy.sort_key is not None:
        by_pid = {p.pid: p for p in state.processes}
        ordered.sort(key=lambda pid: policy.sort_key(by_pid[pid]))
    pid = ordered.pop(0)

    queues = list(state.queues)
    queues[level] = tuple(ordered)

    proc = state.get(pid)
    processes = state.processes
    if proc.start_time is None:
        processes = _with_process(processes, replace(proc, start_time=state.time))

    logger.debug("%s t=%d: selected %s from level %d", policy.name, state.time, pid, level)
    return replace(
        state,
        processes=processes,
        queues=tuple(queues),
        running=pid,
        running_level=level,
        slice_used=0,
    )


def step(policy: Policy, state: SchedulerState) -> Tuple[SchedulerState, Optional[Snapshot]]:
    """
    Advance the simulation by exactly one time unit.

    Returns the successor state and the snapshot recorded for the unit, or
    (state, None) once every process has completed. The input state is never
    modified.
    """
    if state.phase is Phase.COMPLETED:
        return state, None

    state = admit_arrivals(policy, state)

    if state.running is None:
        if not any(state.queues):
            if not state.pending:
                return replace(state, phase=Phase.COMPLETED), None
            snapshot = Snapshot(time=state.time, cpu=None, ready=(), processes=state.processes, levels=state.queues)
            return replace(state, time=state.time + 1, phase=Phase.IDLE), snapshot
        state = select_next(policy, state)

    pid = state.running
    proc = state.get(pid)
    proc = replace(proc, remaining=proc.remaining - 1)
    processes = _with_process(state.processes, proc)

    snapshot = Snapshot(time=state.time, cpu=pid, ready=state.ready, processes=processes, levels=state.queues)
    state = replace(
        state,
        time=state.time + 1,
        processes=processes,
        slice_used=state.slice_used + 1,
        phase=Phase.EXECUTING,
    )

    # Arrivals during the unit are queued before a preempted process goes back.
    state = admit_arrivals(policy, state)

    if proc.done:
        processes = _with_process(state.processes, replace(proc, completion_time=state.time))
        logger.debug("%s t=%d: %s completed", policy.name, state.time, pid)
        state = replace(state, processes=processes, running=None, slice_used=0, phase=Phase.SELECTING)
        if state.finished:
            state = replace(state, phase=Phase.COMPLETED)
        return state, snapshot

    quantum = policy.quanta[state.running_level]
    if quantum is not None and state.slice_used >= quantum:
        queues = list(state.queues)
        queues[state.running_level] = queues[state.running_level] + (pid,)
        logger.debug("%s t=%d: %s preempted after %d units", policy.name, state.time, pid, state.slice_used)
        state = replace(state, queues=tuple(queues), running=None, slice_used=0, phase=Phase.PREEMPTING)

    return state, snapshot


def step_ceiling(processes: Sequence[Process]) -> int:
    """
    Upper bound on the time units any run of these processes can take: idle
    until the last arrival, then every burst back to back.
    """
    return max((p.arrival for p in processes), default=0) + sum(p.burst for p in processes) + 1


def run(
    policy: Policy,
    processes: Sequence[Process],
    max_steps: Optional[int] = None,
) -> Tuple[List[Snapshot], SchedulerState]:
    """
    Step the simulation to completion and return every recorded snapshot with
    the final state. Without an explicit max_steps the ceiling is step_ceiling,
    which a well-formed workload never reaches.
    """
    if max_steps is None:
        max_steps = step_ceiling(processes)
    state = initial_state(policy, processes)
    history: List[Snapshot] = []
    steps = 0

    while state.phase is not Phase.COMPLETED:
        if steps >= max_steps:
            raise InternalLimitExceeded(max_steps, state.time)
        state, snapshot = step(policy, state)
        steps += 1
        if snapshot is not None:
            history.append(snapshot)

    logger.info("%s finished %d processes at t=%d", policy.name, len(state.processes), state.time)
    return history, state
