import pytest

from scheduler_sim.engine import Phase, Policy, admit_arrivals, initial_state, run, step, step_ceiling
from scheduler_sim.errors import InternalLimitExceeded
from scheduler_sim.models import Process


def _procs():
    return [
        Process("P1", arrival=0, burst=5),
        Process("P2", arrival=1, burst=3),
        Process("P3", arrival=2, burst=8),
        Process("P4", arrival=3, burst=6),
    ]


def _rr(quantum=2):
    return Policy("Round Robin", quanta=(quantum,))


def test_initial_state_has_nothing_admitted():
    state = initial_state(_rr(), _procs())
    assert state.time == 0
    assert state.queues == ((),)
    assert state.phase is Phase.SELECTING
    assert not any(p.admitted for p in state.processes)


def test_admission_only_takes_arrived_processes():
    state = initial_state(_rr(), _procs())
    state = admit_arrivals(_rr(), state)
    assert state.queues == (("P1",),)
    # Admitting twice at the same instant is a no-op.
    assert admit_arrivals(_rr(), state) is state


def test_step_does_not_mutate_its_input():
    policy = _rr()
    state = initial_state(policy, _procs())
    next_state, snapshot = step(policy, state)
    assert state.time == 0
    assert state.get("P1").remaining == 5
    assert next_state.time == 1
    assert next_state.get("P1").remaining == 4
    assert next_state.get("P1").start_time == 0
    assert snapshot.cpu == "P1"
    assert snapshot.process("P1").remaining == 4


def test_rr_queue_after_first_preemption():
    policy = _rr()
    state = initial_state(policy, _procs())
    state, _ = step(policy, state)
    assert state.phase is Phase.EXECUTING
    state, _ = step(policy, state)
    assert state.phase is Phase.PREEMPTING
    assert state.running is None
    assert state.queues == (("P2", "P3", "P1"),)


def test_slice_never_exceeds_quantum():
    policy = _rr(quantum=3)
    state = initial_state(policy, _procs())
    while state.phase is not Phase.COMPLETED:
        state, _ = step(policy, state)
        assert state.slice_used <= 3


def test_idle_step_then_completion():
    policy = Policy("FCFS")
    state = initial_state(policy, [Process("P1", arrival=2, burst=1)])

    state, snapshot = step(policy, state)
    assert state.phase is Phase.IDLE
    assert snapshot.cpu is None and snapshot.ready == ()

    state, _ = step(policy, state)
    state, snapshot = step(policy, state)
    assert snapshot.cpu == "P1"
    assert state.phase is Phase.COMPLETED
    assert state.get("P1").completion_time == 3

    assert step(policy, state) == (state, None)


def test_recorded_snapshots_stay_unchanged():
    history, final = run(_rr(), _procs(), max_steps=100)
    first = history[0]
    assert first.process("P1").remaining == 4
    assert final.get("P1").remaining == 0
    assert len(history) == final.time == 22


def test_run_raises_at_ceiling():
    with pytest.raises(InternalLimitExceeded) as excinfo:
        run(_rr(), _procs(), max_steps=5)
    assert excinfo.value.limit == 5


def test_step_ceiling_is_last_arrival_plus_total_burst():
    assert step_ceiling(_procs()) == 3 + 22 + 1


def test_run_defaults_to_the_workload_ceiling():
    procs = [Process("P1", arrival=0, burst=2), Process("P2", arrival=1000, burst=1)]
    history, final = run(_rr(), procs)
    assert final.time == 1001
    assert len(history) == 1001
