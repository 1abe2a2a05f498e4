import io

import pytest
from rich.console import Console

from scheduler_sim.algorithms import simulate
from scheduler_sim.errors import InvalidInput
from scheduler_sim.playback import BAR_WIDTH, BASE_INTERVAL, Player, remaining_bar_width, render_snapshot


def _snapshots():
    procs = [
        {"pid": "P1", "arrival": 0, "burst": 2},
        {"pid": "P2", "arrival": 4, "burst": 1},
    ]
    return simulate("fcfs", procs).history_snapshots


def test_seek_is_clamped():
    player = Player(_snapshots())
    assert len(player) == 5
    assert player.seek(99).time == 4
    assert player.seek(-3).time == 0
    assert player.step_backward().time == 0
    assert player.fast_forward().time == 4
    assert player.at_end
    assert player.rewind().time == 0


def test_stepping_reads_without_mutating():
    snapshots = _snapshots()
    before = list(snapshots)
    player = Player(snapshots)
    player.step_forward()
    player.step_forward()
    assert player.current.cpu is None
    player.step_backward()
    assert player.current.cpu == "P1"
    assert snapshots == before


def test_play_runs_to_the_end_at_speed():
    player = Player(_snapshots(), speed=2)
    frames = []
    delays = []
    player.play(lambda index, snap: frames.append((index, snap.time)), sleep=delays.append)
    assert frames == [(0, 0), (1, 1), (2, 2), (3, 3), (4, 4)]
    assert delays == [BASE_INTERVAL / 2] * 4
    assert not player.playing


def test_pause_from_callback():
    player = Player(_snapshots())
    seen = []

    def on_frame(index, snap):
        seen.append(index)
        if index == 2:
            player.pause()

    player.play(on_frame, sleep=lambda _: None)
    assert seen == [0, 1, 2]
    assert player.position == 2


def test_empty_player():
    player = Player([])
    assert player.current is None
    assert player.step_forward() is None
    player.play(lambda index, snap: pytest.fail("no frames expected"))


def test_speed_must_be_positive():
    with pytest.raises(InvalidInput):
        Player(_snapshots(), speed=0)


def test_render_snapshot():
    console = Console(record=True, width=80, file=io.StringIO())
    console.print(render_snapshot(_snapshots()[0]))
    text = console.export_text()
    assert "CPU: P1" in text
    assert "running" in text
    assert "not arrived" in text


def test_remaining_bar_is_scaled_to_a_fixed_width():
    assert remaining_bar_width(1000, 1000) == BAR_WIDTH
    assert remaining_bar_width(500, 1000) == BAR_WIDTH // 2
    assert remaining_bar_width(0, 1000) == 0
    assert remaining_bar_width(1, 3) == round(BAR_WIDTH / 3)


def test_render_snapshot_with_a_long_burst_fits_the_console():
    snap = simulate("fcfs", [{"pid": "P1", "arrival": 0, "burst": 1000}]).history_snapshots[0]
    console = Console(record=True, width=200, file=io.StringIO())
    console.print(render_snapshot(snap))
    text = console.export_text()
    assert "999/1000" in text
    assert text.count("█") + text.count("░") == BAR_WIDTH
    assert max(len(line.rstrip()) for line in text.splitlines()) <= 80
