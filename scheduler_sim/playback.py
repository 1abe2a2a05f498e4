from __future__ import annotations

import time
from typing import Callable, Optional, Sequence

from rich import box
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .errors import InvalidInput
from .gantt import pid_colors
from .models import Snapshot

# Seconds between frames at speed 1.
BASE_INTERVAL = 0.6
# Character width of the remaining-work bar.
BAR_WIDTH = 20


class Player:
    """
    Read-only cursor over a finished run's snapshots.

    Supports random-access seeking, stepping in both directions and timed
    playback at a variable speed. The snapshots themselves are never changed.
    """

    def __init__(self, snapshots: Sequence[Snapshot], speed: float = 1.0) -> None:
        self._snapshots = tuple(snapshots)
        self.position = 0
        self.playing = False
        self.speed = speed

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def speed(self) -> float:
        return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        if value <= 0:
            raise InvalidInput(f"Playback speed must be positive, got {value}")
        self._speed = float(value)

    @property
    def interval(self) -> float:
        return BASE_INTERVAL / self._speed

    @property
    def current(self) -> Optional[Snapshot]:
        if not self._snapshots:
            return None
        return self._snapshots[self.position]

    @property
    def at_end(self) -> bool:
        return self.position >= len(self._snapshots) - 1

    def seek(self, index: int) -> Optional[Snapshot]:
        self.position = min(max(index, 0), max(0, len(self._snapshots) - 1))
        return self.current

    def step_forward(self) -> Optional[Snapshot]:
        return self.seek(self.position + 1)

    def step_backward(self) -> Optional[Snapshot]:
        return self.seek(self.position - 1)

    def rewind(self) -> Optional[Snapshot]:
        return self.seek(0)

    def fast_forward(self) -> Optional[Snapshot]:
        return self.seek(len(self._snapshots) - 1)

    def pause(self) -> None:
        self.playing = False

    def play(
        self,
        on_frame: Callable[[int, Snapshot], None],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Show the current frame, then advance one frame per interval until the
        last snapshot or until pause() is called (e.g. from on_frame).
        """
        if not self._snapshots:
            return

        self.playing = True
        try:
            on_frame(self.position, self._snapshots[self.position])
            while self.playing and not self.at_end:
                sleep(self.interval)
                self.step_forward()
                on_frame(self.position, self._snapshots[self.position])
        finally:
            self.playing = False


def remaining_bar_width(remaining: int, burst: int, width: int = BAR_WIDTH) -> int:
    """Filled cells of a fixed-width bar showing remaining/burst."""
    if burst <= 0:
        return 0
    return round(width * remaining / burst)


def render_snapshot(snapshot: Snapshot) -> Group:
    """
    Build a rich renderable for one frame: CPU occupant, ready queue and the
    remaining work of every process.
    """
    colors = pid_colors([p.pid for p in snapshot.processes])

    header = Text(f"t={snapshot.time:<4} CPU: ", style="bold")
    if snapshot.cpu is None:
        header.append("idle", style="dim")
    else:
        header.append(snapshot.cpu, style=f"bold {colors[snapshot.cpu]}")
    header.append("   ready: ")
    header.append("[" + ", ".join(snapshot.ready) + "]")

    table = Table(box=box.SIMPLE, show_edge=False)
    table.add_column("PID", justify="center")
    table.add_column("State")
    table.add_column("Remaining", justify="right")
    table.add_column("")

    for p in snapshot.processes:
        if p.pid == snapshot.cpu:
            state = "running"
        elif p.done:
            state = "done"
        elif p.admitted:
            state = "ready"
        else:
            state = "not arrived"
        filled = remaining_bar_width(p.remaining, p.burst)
        bar = Text("█" * filled, style=colors[p.pid])
        bar.append("░" * (BAR_WIDTH - filled), style="dim")
        table.add_row(p.pid, state, f"{p.remaining}/{p.burst}", bar)

    return Group(header, table)
