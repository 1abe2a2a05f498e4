from __future__ import annotations

from typing import Dict, List, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice, TraceEvent

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def build_timeline(trace: Sequence[TraceEvent]) -> List[ScheduledSlice]:
    """
    Merge consecutive trace units with the same CPU occupant into slices.
    Idle stretches become slices with pid=None.
    """
    slices: List[ScheduledSlice] = []
    for event in trace:
        if slices and slices[-1].pid == event.cpu and slices[-1].end_time == event.time:
            slices[-1].end_time = event.time + 1
        else:
            slices.append(ScheduledSlice(pid=event.cpu, start_time=event.time, end_time=event.time + 1))
    return slices


def render_gantt(slices: List[ScheduledSlice]) -> str:
    """
    Plain-text Gantt chart, used for logs and tests.
    """
    if not slices:
        return "(no execution)"

    line = "|"
    labels = ""
    time_marks = "0"

    for sl in slices:
        width = sl.end_time - sl.start_time
        if sl.idle:
            line += "." * width
            labels += " " * width
        else:
            line += "=" * width
            labels += sl.pid[:width].ljust(width)
        time_marks += f"{sl.end_time:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def pid_colors(pids: Sequence[str]) -> Dict[str, str]:
    pid_to_color: Dict[str, str] = {}
    for pid in pids:
        if pid not in pid_to_color:
            pid_to_color[pid] = COLORS[len(pid_to_color) % len(COLORS)]
    return pid_to_color


def build_rich_gantt(slices: List[ScheduledSlice]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = pid_colors([sl.pid for sl in slices if not sl.idle])

    timeline = Text()
    labels = Text()
    time_marks = "0"

    for sl in slices:
        width = sl.end_time - sl.start_time
        if sl.idle:
            timeline.append("." * width, style="dim")
            labels.append(" " * width)
        else:
            timeline.append(" " * width, style=f"on {colors[sl.pid]}")
            labels.append(sl.pid[:width].ljust(width), style="bold")
        time_marks += f"{sl.end_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
