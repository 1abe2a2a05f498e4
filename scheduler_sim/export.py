from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable

from rich.console import Console

from .algorithms import ProcessLike, normalize_processes
from .gantt import build_rich_gantt, build_timeline
from .models import SimulationResult

logger = logging.getLogger(__name__)


def build_export_document(result: SimulationResult, processes: Iterable[ProcessLike]) -> Dict[str, Any]:
    """
    Plain-data document describing a run: its configuration, trace and stats.
    The config block can be loaded back with load_workload to replay the run.
    """
    return {
        "config": {
            "algorithm": result.tag,
            "opts": result.options.to_dict(),
            "processes": [p.to_dict() for p in normalize_processes(processes)],
        },
        "trace": [event.to_dict() for event in result.trace],
        "stats": result.stats.to_dict() if result.stats is not None else None,
    }


def write_export(path: str | Path, result: SimulationResult, processes: Iterable[ProcessLike]) -> Path:
    path = Path(path)
    document = build_export_document(result, processes)
    with path.open("w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
        f.write("\n")
    logger.info("Wrote trace export to %s", path)
    return path


def save_gantt_svg(path: str | Path, result: SimulationResult) -> Path:
    """
    Render the run's Gantt chart with rich and save it as an SVG image.
    """
    path = Path(path)
    console = Console(record=True, file=io.StringIO(), width=max(80, result.final_time + 8))
    panel, time_marks = build_rich_gantt(build_timeline(result.trace))
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    console.print(panel)
    if time_marks:
        console.print(time_marks)
    console.save_svg(str(path), title=f"{result.algorithm} schedule")
    logger.info("Wrote Gantt image to %s", path)
    return path
