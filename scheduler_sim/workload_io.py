from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .algorithms import normalize_processes
from .errors import InvalidInput
from .models import Process, SimulationOptions

logger = logging.getLogger(__name__)


@dataclass
class Workload:
    """
    Processes loaded from a file, plus the algorithm and options when the
    file carries them (e.g. the config block of an exported run).
    """

    processes: List[Process]
    algorithm: Optional[str] = None
    options: SimulationOptions = field(default_factory=SimulationOptions)


def load_workload(path: str | Path) -> Workload:
    """
    Load a workload from a JSON or CSV file.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        workload = _load_json(path)
    elif suffix == ".csv":
        workload = _load_csv(path)
    else:
        raise InvalidInput(f"Unsupported workload format: {suffix} (use .json or .csv)")

    logger.info("Loaded %d processes from %s", len(workload.processes), path)
    return workload


def _load_json(path: Path) -> Workload:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInput(f"{path} is not valid JSON: {exc}") from exc

    if isinstance(raw, list):
        return Workload(processes=normalize_processes(raw))

    if isinstance(raw, Mapping):
        # An exported run nests everything under "config".
        config = raw.get("config", raw)
        return _workload_from_mapping(config)

    raise InvalidInput("JSON workload must be a list of processes or an object with a 'processes' list")


def _workload_from_mapping(config: Mapping[str, Any]) -> Workload:
    entries = config.get("processes", config.get("procs"))
    if not isinstance(entries, list):
        raise InvalidInput("JSON workload object needs a 'processes' list")

    opts = config.get("opts", config.get("options"))
    if opts is not None and not isinstance(opts, Mapping):
        raise InvalidInput("'opts' must be an object")

    algorithm = config.get("algorithm")
    return Workload(
        processes=normalize_processes(entries),
        algorithm=None if algorithm is None else str(algorithm),
        options=SimulationOptions.from_mapping(opts),
    )


def _load_csv(path: Path) -> Workload:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        rows = [row for row in reader]
    return Workload(processes=normalize_processes(rows))
