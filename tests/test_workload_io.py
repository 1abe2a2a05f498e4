import json
from pathlib import Path

import pytest

from scheduler_sim.errors import InvalidInput
from scheduler_sim.models import Process
from scheduler_sim.workload_io import load_workload


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","arrival":0,"burst":3,"priority":1},'
                 '{"pid":"B","arrival_time":1,"burst_time":2}]')
    workload = load_workload(p)
    assert isinstance(workload.processes[0], Process)
    assert workload.processes[1].priority == 0
    assert workload.processes[1].arrival == 1
    assert workload.algorithm is None
    assert workload.options.quantum == 4


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival,burst,priority\nA,0,3,1\nB,1,2,\n")
    workload = load_workload(p)
    assert workload.processes[0].pid == "A"
    assert workload.processes[0].burst == 3
    assert workload.processes[1].priority == 0


def test_load_config_object(tmp_path: Path):
    p = tmp_path / "run.json"
    p.write_text(json.dumps({
        "config": {
            "algorithm": "MLQ",
            "opts": {"mlqFgQuantum": 3, "mlqBgQuantum": None},
            "processes": [{"pid": "A", "arrival": 0, "burst": 2, "priority": 0}],
        },
        "trace": [],
    }))
    workload = load_workload(p)
    assert workload.algorithm == "MLQ"
    assert workload.options.mlq_fg_quantum == 3
    assert workload.options.mlq_bg_quantum is None
    assert [proc.pid for proc in workload.processes] == ["A"]


def test_unsupported_suffix(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("A 0 3")
    with pytest.raises(InvalidInput):
        load_workload(p)


def test_invalid_entry(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","arrival":0}]')
    with pytest.raises(InvalidInput):
        load_workload(p)


def test_unknown_option(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('{"opts":{"slice":2},"processes":[{"pid":"A","arrival":0,"burst":1}]}')
    with pytest.raises(InvalidInput):
        load_workload(p)
