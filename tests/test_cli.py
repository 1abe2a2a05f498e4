import json
from pathlib import Path

from scheduler_sim.cli import main


def _workload(tmp_path: Path) -> Path:
    p = tmp_path / "w.json"
    p.write_text(json.dumps([
        {"pid": "P1", "arrival": 0, "burst": 5, "priority": 0},
        {"pid": "P2", "arrival": 1, "burst": 3, "priority": 1},
        {"pid": "P3", "arrival": 2, "burst": 8, "priority": 0},
        {"pid": "P4", "arrival": 3, "burst": 6, "priority": 2},
    ]))
    return p


def test_run(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    assert main(["run", "-a", "rr", "-w", str(_workload(tmp_path)), "-q", "2", "--trace"]) == 0
    out = capsys.readouterr().out
    assert "Round Robin" in out
    assert "Per-process metrics" in out
    assert "t=2 | CPU=P2 | event=exec(P2) | ready=[P3,P1]" in out


def test_run_unknown_algorithm(tmp_path: Path, capsys):
    assert main(["run", "-a", "lottery", "-w", str(_workload(tmp_path))]) == 2
    assert "Unknown algorithm" in capsys.readouterr().out


def test_run_missing_workload(tmp_path: Path, capsys):
    assert main(["run", "-a", "fcfs", "-w", str(tmp_path / "nope.json")]) == 2
    assert "Workload not found" in capsys.readouterr().out


def test_compare(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    assert main(["compare", "-w", str(_workload(tmp_path)), "-a", "fcfs", "mlq"]) == 0
    out = capsys.readouterr().out
    assert "FCFS" in out
    assert "Multilevel Queue" in out


def test_export(tmp_path: Path):
    out = tmp_path / "out.json"
    svg = tmp_path / "out.svg"
    code = main(["export", "-a", "sjf", "-w", str(_workload(tmp_path)), "-o", str(out), "--svg", str(svg)])
    assert code == 0
    doc = json.loads(out.read_text())
    assert doc["config"]["algorithm"] == "SJF"
    assert len(doc["trace"]) == 22
    assert svg.exists()
