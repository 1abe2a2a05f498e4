from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS, simulate
from .errors import InvalidInput, SchedulerError
from .export import save_gantt_svg, write_export
from .gantt import build_rich_gantt, build_timeline
from .models import SimulationOptions, SimulationResult
from .playback import Player, render_snapshot
from .workload_io import Workload, load_workload

logger = logging.getLogger(__name__)


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round-robin (default: 4, or the workload file's value).",
    )
    parser.add_argument(
        "--fg-quantum",
        type=int,
        default=None,
        help="Foreground quantum for the multilevel queue (default: 2).",
    )
    parser.add_argument(
        "--bg-quantum",
        type=int,
        default=None,
        help="Background quantum for the multilevel queue (default: none, background runs FCFS).",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort a run that needs more time units than this (default: last arrival plus total burst).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="Time-unit CPU scheduling simulator (FCFS, SJF, Priority, RR, MLQ).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log scheduling decisions.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        default=None,
        help="Algorithm to use (fcfs, sjf, priority, rr, mlq). Required unless the workload names one.",
    )
    _add_option_flags(run_parser)
    run_parser.add_argument(
        "--trace",
        action="store_true",
        help="Print the per-time-unit trace.",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Play the run back one time unit at a time in the terminal.",
    )
    run_parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help="Playback speed multiplier when --step is used (default: 1.0).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    _add_option_flags(compare_parser)
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: fcfs sjf priority rr mlq).",
    )

    export_parser = subparsers.add_parser(
        "export",
        help="Run an algorithm and write its config, trace and stats as JSON.",
    )
    export_parser.add_argument(
        "--algorithm",
        "-a",
        default=None,
        help="Algorithm to use. Required unless the workload names one.",
    )
    _add_option_flags(export_parser)
    export_parser.add_argument(
        "--output",
        "-o",
        default="schedule_trace.json",
        help="JSON file to write (default: schedule_trace.json).",
    )
    export_parser.add_argument(
        "--svg",
        default=None,
        help="Also save the Gantt chart as an SVG image at this path.",
    )

    return parser


def _load(args: argparse.Namespace) -> Workload:
    path = Path(args.workload)
    if not path.exists():
        raise InvalidInput(f"Workload not found: {path}")
    return load_workload(path)


def _options(args: argparse.Namespace, base: SimulationOptions) -> SimulationOptions:
    overrides = {
        "quantum": args.quantum,
        "mlq_fg_quantum": args.fg_quantum,
        "mlq_bg_quantum": args.bg_quantum,
        "max_steps": args.max_steps,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **overrides)


def _algorithm(args: argparse.Namespace, workload: Workload) -> str:
    algorithm = args.algorithm or workload.algorithm
    if algorithm is None:
        raise InvalidInput("No algorithm given (use --algorithm)")
    if algorithm.lower() != "rr" and args.quantum is not None:
        logger.warning("--quantum only applies to rr; ignored for %s", algorithm)
    if algorithm.lower() != "mlq" and (args.fg_quantum is not None or args.bg_quantum is not None):
        logger.warning("--fg-quantum/--bg-quantum only apply to mlq; ignored for %s", algorithm)
    return algorithm


def _print_result(result: SimulationResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.tag == "RR":
        console.print(f"[bold]Quantum:[/bold] {result.options.quantum}")
    elif result.tag == "MLQ":
        bg = result.options.mlq_bg_quantum
        console.print(
            f"[bold]Foreground quantum:[/bold] {result.options.mlq_fg_quantum}  "
            f"[bold]Background quantum:[/bold] {'FCFS' if bg is None else bg}"
        )

    console.print()

    panel, time_marks = build_rich_gantt(build_timeline(result.trace))
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    stats = result.stats
    for p in stats.processes:
        proc_table.add_row(
            p.pid,
            str(p.arrival),
            str(p.burst),
            str(p.priority),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{stats.avg_waiting:.2f}")
    sys_table.add_row("Avg turnaround", f"{stats.avg_turnaround:.2f}")
    sys_table.add_row("Avg response", f"{stats.avg_response:.2f}")
    sys_table.add_row("Makespan", str(stats.makespan))
    sys_table.add_row("Throughput (proc/time)", f"{stats.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{stats.cpu_utilization*100:.1f}%")
    sys_table.add_row("Idle time", str(stats.idle_time))
    sys_table.add_row("Context switches", str(stats.context_switches))

    console.print(sys_table)


def _animate_result(result: SimulationResult, speed: float, console: Console) -> None:
    """
    Play the recorded snapshots back in place, one frame per time unit.
    """
    player = Player(result.history_snapshots, speed=speed)
    if not len(player):
        console.print("[red]No execution to animate.[/red]")
        return

    console.print(f"[bold]Simulating {result.algorithm}[/bold] ({len(player)} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    with Live(render_snapshot(player.current), console=console, auto_refresh=False) as live:
        player.play(lambda _index, snap: live.update(render_snapshot(snap), refresh=True))


def _run_compare(args: argparse.Namespace, console: Console) -> None:
    workload = _load(args)
    options = _options(args, workload.options)

    summary_table = Table(title=f"Algorithm comparison: {args.workload}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Makespan", justify="right")
    summary_table.add_column("Throughput", justify="right")

    for alg in args.algorithms:
        result = simulate(alg, workload.processes, options)
        if result.tag == "RR":
            quantum = str(options.quantum)
        elif result.tag == "MLQ":
            quantum = f"{options.mlq_fg_quantum}/{options.mlq_bg_quantum or '-'}"
        else:
            quantum = ""
        stats = result.stats
        summary_table.add_row(
            result.algorithm,
            quantum,
            f"{stats.avg_waiting:.2f}",
            f"{stats.avg_turnaround:.2f}",
            f"{stats.avg_response:.2f}",
            str(stats.makespan),
            f"{stats.throughput:.3f}",
        )

    console.print(summary_table)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    console = Console()

    try:
        if args.command == "run":
            workload = _load(args)
            algorithm = _algorithm(args, workload)
            result = simulate(algorithm, workload.processes, _options(args, workload.options))
            if args.step:
                try:
                    _animate_result(result, speed=args.speed, console=console)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            if args.trace:
                for event in result.trace:
                    console.print(event.format_line(), highlight=False, markup=False)
                console.print()
            _print_result(result, console)
            return 0

        if args.command == "compare":
            _run_compare(args, console)
            return 0

        if args.command == "export":
            workload = _load(args)
            algorithm = _algorithm(args, workload)
            result = simulate(algorithm, workload.processes, _options(args, workload.options))
            path = write_export(args.output, result, workload.processes)
            console.print(f"Trace written to [green]{path}[/green]")
            if args.svg:
                svg_path = save_gantt_svg(args.svg, result)
                console.print(f"Gantt chart written to [green]{svg_path}[/green]")
            return 0
    except SchedulerError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
