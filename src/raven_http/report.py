# Copyright (c) Syntropy Systems
"""Summaries and raw output formats for probe results."""
from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from typing import TYPE_CHECKING

from pydantic import Field, TypeAdapter
from rich.table import Table

from raven_http.errors import ReportError
from raven_http.models.base import JSONValue, RavenBaseModel
from raven_http.models.probe import StepResultSet, format_duration

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from raven_http.models.probe import ProbeResult
    from raven_http.models.run import StressRun

logger = logging.getLogger(__name__)

RAW_FORMATS: tuple[str, ...] = ("json", "prettyjson", "csv", "graph")
CSV_FIELDS = [
    "index",
    "step",
    "method",
    "url",
    "status",
    "elapsed",
    "nanoseconds_elapsed",
    "error",
]

_RECORDS_ADAPTER = TypeAdapter(list[dict[str, JSONValue]])


class StepSummary(RavenBaseModel):
    """Aggregate numbers for one step of a stress run."""

    step: int
    iterations: int
    requests: int
    non_success: int
    errored: int
    min_elapsed_ns: int
    max_elapsed_ns: int
    avg_elapsed_ns: int


class RunSummary(RavenBaseModel):
    """Aggregate numbers for a whole run."""

    total: int
    errored: int
    min_elapsed_ns: int
    max_elapsed_ns: int
    avg_elapsed_ns: int
    status_counts: dict[int, int] = Field(default_factory=dict)
    max_step: int = 0
    steps: list[StepSummary] = Field(default_factory=list)


def summarize(probes: Sequence[ProbeResult], iterations: int = 1) -> RunSummary:
    """Compute totals, status-code counts and a per-step breakdown.

    ``iterations`` is the number of batches each step ran; it is reported
    alongside every step.

    Status counts only cover probes that got a response; errored probes are
    counted separately.
    """
    elapsed = [p.elapsed_ns for p in probes]
    statuses = Counter(p.status_code for p in probes if p.status_code is not None)

    steps: list[StepSummary] = []
    for step in sorted({p.step for p in probes if p.step > 0}):
        results = StepResultSet.from_probes(probes, step, iterations)
        steps.append(
            StepSummary(
                step=step,
                iterations=results.iterations,
                requests=results.count,
                non_success=results.non_success_count,
                errored=results.errored_count,
                min_elapsed_ns=results.min_elapsed_ns,
                max_elapsed_ns=results.max_elapsed_ns,
                avg_elapsed_ns=results.mean_elapsed_ns,
            )
        )

    return RunSummary(
        total=len(probes),
        errored=sum(1 for p in probes if p.errored),
        min_elapsed_ns=min(elapsed, default=0),
        max_elapsed_ns=max(elapsed, default=0),
        avg_elapsed_ns=sum(elapsed) // len(elapsed) if elapsed else 0,
        status_counts=dict(sorted(statuses.items())),
        max_step=max((p.step for p in probes), default=0),
        steps=steps,
    )


def render_json(probes: Sequence[ProbeResult], *, pretty: bool = False) -> bytes:
    records = [p.to_record() for p in probes]
    return _RECORDS_ADAPTER.dump_json(records, indent=4 if pretty else None)


def render_csv(probes: Sequence[ProbeResult]) -> bytes:
    """One row per probe, fixed column order."""
    if not probes:
        return b""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for probe in probes:
        record = probe.to_record()
        writer.writerow({k: "" if record[k] is None else record[k] for k in CSV_FIELDS})
    return buffer.getvalue().encode("utf-8")


def render_graph(probes: Sequence[ProbeResult]) -> bytes:
    """Render response durations as a PNG line chart.

    Errored probes are drawn as a separate dot series.
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    ok_x: list[int] = []
    ok_y: list[float] = []
    err_x: list[int] = []
    err_y: list[float] = []
    for position, probe in enumerate(probes):
        millis = probe.elapsed_ns / 1_000_000
        if probe.errored:
            err_x.append(position)
            err_y.append(millis)
        else:
            ok_x.append(position)
            ok_y.append(millis)

    fig, ax = plt.subplots(figsize=(19.2, 10.9), dpi=100)
    try:
        ax.plot(ok_x, ok_y, color="#2E86AB", linewidth=1.5, label="Response Durations")
        ax.fill_between(ok_x, ok_y, color="#2E86AB", alpha=0.25)
        ax.scatter(err_x, err_y, s=25, color="#C73E1D", label="Errored Response Durations", zorder=3)
        ax.set_xlim(0, max(len(probes), 1))
        ax.set_xlabel("Index")
        ax.set_ylabel("Duration (ms)")
        ax.grid(True, color="#bbbbbb", linewidth=1.0)
        ax.legend(loc="upper left")
        for label in ax.get_yticklabels():
            label.set_rotation(45)

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png")
    except (OSError, ValueError) as e:
        msg = f"could not render graph: {e}"
        raise ReportError(msg) from e
    finally:
        plt.close(fig)
    return buffer.getvalue()


def render(fmt: str, probes: Sequence[ProbeResult]) -> bytes:
    """Render probes in one of the raw output formats."""
    if fmt == "json":
        return render_json(probes)
    if fmt == "prettyjson":
        return render_json(probes, pretty=True)
    if fmt == "csv":
        return render_csv(probes)
    if fmt == "graph":
        return render_graph(probes)
    msg = f"invalid format: {fmt} must be: csv,json,prettyjson,graph"
    raise ReportError(msg)


def print_summary(
    console: Console,
    probes: Sequence[ProbeResult],
    run: StressRun | None = None,
) -> None:
    """Print a human-readable summary of a run."""
    summary = summarize(probes, run.settings.iterations if run is not None else 1)

    totals = Table(show_header=False, box=None)
    totals.add_column("", style="dim")
    totals.add_column("")
    totals.add_row("Total requests", str(summary.total))
    totals.add_row("Errored requests", str(summary.errored))
    totals.add_row("Max elapsed", format_duration(summary.max_elapsed_ns))
    totals.add_row("Min elapsed", format_duration(summary.min_elapsed_ns))
    totals.add_row("Avg elapsed", format_duration(summary.avg_elapsed_ns))
    if run is not None:
        totals.add_row("Baseline", run.baseline.mean)
        totals.add_row("Max acceptable duration", run.thresholds.max_acceptable_elapsed)
        totals.add_row("Max acceptable non-200s", str(run.thresholds.max_acceptable_failures))
        totals.add_row("Max step reached", str(summary.max_step))
    console.print(totals)

    if summary.status_counts:
        console.print("\n[bold]Status Code counts[/bold]")
        codes = Table(show_header=True, header_style="bold")
        codes.add_column("Status")
        codes.add_column("Count", justify="right")
        for code, amount in summary.status_counts.items():
            style = "green" if code == 200 else "red"  # noqa: PLR2004
            codes.add_row(f"[{style}]HTTP {code}[/{style}]", str(amount))
        console.print(codes)

    if run is not None and summary.steps:
        console.print("\n[bold]Step Breakdown[/bold]")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Step", style="dim")
        table.add_column("Iterations", justify="right")
        table.add_column("Requests", justify="right")
        table.add_column("Non-200", justify="right")
        table.add_column("Errored", justify="right")
        table.add_column("Max elapsed", justify="right")
        table.add_column("Min elapsed", justify="right")
        table.add_column("Avg elapsed", justify="right")
        for step in summary.steps:
            marker = " [red](halt)[/red]" if step.step == run.halted_at else ""
            table.add_row(
                f"{step.step}{marker}",
                str(step.iterations),
                str(step.requests),
                str(step.non_success),
                str(step.errored),
                format_duration(step.max_elapsed_ns),
                format_duration(step.min_elapsed_ns),
                format_duration(step.avg_elapsed_ns),
            )
        console.print(table)
