# Copyright (c) Syntropy Systems
"""Options and helpers shared by the raven commands."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from raven_http.config import RavenConfig
from raven_http.errors import RavenError
from raven_http.report import print_summary, render
from raven_http.transport import new_http_client

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import httpx

    from raven_http.models.probe import ProbeResult
    from raven_http.models.run import StressRun

console = Console()


@dataclass(frozen=True)
class GlobalOptions:
    """Options given before the command name, merged with config.yaml."""

    verbose: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    auth: str | None = None
    raw: str | None = None
    cutoff: float = 10.0
    output: Path | None = None
    config: RavenConfig = field(default_factory=RavenConfig)


def get_options(ctx: typer.Context) -> GlobalOptions:
    """Return the options stored by the app callback."""
    options = ctx.obj
    if isinstance(options, GlobalOptions):
        return options
    return GlobalOptions()


def fail(message: str) -> typer.Exit:
    """Print an error and build the exit to raise."""
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def open_client(options: GlobalOptions) -> httpx.Client:
    return new_http_client(options.cutoff)


def emit_results(
    options: GlobalOptions,
    probes: Sequence[ProbeResult],
    run: StressRun | None = None,
) -> None:
    """Print the summary, or the raw output if --raw was given."""
    if not options.raw:
        print_summary(console, probes, run)
        return

    try:
        data = render(options.raw, probes)
        if options.output is not None:
            _ = options.output.write_bytes(data)
        elif options.raw == "graph":
            typer.echo(data, nl=False)
        else:
            typer.echo(data.decode("utf-8"))
    except (RavenError, OSError) as e:
        raise fail(str(e)) from e
