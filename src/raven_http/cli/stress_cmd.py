# Copyright (c) Syntropy Systems
"""raven stress command."""
from __future__ import annotations

from typing import Optional

import typer

from raven_http.cli.common import console, emit_results, fail, get_options, open_client
from raven_http.config import StressSettings
from raven_http.errors import ConfigurationError
from raven_http.request import make_request_factory
from raven_http.stress import RampController


def stress(
    ctx: typer.Context,
    stop_type: str = typer.Argument(
        ...,
        metavar="TYPE",
        help='Stress method type ("duration" or "status")',
    ),
    method: str = typer.Argument(..., help="HTTP request method"),
    url: str = typer.Argument(..., help="Target URL address"),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold", "-t",
        help="Percent threshold for valid responses [default: 10.0]",
    ),
    start: Optional[int] = typer.Option(
        None,
        "--start", "-s",
        help="Starting amount of concurrent requests [default: 1]",
    ),
    iterations: Optional[int] = typer.Option(
        None,
        "--iterations", "-i",
        help="Amount of iterations to perform for each step [default: 10]",
    ),
    delay: Optional[int] = typer.Option(
        None,
        "--delay", "-d",
        help="Millisecond delay between iterations [default: 500]",
    ),
) -> None:
    """Ramp up requests until responses slow down or fail.

    A baseline is measured first with one request at a time. Concurrency then
    grows by one per step until the step exceeds the threshold.

    Examples:
        raven stress duration GET http://localhost:8080/ --threshold 25
        raven stress status POST http://localhost:8080/orders -i 5 -d 0

    """
    options = get_options(ctx)
    defaults = options.config

    try:
        settings = StressSettings.create(
            stop_type,
            start=start if start is not None else defaults.start,
            threshold=threshold if threshold is not None else defaults.threshold,
            iterations=iterations if iterations is not None else defaults.iterations,
            delay=(delay if delay is not None else defaults.delay_ms) / 1000.0,
        )
        factory = make_request_factory(method, url, options.headers, options.auth)
        client = open_client(options)
    except ConfigurationError as e:
        raise fail(str(e)) from e

    if not options.raw:
        console.print(
            f"[dim]Stressing {method.upper()} {url} ({settings.stop_mode} mode, "
            f"threshold {settings.threshold}%)...[/dim]"
        )

    with client:
        run = RampController(settings, client, factory).run()

    emit_results(options, run.probes, run)
