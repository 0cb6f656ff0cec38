# Copyright (c) Syntropy Systems
"""Main CLI entry point for raven."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from raven_http.cli.common import GlobalOptions, fail
from raven_http.cli.do_cmd import do
from raven_http.cli.stress_cmd import stress
from raven_http.cli.version_cmd import version
from raven_http.config import load_config
from raven_http.errors import ConfigurationError
from raven_http.report import RAW_FORMATS
from raven_http.request import parse_headers

app = typer.Typer(
    name="raven",
    help="A command-line HTTP stress test application.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose mode",
    ),
    header: Optional[list[str]] = typer.Option(
        None,
        "--header", "-H",
        help="HTTP header as Key:Value (repeatable)",
    ),
    auth: Optional[str] = typer.Option(
        None,
        "--auth", "--authentication", "-a",
        help="Provide a username:password",
    ),
    raw: Optional[str] = typer.Option(
        None,
        "--raw", "-r",
        help="Output raw data in specified format (json, prettyjson, csv, graph)",
    ),
    cutoff: Optional[float] = typer.Option(
        None,
        "--cutoff", "-c",
        help="Max seconds before hanging requests are terminated [default: 10]",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write raw output to this file instead of stdout",
    ),
) -> None:
    """A command-line HTTP stress test application."""
    if verbose and raw:
        raise fail("cannot use 'verbose' and 'raw' mode at same time")
    if raw is not None and raw not in RAW_FORMATS:
        raise fail(f"invalid format: {raw} must be: csv,json,prettyjson,graph")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO/DEBUG; keep the output about raven
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    config = load_config()
    try:
        headers = {**config.headers, **parse_headers(header or [])}
    except ConfigurationError as e:
        raise fail(str(e)) from e

    ctx.obj = GlobalOptions(
        verbose=verbose,
        headers=headers,
        auth=auth,
        raw=raw,
        cutoff=cutoff if cutoff is not None else config.cutoff,
        output=output,
        config=config,
    )


# Register commands
_ = app.command()(version)
_ = app.command(name="do")(do)
_ = app.command()(stress)


if __name__ == "__main__":
    app()
