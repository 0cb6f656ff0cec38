# Copyright (c) Syntropy Systems
"""raven version command."""

import typer

from raven_http import __version__


def version() -> None:
    """Print running version of raven."""
    typer.echo(__version__)
