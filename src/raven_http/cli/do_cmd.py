# Copyright (c) Syntropy Systems
"""raven do command."""
from __future__ import annotations

import typer

from raven_http.cli.common import emit_results, fail, get_options, open_client
from raven_http.errors import ConfigurationError
from raven_http.request import make_request_factory
from raven_http.stress import perform_do


def do(
    ctx: typer.Context,
    amount: int = typer.Argument(..., help="Amount of requests to make"),
    method: str = typer.Argument(..., help="HTTP request method"),
    url: str = typer.Argument(..., help="Target URL address"),
) -> None:
    """Immediately send requests.

    All AMOUNT requests are sent at the same time.

    Example:
        raven do 20 GET http://localhost:8080/health

    """
    options = get_options(ctx)

    try:
        if amount < 0:
            msg = f"amount must not be negative, got {amount}"
            raise ConfigurationError(msg)
        factory = make_request_factory(method, url, options.headers, options.auth)
        client = open_client(options)
    except ConfigurationError as e:
        raise fail(str(e)) from e

    with client:
        probes = perform_do(amount, client, factory)

    emit_results(options, probes)
