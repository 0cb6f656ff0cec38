# Copyright (c) Syntropy Systems
"""Shared HTTP client used by every probe of a run."""
from __future__ import annotations

import httpx

from raven_http.errors import ConfigurationError

DEFAULT_CUTOFF = 10.0


def new_http_client(
    cutoff: float = DEFAULT_CUTOFF,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create the client shared by all probes of a run.

    Args:
        cutoff: Seconds allowed for connecting, the TLS handshake and the
            request as a whole before it is abandoned
        transport: Optional transport override (used by tests)

    Returns:
        httpx.Client with no cap on concurrent connections

    """
    if cutoff <= 0:
        msg = f"cutoff must be greater than 0, got {cutoff}"
        raise ConfigurationError(msg)

    # A batch of N probes must really have N requests in flight.
    limits = httpx.Limits(max_connections=None, max_keepalive_connections=None)
    return httpx.Client(
        timeout=httpx.Timeout(cutoff, connect=cutoff, pool=None),
        limits=limits,
        transport=transport,
        follow_redirects=False,
    )
