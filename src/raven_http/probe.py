# Copyright (c) Syntropy Systems
"""Single request execution with timing."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import httpx

from raven_http.models.probe import ProbeResult
from raven_http.request import build_request

if TYPE_CHECKING:
    from raven_http.request import RequestDescriptor

logger = logging.getLogger(__name__)


def describe_error(exc: BaseException) -> str:
    """Short failure cause; some httpx timeouts carry an empty message."""
    text = str(exc)
    name = type(exc).__name__
    return f"{name}: {text}" if text else name


def execute_probe(
    client: httpx.Client,
    descriptor: RequestDescriptor,
    *,
    step: int = 0,
    index: int = 0,
) -> ProbeResult:
    """Send one request and record how it went.

    Transport failures (timeouts, refused connections, DNS errors) are
    returned in ``error`` together with the time it took to fail; this
    function does not raise for them.
    """
    started_at = datetime.now(timezone.utc)
    start = time.perf_counter_ns()
    status_code: int | None = None
    error: str | None = None

    try:
        request = build_request(client, descriptor)
        response = client.send(request, auth=descriptor.auth)
        response.close()
        status_code = response.status_code
    except (
        httpx.HTTPError,
        httpx.InvalidURL,
        httpx.StreamError,
        OSError,
        ValueError,
    ) as e:
        error = describe_error(e)
        logger.debug("request error: %s %s: %s", descriptor.method, descriptor.url, error)

    elapsed_ns = time.perf_counter_ns() - start

    return ProbeResult(
        index=index,
        step=step,
        method=descriptor.method,
        url=descriptor.url,
        started_at=started_at,
        elapsed_ns=elapsed_ns,
        status_code=status_code,
        error=error,
    )
