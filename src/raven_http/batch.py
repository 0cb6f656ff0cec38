# Copyright (c) Syntropy Systems
"""Concurrent fan-out of probes with a join barrier."""
from __future__ import annotations

import logging
from threading import Thread
from typing import TYPE_CHECKING

from raven_http.errors import ConfigurationError
from raven_http.probe import execute_probe

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from raven_http.models.probe import ProbeResult
    from raven_http.request import RequestDescriptor

logger = logging.getLogger(__name__)


def run_batch(
    count: int,
    client: httpx.Client,
    request_factory: Callable[[], RequestDescriptor],
    *,
    step: int = 0,
    index_offset: int = 0,
) -> list[ProbeResult]:
    """Run ``count`` probes at once and wait for all of them.

    Every probe gets its own thread. The result at position ``i`` is the
    probe with index ``index_offset + i`` whatever order they finished in.

    Args:
        count: Number of probes to run concurrently
        client: Shared HTTP client
        request_factory: Called once per probe for its request
        step: Step number stamped on every probe (0 outside a ramp)
        index_offset: Index of the first probe in the batch

    Returns:
        Exactly ``count`` results, ordered by index

    """
    if count < 0:
        msg = f"batch size must not be negative, got {count}"
        raise ConfigurationError(msg)

    descriptors = [request_factory() for _ in range(count)]
    results: list[ProbeResult | None] = [None] * count

    def run_one(position: int) -> None:
        results[position] = execute_probe(
            client,
            descriptors[position],
            step=step,
            index=index_offset + position,
        )

    logger.debug("dispatching %d requests (step %d)", count, step)
    threads: list[Thread] = []
    for position in range(count):
        t = Thread(target=run_one, args=(position,), daemon=True)
        threads.append(t)
        t.start()

    # Barrier: no partial batches are ever returned
    for t in threads:
        t.join()

    completed = [r for r in results if r is not None]
    if len(completed) != count:
        msg = f"{count - len(completed)} probe(s) in the batch produced no result"
        raise RuntimeError(msg)
    return completed
