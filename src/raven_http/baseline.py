# Copyright (c) Syntropy Systems
"""Sequential baseline latency measurement."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from raven_http.errors import ConfigurationError
from raven_http.models.probe import Baseline, ProbeResult
from raven_http.probe import execute_probe

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from raven_http.request import RequestDescriptor

logger = logging.getLogger(__name__)


def measure_baseline(
    iterations: int,
    client: httpx.Client,
    request_factory: Callable[[], RequestDescriptor],
) -> Baseline:
    """Measure mean latency with a single request in flight at a time.

    Failed probes count toward the mean with their time-to-failure.

    Raises:
        ConfigurationError: If iterations is less than 1

    """
    if iterations < 1:
        msg = f"baseline needs at least 1 iteration, got {iterations}"
        raise ConfigurationError(msg)

    logger.debug("getting %d baseline tests", iterations)
    probes: list[ProbeResult] = []
    for index in range(iterations):
        logger.debug("executing baseline test %d", index)
        probes.append(execute_probe(client, request_factory(), step=0, index=index))

    total = sum(p.elapsed_ns for p in probes)
    baseline = Baseline(mean_ns=total // iterations, probes=probes)
    logger.debug("average baseline duration %s", baseline.mean)
    return baseline
