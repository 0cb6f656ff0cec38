# Copyright (c) Syntropy Systems
"""Ramping stress engine and fixed-size batch runs."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Literal

from raven_http.baseline import measure_baseline
from raven_http.batch import run_batch
from raven_http.models.probe import StepResultSet
from raven_http.models.run import StressRun, StressThresholds

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from raven_http.config import StopMode, StressSettings
    from raven_http.models.probe import ProbeResult
    from raven_http.request import RequestDescriptor

logger = logging.getLogger(__name__)

RampState = Literal["idle", "baselining", "stepping", "stopped"]


def should_stop(
    step_results: StepResultSet,
    thresholds: StressThresholds,
    stop_mode: StopMode,
) -> bool:
    """Decide whether the ramp halts after ``step_results``.

    Both criteria use a strict comparison; hitting the bound exactly does
    not stop the run.
    """
    if stop_mode == "duration":
        failed = step_results.over_threshold_count(thresholds.max_acceptable_elapsed_ns)
        allowed = thresholds.max_failed_elapsed(step_results.step)
        if failed > allowed:
            logger.debug("max duration exceeded by %d (allowed %d)", failed, allowed)
            return True
        return False

    non_success = step_results.non_success_count
    if non_success > thresholds.max_acceptable_failures:
        logger.debug(
            "max non-200s exceeded by %d (allowed %d)",
            non_success,
            thresholds.max_acceptable_failures,
        )
        return True
    return False


class RampController:
    """Raise concurrency one step at a time until responses degrade.

    The run goes baselining -> stepping(start) -> stepping(start + 1) ... and
    stops only when a step trips the configured stop criterion. There is no
    step ceiling; a threshold that is never exceeded keeps the run going.
    """

    settings: StressSettings
    state: RampState

    def __init__(
        self,
        settings: StressSettings,
        client: httpx.Client,
        request_factory: Callable[[], RequestDescriptor],
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the controller.

        Args:
            settings: Validated run parameters
            client: HTTP client shared by every probe of the run
            request_factory: Builds the request for each probe
            sleep: Used for the delay after each iteration

        """
        self.settings = settings
        self._client = client
        self._request_factory = request_factory
        self._sleep = sleep
        self.state = "idle"

    def run(self) -> StressRun:
        """Measure the baseline, then ramp until the stop criterion trips."""
        settings = self.settings

        self.state = "baselining"
        baseline = measure_baseline(settings.iterations, self._client, self._request_factory)
        thresholds = StressThresholds.from_baseline(baseline.mean_ns, settings)
        logger.debug("max acceptable duration %s", thresholds.max_acceptable_elapsed)
        logger.debug("max acceptable non-200s %d", thresholds.max_acceptable_failures)

        self.state = "stepping"
        completed: list[ProbeResult] = []
        step = settings.start
        while True:
            logger.debug("starting step %d", step)
            logger.debug(
                "current max failed duration tests %d",
                thresholds.max_failed_elapsed(step),
            )
            step_probes = self.run_step(step)
            completed.extend(step_probes)

            step_results = StepResultSet(
                step=step,
                iterations=settings.iterations,
                probes=tuple(step_probes),
            )
            if should_stop(step_results, thresholds, settings.stop_mode):
                break
            step += 1

        self.state = "stopped"
        logger.debug("stopped at step %d after %d requests", step, len(completed))
        return StressRun(
            settings=settings,
            baseline=baseline,
            thresholds=thresholds,
            probes=completed,
            halted_at=step,
        )

    def run_step(self, step: int) -> list[ProbeResult]:
        """Run every iteration of one step, one batch of ``step`` probes each."""
        probes: list[ProbeResult] = []
        for iteration in range(self.settings.iterations):
            logger.debug("starting iteration %d of step %d", iteration, step)
            probes.extend(
                run_batch(
                    step,
                    self._client,
                    self._request_factory,
                    step=step,
                    index_offset=iteration * step,
                )
            )
            self._sleep(self.settings.delay)
        return probes


def perform_do(
    amount: int,
    client: httpx.Client,
    request_factory: Callable[[], RequestDescriptor],
) -> list[ProbeResult]:
    """Send ``amount`` requests at once, without ramping."""
    logger.debug("generating %d requests", amount)
    return run_batch(amount, client, request_factory, step=0)
