# Copyright (c) Syntropy Systems
"""Pydantic models for stress-run thresholds and results."""

from __future__ import annotations

from pydantic import Field

from raven_http.config import StressSettings

from .base import RavenBaseModel
from .probe import Baseline, ProbeResult, StepResultSet, format_duration


class StressThresholds(RavenBaseModel):
    """Stop-criteria limits derived from the baseline.

    ``max_acceptable_failures`` is fixed once the baseline is known, while the
    duration-mode bound from ``max_failed_elapsed`` grows with the step.
    """

    threshold: float
    iterations: int = Field(ge=1)
    baseline_ns: int = Field(ge=0)
    max_acceptable_elapsed_ns: int = Field(ge=0)
    max_acceptable_failures: int

    @classmethod
    def from_baseline(cls, baseline_ns: int, settings: StressSettings) -> StressThresholds:
        factor = 1.0 + settings.threshold / 100.0
        return cls(
            threshold=settings.threshold,
            iterations=settings.iterations,
            baseline_ns=baseline_ns,
            max_acceptable_elapsed_ns=int(factor * float(baseline_ns)),
            max_acceptable_failures=int(factor * float(settings.iterations)),
        )

    def max_failed_elapsed(self, step: int) -> int:
        """Number of over-limit probes tolerated at ``step`` in duration mode."""
        return int(((100.0 - self.threshold) / 100.0) * float(self.iterations * step))

    @property
    def max_acceptable_elapsed(self) -> str:
        return format_duration(self.max_acceptable_elapsed_ns)


class StressRun(RavenBaseModel):
    """Everything one stress run produced, in dispatch order."""

    settings: StressSettings
    baseline: Baseline
    thresholds: StressThresholds
    probes: list[ProbeResult] = Field(default_factory=list)
    halted_at: int

    @property
    def steps(self) -> list[int]:
        return sorted({p.step for p in self.probes})

    def step_results(self) -> list[StepResultSet]:
        """Per-step views, in step order."""
        return [
            StepResultSet.from_probes(self.probes, step, self.settings.iterations)
            for step in self.steps
        ]
