# Copyright (c) Syntropy Systems
"""Pydantic models for individual probes and the per-step views built from them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import JSONValue, RavenBaseModel

if TYPE_CHECKING:
    from collections.abc import Iterable

SUCCESS_STATUS = 200

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_HOUR = 60 * _NS_PER_MIN


def _trim(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def format_duration(nanoseconds: int) -> str:
    """Format a nanosecond duration as a short human-readable string.

    Examples: ``0s``, ``850ns``, ``12.5µs``, ``120.3ms``, ``1.5s``, ``1m30s``.
    """
    if nanoseconds == 0:
        return "0s"

    sign = "-" if nanoseconds < 0 else ""
    ns = abs(nanoseconds)

    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_trim(ns, _NS_PER_US)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_trim(ns, _NS_PER_MS)}ms"

    hours, rest = divmod(ns, _NS_PER_HOUR)
    minutes, rest = divmod(rest, _NS_PER_MIN)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return f"{text}{_trim(rest, _NS_PER_S)}s"


class ProbeResult(RavenBaseModel):
    """Outcome of a single HTTP attempt.

    Exactly one of ``status_code`` and ``error`` is set.
    """

    index: int = Field(ge=0)
    step: int = Field(default=0, ge=0)
    method: str
    url: str
    started_at: datetime
    elapsed_ns: int = Field(ge=0)
    status_code: int | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> Self:
        if (self.status_code is None) == (self.error is None):
            msg = "probe must have exactly one of status_code or error"
            raise ValueError(msg)
        return self

    @property
    def errored(self) -> bool:
        """True if the request failed before a response arrived."""
        return self.error is not None

    @property
    def is_success(self) -> bool:
        """True for a 200 response."""
        return self.status_code == SUCCESS_STATUS

    @property
    def elapsed(self) -> str:
        """Elapsed time, human readable."""
        return format_duration(self.elapsed_ns)

    @property
    def elapsed_seconds(self) -> float:
        return self.elapsed_ns / _NS_PER_S

    def to_record(self) -> dict[str, JSONValue]:
        """Flat projection used by the JSON and CSV reporters."""
        return {
            "index": self.index,
            "step": self.step,
            "method": self.method,
            "url": self.url,
            "status": self.status_code,
            "elapsed": self.elapsed,
            "nanoseconds_elapsed": self.elapsed_ns,
            "error": self.error,
        }


class Baseline(RavenBaseModel):
    """Reference latency measured with one request in flight at a time."""

    mean_ns: int = Field(ge=0)
    probes: list[ProbeResult] = Field(default_factory=list)

    @property
    def iterations(self) -> int:
        return len(self.probes)

    @property
    def mean(self) -> str:
        return format_duration(self.mean_ns)


@dataclass(frozen=True)
class StepResultSet:
    """All probes run at one concurrency level, pooled across its iterations."""

    step: int
    iterations: int
    probes: tuple[ProbeResult, ...]

    @classmethod
    def from_probes(
        cls,
        probes: Iterable[ProbeResult],
        step: int,
        iterations: int,
    ) -> StepResultSet:
        """Build the view for ``step`` out of a run's probe collection."""
        return cls(
            step=step,
            iterations=iterations,
            probes=tuple(p for p in probes if p.step == step),
        )

    @property
    def count(self) -> int:
        return len(self.probes)

    @property
    def non_success_count(self) -> int:
        """Probes that errored or got anything other than a 200."""
        return sum(1 for p in self.probes if not p.is_success)

    @property
    def errored_count(self) -> int:
        return sum(1 for p in self.probes if p.errored)

    def over_threshold_count(self, max_elapsed_ns: int) -> int:
        """Count probes slower than ``max_elapsed_ns``."""
        return sum(1 for p in self.probes if p.elapsed_ns > max_elapsed_ns)

    @property
    def total_elapsed_ns(self) -> int:
        return sum(p.elapsed_ns for p in self.probes)

    @property
    def min_elapsed_ns(self) -> int:
        return min((p.elapsed_ns for p in self.probes), default=0)

    @property
    def max_elapsed_ns(self) -> int:
        return max((p.elapsed_ns for p in self.probes), default=0)

    @property
    def mean_elapsed_ns(self) -> int:
        if not self.probes:
            return 0
        return self.total_elapsed_ns // len(self.probes)
