# Copyright (c) Syntropy Systems
"""Configuration management for raven."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast

import yaml
from pydantic import Field, ValidationError

from raven_http.errors import ConfigurationError
from raven_http.models.base import RavenBaseModel

StopMode = Literal["duration", "status"]
STOP_MODES: tuple[str, ...] = ("duration", "status")


@dataclass
class RavenConfig:
    """Defaults for raven, optionally overridden by a config.yaml."""

    # Seconds before connect, handshake or the whole request is abandoned
    cutoff: float = 10.0

    # Headers sent with every request
    headers: dict[str, str] = field(default_factory=dict)

    # Stress defaults
    threshold: float = 10.0
    start: int = 1
    iterations: int = 10
    delay_ms: int = 500


CONFIG_DIRNAME = ".raven"
CONFIG_FILENAME = "config.yaml"


def find_raven_dir(start_path: Path | None = None) -> Path | None:
    """Return the closest .raven directory at or above start_path (default: cwd)."""
    origin = (start_path or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_DIRNAME
        if candidate.is_dir():
            return candidate
    return None


def get_global_config_dir() -> Path:
    """Per-user config directory, used when no project .raven exists."""
    return Path.home() / CONFIG_DIRNAME


def _config_file(raven_dir: Path | None) -> Path | None:
    if raven_dir is None:
        raven_dir = find_raven_dir() or get_global_config_dir()
    path = raven_dir / CONFIG_FILENAME
    return path if path.is_file() else None


def _number(value: object) -> float | None:
    # bool is an int subclass; "yes" in YAML must not become 1
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def load_config(raven_dir: Path | None = None) -> RavenConfig:
    """Read config.yaml from raven_dir, the nearest .raven, or ~/.raven.

    Keys with the wrong type keep their default; a missing file gives all
    defaults.
    """
    config = RavenConfig()
    path = _config_file(raven_dir)
    if path is None:
        return config

    with path.open() as f:
        data = cast("dict[str, object]", yaml.safe_load(f) or {})

    cutoff = _number(data.get("cutoff"))
    if cutoff is not None:
        config.cutoff = cutoff
    threshold = _number(data.get("threshold"))
    if threshold is not None:
        config.threshold = threshold
    delay_ms = _number(data.get("delay_ms"))
    if delay_ms is not None:
        config.delay_ms = int(delay_ms)

    # Counts must be whole numbers; 2.5 iterations is a typo, not a value
    for key in ("start", "iterations"):
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            setattr(config, key, value)

    headers = data.get("headers")
    if isinstance(headers, dict):
        config.headers = {str(k): str(v) for k, v in headers.items()}

    return config


class StressSettings(RavenBaseModel):
    """Immutable parameters of one stress run."""

    stop_mode: StopMode
    start: int = Field(default=1, ge=1)
    threshold: float = Field(default=10.0, ge=-100.0, allow_inf_nan=False)
    iterations: int = Field(default=10, ge=1)
    # Seconds slept after every iteration's batch
    delay: float = Field(default=0.5, ge=0)

    @classmethod
    def create(
        cls,
        stop_mode: str,
        *,
        start: int = 1,
        threshold: float = 10.0,
        iterations: int = 10,
        delay: float = 0.5,
    ) -> StressSettings:
        """Validate and build settings, raising ConfigurationError on bad input."""
        try:
            return cls(
                stop_mode=stop_mode,  # pyright: ignore[reportArgumentType]
                start=start,
                threshold=threshold,
                iterations=iterations,
                delay=delay,
            )
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            msg = f"invalid stress settings: {problems}"
            raise ConfigurationError(msg) from e
