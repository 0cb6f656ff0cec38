# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for raven."""

from __future__ import annotations

from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict, JsonValue
from typing_extensions import TypeAlias

JSONPrimitive: TypeAlias = Union[str, int, float, bool, None]
JSONValue: TypeAlias = JsonValue
JSONObject: TypeAlias = dict[str, JSONValue]


class RavenBaseModel(BaseModel):
    """Base model with shared config for raven records.

    Records are immutable once built; a finished probe or run is never edited.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )
