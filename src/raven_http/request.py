# Copyright (c) Syntropy Systems
"""Request descriptors and the factory that stamps them out per probe."""
from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from pydantic import Field

from raven_http.errors import ConfigurationError
from raven_http.models.base import RavenBaseModel

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping


class RequestDescriptor(RavenBaseModel):
    """Everything needed to send one request."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    auth: tuple[str, str] | None = None


def parse_basic_auth(value: str) -> tuple[str, str]:
    """Split ``username:password`` into its two parts."""
    parts = value.split(":")
    if len(parts) != 2:  # noqa: PLR2004
        msg = "basic auth must be in the form username:password"
        raise ConfigurationError(msg)
    return parts[0], parts[1]


def parse_headers(values: Iterable[str]) -> dict[str, str]:
    """Parse ``Key:Value`` or ``Key=Value`` header arguments."""
    headers: dict[str, str] = {}
    for raw in values:
        sep = ":" if ":" in raw else "="
        key, found, val = raw.partition(sep)
        key = key.strip()
        if not found or not key:
            msg = f"header must be in the form Key:Value, got {raw!r}"
            raise ConfigurationError(msg)
        headers[key] = val.strip()
    return headers


def make_request_factory(
    method: str,
    url: str,
    headers: Mapping[str, str] | None = None,
    auth: str | None = None,
) -> Callable[[], RequestDescriptor]:
    """Validate request parameters once and return a descriptor factory.

    The returned callable builds a fresh descriptor on every call.
    """
    method = method.strip().upper()
    if not method:
        msg = "request method must not be empty"
        raise ConfigurationError(msg)

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        msg = f"invalid URL {url!r}: {e}"
        raise ConfigurationError(msg) from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        msg = f"URL must be an absolute http(s) address, got {url!r}"
        raise ConfigurationError(msg)

    credentials = parse_basic_auth(auth) if auth else None
    header_items = dict(headers or {})
    try:
        _ = httpx.Headers(header_items)
    except (UnicodeError, ValueError, TypeError) as e:
        msg = f"invalid header: {e}"
        raise ConfigurationError(msg) from e

    def factory() -> RequestDescriptor:
        return RequestDescriptor(
            method=method,
            url=url,
            headers=dict(header_items),
            auth=credentials,
        )

    return factory


def build_request(client: httpx.Client, descriptor: RequestDescriptor) -> httpx.Request:
    """Turn a descriptor into an httpx request bound to ``client``.

    Credentials are not part of the request; pass ``descriptor.auth`` to send.
    """
    return client.build_request(
        descriptor.method,
        descriptor.url,
        headers=descriptor.headers,
    )
