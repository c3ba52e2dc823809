"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any

import httpx

HeaderValue = str | list[str]


@dataclass(frozen=True)
class InboundRequest:
    """Normalized request as received from the caller."""

    method: str
    path: str
    query: str = ""
    headers: dict[str, HeaderValue] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class UpstreamResponse:
    """Response read back from the destination."""

    status_code: int
    headers: httpx.Headers
    content: bytes
