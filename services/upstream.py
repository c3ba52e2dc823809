"""Outbound HTTPS forwarding to the destination."""

import asyncio
import contextlib
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from core.config import UpstreamSettings
from core.cors import BODY_METHODS
from core.exceptions import (
    ClientDisconnected,
    UnsupportedBody,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.request_types import UpstreamResponse
from core.target import parse_target_url

T = TypeVar("T")


def encode_body(method: str, body: Any) -> str | None:
    """Encode a request body for methods that carry one.

    Strings are forwarded verbatim and dicts/lists are serialized to JSON.
    Anything else is refused rather than guessed at.
    """
    if method.upper() not in BODY_METHODS or body is None or body == "":
        return None
    if isinstance(body, str):
        return body
    if isinstance(body, (dict, list)):
        try:
            return json.dumps(body, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise UnsupportedBody(f"Body is not JSON serializable: {e}") from e
    raise UnsupportedBody(f"Unsupported body type: {type(body).__name__}")


class UpstreamClient:
    """Send one filtered request to its destination and read the raw response."""

    def __init__(self, client: httpx.AsyncClient, settings: UpstreamSettings) -> None:
        self._client = client
        self._settings = settings

    async def forward(
        self,
        method: str,
        target_url: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> UpstreamResponse:
        """Forward a request.

        Raises:
            InvalidTargetURL: target_url is not an absolute http(s) URL; nothing is sent
            UnsupportedBody: body cannot be encoded as text
            UpstreamError: the transport failed (DNS, TLS, refused, timeout)
        """
        url = parse_target_url(target_url)
        content = encode_body(method, body)
        # httpx frames the body itself
        wire_headers = {
            k: _wire_value(v) for k, v in headers.items() if k.lower() != "content-length"
        }
        # The raw body is relayed, so only ask for encodings the caller asked for
        if not any(k.lower() == "accept-encoding" for k in wire_headers):
            wire_headers["accept-encoding"] = b"identity"

        request = self._client.build_request(
            method.upper(),
            url,
            headers=wire_headers,
            content=content,
            timeout=self._settings.timeout,
        )
        try:
            response = await self._client.send(
                request,
                stream=True,
                follow_redirects=self._settings.follow_redirects,
            )
            try:
                raw = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(_error_message(e), target_url) from e
        except httpx.ConnectError as e:
            raise UpstreamConnectionError(_error_message(e), target_url) from e
        except httpx.RequestError as e:
            raise UpstreamError(_error_message(e), target_url) from e

        return UpstreamResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=raw,
        )


async def run_until_disconnected(
    call: Awaitable[T],
    is_disconnected: Callable[[], Awaitable[bool]],
    poll_interval: float,
) -> T:
    """Await call, cancelling it if the caller disconnects first.

    Raises:
        ClientDisconnected: is_disconnected reported True before call finished
    """
    forward_task = asyncio.ensure_future(call)
    watcher = asyncio.ensure_future(_wait_for_disconnect(is_disconnected, poll_interval))
    try:
        await asyncio.wait({forward_task, watcher}, return_when=asyncio.FIRST_COMPLETED)
        if forward_task.done():
            return forward_task.result()

        forward_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await forward_task
        watcher.result()
        raise ClientDisconnected("Client disconnected before the destination answered")
    finally:
        for task in (forward_task, watcher):
            if not task.done():
                task.cancel()


async def _wait_for_disconnect(
    is_disconnected: Callable[[], Awaitable[bool]],
    poll_interval: float,
) -> None:
    while not await is_disconnected():
        await asyncio.sleep(poll_interval)


def _wire_value(value: str) -> bytes:
    """Header bytes as received; inbound values are latin-1 decoded."""
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__
