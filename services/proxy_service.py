"""Request pipeline: resolve, filter, forward, relay."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Response

from core.config import UpstreamSettings
from core.exceptions import (
    ClientDisconnected,
    InvalidTargetURL,
    UnsupportedBody,
    UpstreamError,
)
from core.headers import HeaderFilter
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from core.target import parse_target_url, resolve_target_url
from services.relay import disconnected_response, error_response, preflight_response, relay_response
from services.upstream import UpstreamClient, run_until_disconnected


class ProxyService:
    """Run one inbound request through the forwarding pipeline."""

    def __init__(
        self,
        upstream: UpstreamClient,
        header_filter: HeaderFilter,
        logger: RequestLogger,
        settings: UpstreamSettings,
    ) -> None:
        self._upstream = upstream
        self._headers = header_filter
        self._logger = logger
        self._settings = settings

    async def handle(
        self,
        inbound: InboundRequest,
        *,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> Response:
        """Produce the caller-facing response for an inbound request."""
        if inbound.method.upper() == "OPTIONS":
            self._logger.log_preflight(inbound.path)
            return preflight_response()

        target_url = resolve_target_url(inbound.path, inbound.query)
        try:
            url = parse_target_url(target_url)
        except InvalidTargetURL as e:
            self._logger.log_error(e.target_url, 400, str(e))
            return error_response(400, "Invalid URL format", target_url=e.target_url)

        headers = self._headers.build(inbound.headers, url.host)
        self._logger.log_forward(inbound.method, target_url, headers)

        call = self._upstream.forward(inbound.method, target_url, headers, inbound.body)
        started = time.perf_counter()
        try:
            if is_disconnected is not None and self._settings.cancel_on_disconnect:
                upstream_response = await run_until_disconnected(
                    call, is_disconnected, self._settings.disconnect_poll_interval
                )
            else:
                upstream_response = await call
        except UnsupportedBody as e:
            self._logger.log_error(target_url, 415, str(e))
            return error_response(
                415, "Unsupported request body", details=str(e), target_url=target_url
            )
        except UpstreamError as e:
            self._logger.log_error(target_url, 500, e.message)
            return error_response(
                500, "Proxy request failed", details=e.message, target_url=target_url
            )
        except ClientDisconnected as e:
            self._logger.log_error(target_url, 499, str(e))
            return disconnected_response()

        duration_ms = (time.perf_counter() - started) * 1000
        self._logger.log_response(
            inbound.method, target_url, upstream_response.status_code, duration_ms
        )
        return relay_response(upstream_response)
