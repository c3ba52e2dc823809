"""Build caller-facing responses, always carrying the CORS header set."""

from typing import Any

from fastapi import Response
from fastapi.responses import JSONResponse, PlainTextResponse

from core.cors import CORS_HEADERS, MULTI_VALUE_RESPONSE_HEADERS, RELAYED_RESPONSE_HEADERS
from core.request_types import UpstreamResponse

CLIENT_CLOSED_REQUEST = 499


def relay_response(upstream: UpstreamResponse) -> Response:
    """Relay a destination response: same status and bytes, selected headers."""
    response = Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=dict(CORS_HEADERS),
    )
    for name in RELAYED_RESPONSE_HEADERS:
        values = [v for v in upstream.headers.get_list(name) if v]
        if not values:
            continue
        if name in MULTI_VALUE_RESPONSE_HEADERS:
            for value in values:
                response.headers.append(name, value)
        else:
            response.headers[name] = upstream.headers[name]
    return response


def error_response(
    status_code: int,
    error: str,
    *,
    details: str | None = None,
    target_url: str | None = None,
) -> JSONResponse:
    """JSON error body with CORS headers attached."""
    payload: dict[str, Any] = {"error": error}
    if details is not None:
        payload["details"] = details
    if target_url is not None:
        payload["targetUrl"] = target_url
    return JSONResponse(content=payload, status_code=status_code, headers=dict(CORS_HEADERS))


def preflight_response() -> PlainTextResponse:
    """Answer a CORS preflight without touching the destination."""
    return PlainTextResponse("ok", status_code=200, headers=dict(CORS_HEADERS))


def disconnected_response() -> Response:
    """Placeholder response for a caller that is no longer listening."""
    return Response(status_code=CLIENT_CLOSED_REQUEST, headers=dict(CORS_HEADERS))
