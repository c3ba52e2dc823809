"""FastAPI route handlers."""

from fastapi import Request, Response

from core.cors import BODY_METHODS
from core.exceptions import UnsupportedBody
from core.protocols import RequestLogger
from core.request_types import HeaderValue, InboundRequest
from core.target import resolve_target_url
from services.relay import error_response

MAX_BODY_SIZE = 50 * 1024 * 1024  # 50MB


def _request_path(request: Request) -> str:
    """Path as sent on the wire, keeping percent-escapes intact."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.url.path


def _request_target(request: Request) -> str:
    return resolve_target_url(_request_path(request), request.url.query)


def _collect_headers(request: Request) -> dict[str, HeaderValue]:
    """Group repeated header lines into lists."""
    headers: dict[str, HeaderValue] = {}
    # Headers.items() keeps one entry per header line
    for key, value in request.headers.items():
        existing = headers.get(key)
        if existing is None:
            headers[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            headers[key] = [existing, value]
    return headers


async def read_inbound(request: Request) -> InboundRequest:
    """Normalize a Starlette request.

    Only POST, PUT and PATCH bodies are read; other methods never forward one.

    Raises:
        UnsupportedBody: the body is too large or is not UTF-8 text
    """
    body = None
    if request.method.upper() in BODY_METHODS:
        raw_body = await request.body()
        if len(raw_body) > MAX_BODY_SIZE:
            raise UnsupportedBody("Request body too large")
        try:
            body = raw_body.decode("utf-8") if raw_body else None
        except UnicodeDecodeError as e:
            raise UnsupportedBody(f"Binary request bodies are not supported: {e}") from e

    return InboundRequest(
        method=request.method,
        path=_request_path(request),
        query=request.url.query,
        headers=_collect_headers(request),
        body=body,
    )


async def handle_proxy(request: Request, logger: RequestLogger) -> Response:
    """Handle the catch-all proxy route."""
    proxy_service = request.app.state.proxy_service
    try:
        try:
            inbound = await read_inbound(request)
        except UnsupportedBody as e:
            target_url = _request_target(request)
            logger.log_error(target_url, 415, str(e))
            return error_response(
                415, "Unsupported request body", details=str(e), target_url=target_url
            )
        return await proxy_service.handle(inbound, is_disconnected=request.is_disconnected)
    except Exception as e:
        logger.log_error(_request_target(request), 500, str(e))
        return error_response(500, "Internal server error", details=str(e) or type(e).__name__)
