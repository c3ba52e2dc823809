"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy
from core.config import Config
from core.cors import SUPPORTED_METHODS
from core.headers import HeaderFilter
from core.protocols import RequestLogger
from services.proxy_service import ProxyService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = httpx.AsyncClient(
            timeout=config.upstream.timeout,
            follow_redirects=config.upstream.follow_redirects,
            transport=transport,
        )
        app.state.proxy_service = ProxyService(
            upstream=UpstreamClient(client, config.upstream),
            header_filter=HeaderFilter(),
            logger=logger,
            settings=config.upstream,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="HTTPS Relay", version="0.1.0", lifespan=lifespan)

    @app.api_route("/{path:path}", methods=list(SUPPORTED_METHODS))
    async def proxy(request: Request):
        return await handle_proxy(request, logger)

    return app
