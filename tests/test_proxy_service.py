import asyncio
import json

import httpx
import pytest

from core.config import UpstreamSettings
from core.headers import HeaderFilter
from core.request_types import InboundRequest
from services.proxy_service import ProxyService
from services.upstream import UpstreamClient
from support import RecordingLogger, upstream_reply


def _service(handler, logger, **settings) -> ProxyService:
    upstream_settings = UpstreamSettings(**settings)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ProxyService(
        upstream=UpstreamClient(http_client, upstream_settings),
        header_filter=HeaderFilter(),
        logger=logger,
        settings=upstream_settings,
    )


@pytest.mark.asyncio
async def test_structured_body_is_sent_as_json():
    sent = []

    def handler(request):
        sent.append(request)
        return upstream_reply(200, {"content-type": "application/json"}, b"{}")

    service = _service(handler, RecordingLogger())
    inbound = InboundRequest(
        method="PATCH",
        path="/api.example.com/items/1",
        headers={"content-type": "application/json"},
        body={"name": "renamed"},
    )

    response = await service.handle(inbound)

    assert response.status_code == 200
    assert json.loads(sent[0].content) == {"name": "renamed"}


@pytest.mark.asyncio
async def test_unserializable_body_is_refused():
    logger = RecordingLogger()
    service = _service(lambda request: upstream_reply(200), logger)
    inbound = InboundRequest(method="POST", path="/api.example.com/items", body={"when": object()})

    response = await service.handle(inbound)

    assert response.status_code == 415
    assert json.loads(response.body)["targetUrl"] == "https://api.example.com/items"
    assert logger.errors[0][1] == 415


@pytest.mark.asyncio
async def test_disconnect_cancels_outbound_call():
    async def slow(request):
        await asyncio.sleep(10)
        return upstream_reply(200)

    async def gone():
        return True

    logger = RecordingLogger()
    service = _service(slow, logger, disconnect_poll_interval=0.01)

    response = await service.handle(
        InboundRequest(method="GET", path="/slow.example.com/"),
        is_disconnected=gone,
    )

    assert response.status_code == 499
    assert logger.responses == []
    assert logger.errors[0][1] == 499


@pytest.mark.asyncio
async def test_disconnect_ignored_when_disabled():
    async def gone():
        return True

    service = _service(
        lambda request: upstream_reply(200, body=b"done"),
        RecordingLogger(),
        cancel_on_disconnect=False,
    )

    response = await service.handle(
        InboundRequest(method="GET", path="/api.example.com/"),
        is_disconnected=gone,
    )

    assert response.status_code == 200
    assert response.body == b"done"


@pytest.mark.asyncio
async def test_forward_is_logged_with_filtered_headers():
    logger = RecordingLogger()
    service = _service(lambda request: upstream_reply(200), logger)

    await service.handle(
        InboundRequest(
            method="GET",
            path="/proxy/api.example.com/v1",
            query="page=2",
            headers={"accept": "*/*", "cf-ray": "8a1b"},
        )
    )

    assert logger.forwards == [("GET", "https://api.example.com/v1?page=2", {"accept": "*/*"})]


@pytest.mark.asyncio
async def test_latin1_cookie_is_forwarded():
    sent = []

    def handler(request):
        sent.append(request)
        return upstream_reply(200, body=b"ok")

    service = _service(handler, RecordingLogger())

    response = await service.handle(
        InboundRequest(method="GET", path="/api.example.com/", headers={"cookie": "name=caf\xe9"})
    )

    assert response.status_code == 200
    assert (b"cookie", b"name=caf\xe9") in sent[0].headers.raw
