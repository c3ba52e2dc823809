import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config
from support import RecordingLogger, upstream_reply


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def sent_requests():
    """Requests that reached the mocked destination."""
    return []


@pytest.fixture
def destination(sent_requests):
    """Mutable destination behaviour; tests replace ``destination['handler']``."""
    state = {"handler": lambda request: upstream_reply(200, {"content-type": "text/plain"}, b"ok")}

    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return state["handler"](request)

    state["transport"] = httpx.MockTransport(handler)
    return state


@pytest.fixture
def client(destination, logger):
    app = create_app(Config(), logger, transport=destination["transport"])
    with TestClient(app) as test_client:
        yield test_client
