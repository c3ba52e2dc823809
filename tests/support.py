"""Shared test doubles."""

import httpx


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self):
        self.forwards: list[tuple[str, str, dict[str, str]]] = []
        self.responses: list[tuple[str, str, int]] = []
        self.preflights: list[str] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forward(self, method, target_url, headers):
        self.forwards.append((method, target_url, dict(headers)))

    def log_response(self, method, target_url, status, duration_ms):
        self.responses.append((method, target_url, status))

    def log_preflight(self, path):
        self.preflights.append(path)

    def log_error(self, target, status, message):
        self.errors.append((target, status, message))


def upstream_reply(status: int = 200, headers=None, body: bytes = b"") -> httpx.Response:
    """Destination response whose bytes are readable with aiter_raw()."""
    return httpx.Response(status, headers=headers, stream=httpx.ByteStream(body))
