"""Custom exception hierarchy for the HTTPS relay."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class InvalidTargetURL(ProxyError):
    """Raised when the derived destination does not parse as an http(s) URL.

    Attributes:
        target_url: The offending destination string, echoed back to the caller
    """

    def __init__(self, target_url: str, reason: str | None = None) -> None:
        super().__init__(reason or f"Invalid target URL: {target_url!r}")
        self.target_url = target_url


class UnsupportedBody(ProxyError):
    """Request body cannot be forwarded without mis-encoding it."""


class UpstreamError(ProxyError):
    """Raised when the outbound request to the destination fails.

    Attributes:
        message: Error message from the transport layer
        target_url: The destination that was attempted
    """

    def __init__(self, message: str, target_url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.target_url = target_url


class UpstreamTimeoutError(UpstreamError):
    """Raised when the destination does not answer in time."""


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the destination."""


class ClientDisconnected(ProxyError):
    """The caller went away before the destination answered."""
