"""Destination URL derivation from the inbound request path."""

import httpx

from core.exceptions import InvalidTargetURL

ROUTE_PREFIX = "proxy/"
DEFAULT_SCHEME = "https://"
ALLOWED_SCHEMES = ("http", "https")


def resolve_target_url(path: str, query: str = "") -> str:
    """Derive the absolute destination URL from an inbound path and query.

    ``/proxy/api.example.com/v1?x=1`` and ``/api.example.com/v1?x=1`` both
    resolve to ``https://api.example.com/v1?x=1``. No validation happens here.

    Args:
        path: Inbound request path, including the leading slash.
        query: Raw query string without the leading ``?``.

    Returns:
        Destination URL string, not yet parsed.
    """
    target = path[1:] if path.startswith("/") else path
    if target.startswith(ROUTE_PREFIX):
        target = target[len(ROUTE_PREFIX):]

    if not target.startswith(("http://", "https://")):
        target = DEFAULT_SCHEME + target

    if query:
        target += f"?{query}"

    return target


def parse_target_url(target_url: str) -> httpx.URL:
    """Parse a resolved destination, rejecting anything that is not http(s)."""
    try:
        url = httpx.URL(target_url)
    except httpx.InvalidURL as e:
        raise InvalidTargetURL(target_url, str(e)) from e

    if url.scheme not in ALLOWED_SCHEMES or not url.host:
        raise InvalidTargetURL(target_url)
    return url
