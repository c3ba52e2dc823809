"""CORS and response relay header tables."""

from types import MappingProxyType

CORS_HEADERS = MappingProxyType({
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, "
        "x-request-session-id, x-request-id, cookie, set-cookie"
    ),
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE, PATCH",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Max-Age": "86400",
})

# Destination response headers copied back to the caller
RELAYED_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "content-encoding",
    "set-cookie",
    "x-set-cookie",
    "location",
)

# Relayed as one header line per upstream value
MULTI_VALUE_RESPONSE_HEADERS = frozenset({"set-cookie", "x-set-cookie"})

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
