import pytest

from core.exceptions import InvalidTargetURL
from core.target import parse_target_url, resolve_target_url


@pytest.mark.parametrize(
    ("path", "query", "expected"),
    [
        ("/foo.com/bar", "x=1", "https://foo.com/bar?x=1"),
        ("/proxy/foo.com/bar", "", "https://foo.com/bar"),
        ("/https://api.example.com/v1", "", "https://api.example.com/v1"),
        ("/http://api.example.com/v1", "a=b&c=d", "http://api.example.com/v1?a=b&c=d"),
        ("/proxy/https://api.example.com/v1", "", "https://api.example.com/v1"),
        ("/", "", "https://"),
    ],
)
def test_resolve_target_url(path, query, expected):
    assert resolve_target_url(path, query) == expected


def test_resolve_strips_prefix_only_once():
    assert resolve_target_url("/proxy/proxy/foo.com") == "https://proxy/foo.com"


def test_resolve_is_idempotent():
    first = resolve_target_url("/api.example.com/items", "page=2")
    second = resolve_target_url("/api.example.com/items", "page=2")
    assert first == second == "https://api.example.com/items?page=2"


def test_parse_returns_hostname():
    url = parse_target_url("https://auth.augmentcode.com/login?next=/")
    assert url.host == "auth.augmentcode.com"
    assert url.scheme == "https"


@pytest.mark.parametrize("target", ["https://", "https://foo.com:notaport/", "ftp://foo.com/file"])
def test_parse_rejects_unusable_targets(target):
    with pytest.raises(InvalidTargetURL) as exc_info:
        parse_target_url(target)
    assert exc_info.value.target_url == target
