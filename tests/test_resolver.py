"""Tests for URL resolution."""

import pytest

from wsconn.errors import ParseError
from wsconn.resolver import resolve
from wsconn.types import ConnectionParams


class TestDefaultPorts:
    def test_wss_defaults_to_443_with_tls(self):
        params = resolve("wss://example.com/feed")
        assert params == ConnectionParams(host="example.com", port=443, path="/feed", tls=True)

    def test_ws_defaults_to_80_without_tls(self):
        params = resolve("ws://example.com/feed")
        assert params.port == 80
        assert params.tls is False

    @pytest.mark.parametrize(
        "url, port",
        [
            ("ws://example.com:9001/feed", 9001),
            ("wss://example.com:9002/feed", 9002),
            ("ws://example.com:443/", 443),
            ("wss://example.com:80/", 80),
        ],
    )
    def test_explicit_port_wins(self, url, port):
        assert resolve(url).port == port


class TestPath:
    def test_empty_path_becomes_root(self):
        assert resolve("wss://example.com").path == "/"

    def test_query_is_kept(self):
        assert resolve("ws://example.com/feed?symbols=a,b").path == "/feed?symbols=a,b"

    def test_ipv6_host(self):
        params = resolve("ws://[::1]:9000/x")
        assert params.host == "::1"
        assert params.uri == "ws://[::1]:9000/x"

    def test_uri_round_trip(self):
        assert resolve("wss://example.com/feed").uri == "wss://example.com:443/feed"


class TestErrors:
    @pytest.mark.parametrize(
        "url",
        [
            "ws:///feed",
            "wss://:8080/feed",
            "ws://",
        ],
    )
    def test_missing_host(self, url):
        with pytest.raises(ParseError):
            resolve(url)

    def test_unsupported_scheme(self):
        with pytest.raises(ParseError, match="Invalid WebSocket URL"):
            resolve("http://example.com/feed")

    def test_not_a_url(self):
        with pytest.raises(ParseError):
            resolve("example.com/feed")

    @pytest.mark.parametrize(
        "url",
        ["ws://example.com:99999/", "ws://example.com:abc/", "ws://example.com:0/"],
    )
    def test_invalid_port(self, url):
        with pytest.raises(ParseError):
            resolve(url)

    @pytest.mark.parametrize("url", ["ws://user:secret@example.com/x", "wss://user@example.com/"])
    def test_credentials_rejected(self, url):
        with pytest.raises(ParseError):
            resolve(url)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            resolve("ftp://example.com")
