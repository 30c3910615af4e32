"""Tests for the TCP and URL probes."""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterator
from unittest.mock import patch

import httpx
import pytest

from healthagg.probes.tcp import TCPChecker, split_addr
from healthagg.probes.url import URLChecker


# ── TCP probe ────────────────────────────────────────────────────────────────


@pytest.fixture
def listening_port() -> Iterator[int]:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    try:
        yield server.getsockname()[1]
    finally:
        server.close()


@pytest.fixture
def closed_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestSplitAddr:
    def test_host_port(self) -> None:
        assert split_addr("db.internal:5432") == ("db.internal", 5432)

    def test_ipv6(self) -> None:
        assert split_addr("[::1]:8080") == ("::1", 8080)

    @pytest.mark.parametrize("addr", ["localhost", ":80", "localhost:http"])
    def test_invalid(self, addr: str) -> None:
        with pytest.raises(ValueError):
            split_addr(addr)


class TestTCPChecker:
    def test_open_port_is_up(self, listening_port: int) -> None:
        addr = f"127.0.0.1:{listening_port}"
        health = TCPChecker(addr, timeout=2.0).check()
        assert health.is_up()
        assert health.get_info("addr") == addr

    def test_closed_port_is_down(self, closed_port: int) -> None:
        addr = f"127.0.0.1:{closed_port}"
        health = TCPChecker(addr, timeout=2.0).check()
        assert health.is_down()
        assert health.get_info("addr") == addr
        assert health.get_info("error")

    def test_missing_port_is_down(self) -> None:
        health = TCPChecker("localhost").check()
        assert health.is_down()
        assert "ValueError" in health.get_info("error")


# ── URL probe ────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], object]:
    """Route URLChecker's httpx.Client through a MockTransport handler."""
    real_client = httpx.Client

    def _install(handler: Callable[[httpx.Request], httpx.Response]):
        def factory(*args, **kwargs) -> httpx.Client:
            return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

        return patch("healthagg.probes.url.httpx.Client", side_effect=factory)

    return _install


class TestURLChecker:
    def test_expected_status_is_up(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(200, text="ok")):
            health = URLChecker("http://service.local/health").check()
        assert health.is_up()
        assert health.get_info("code") == 200

    def test_unexpected_status_is_down(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(503)):
            health = URLChecker("http://service.local/health").check()
        assert health.is_down()
        assert health.get_info("code") == 503
        assert health.get_info("expected_code") == 200

    def test_custom_expected_status(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(204)):
            health = URLChecker("http://service.local/ping", expect_status_code=204).check()
        assert health.is_up()

    def test_zero_expected_status_means_200(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(200)):
            health = URLChecker("http://service.local/", expect_status_code=0).check()
        assert health.is_up()

    def test_method_is_used(self, mock_http) -> None:
        seen: list[str] = []

        def handler(req: httpx.Request) -> httpx.Response:
            seen.append(req.method)
            return httpx.Response(200)

        with mock_http(handler):
            URLChecker("http://service.local/", method="HEAD").check()
        assert seen == ["HEAD"]

    def test_body_contains(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(200, text='{"db": "ok"}')):
            health = URLChecker("http://service.local/", expect_body_contains='"ok"').check()
        assert health.is_up()
        assert health.get_info("body") is None

    def test_body_missing_substring_is_down(self, mock_http) -> None:
        with mock_http(lambda req: httpx.Response(200, text="maintenance")):
            health = URLChecker("http://service.local/", expect_body_contains="ok").check()
        assert health.is_down()
        assert health.get_info("code") == 200
        assert health.get_info("body") == "does not contain: ok"

    def test_connection_error_is_down(self, mock_http) -> None:
        def handler(req: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=req)

        with mock_http(handler):
            health = URLChecker("http://service.local/").check()
        assert health.is_down()
        assert health.get_info("code") == 400
        assert "connection refused" in health.get_info("error")

    def test_invalid_url_is_down(self) -> None:
        health = URLChecker("not-a-url").check()
        assert health.is_down()
        assert health.get_info("code") == 400
        assert health.get_info("error")
