from __future__ import annotations

import asyncio
import hashlib

import httpx
import pytest

from url_hasher.config import HasherSettings
from url_hasher.engine import Scope
from url_hasher.engine.fetcher import Fetcher, HashResult, build_client


def _fetch(handler, url: str, scope: Scope | None = None, **settings) -> HashResult:
    config = HasherSettings(parallel=1, **settings)

    async def _run() -> HashResult:
        async with build_client(config, httpx.MockTransport(handler)) as client:
            return await Fetcher(client, config).fetch(scope or Scope(), url)

    return asyncio.run(_run())


def test_fetcher_hashes_body() -> None:
    result = _fetch(lambda request: httpx.Response(200, content=b"hello"), "http://example.test/")
    assert result.ok
    assert result.digest == hashlib.md5(b"hello").digest()
    assert result.hexdigest == hashlib.md5(b"hello").hexdigest()


def test_fetcher_sends_bodyless_get() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["body"] = request.read()
        return httpx.Response(200)

    result = _fetch(handler, "http://example.test/empty")
    assert captured == {"method": "GET", "body": b""}
    assert result.digest == hashlib.md5(b"").digest()


def test_fetcher_ignores_status_code() -> None:
    result = _fetch(lambda request: httpx.Response(503, content=b"down"), "http://example.test/")
    assert result.digest == hashlib.md5(b"down").digest()


def test_fetcher_follows_redirects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "/new"})
        return httpx.Response(200, content=b"moved")

    result = _fetch(handler, "http://example.test/old")
    assert result.digest == hashlib.md5(b"moved").digest()


def test_fetcher_uses_configured_algorithm() -> None:
    result = _fetch(
        lambda request: httpx.Response(200, content=b"abc"), "http://example.test/", algorithm="sha1"
    )
    assert result.digest == hashlib.sha1(b"abc").digest()


def test_fetcher_reports_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = _fetch(handler, "http://example.test/")
    assert result.digest is None
    assert result.error is not None
    assert result.error.kind == "transport"
    assert result.error.url == "http://example.test/"


def test_fetcher_reports_request_construction_error() -> None:
    result = _fetch(lambda request: httpx.Response(200), "http://example.test/\x01")
    assert result.digest is None
    assert result.error is not None and result.error.kind == "request-construction"


def test_fetcher_reports_body_stream_error() -> None:
    class BrokenStream(httpx.AsyncByteStream):
        async def __aiter__(self):
            yield b"partial"
            raise httpx.ReadError("connection reset")

    result = _fetch(
        lambda request: httpx.Response(200, stream=BrokenStream()), "http://example.test/"
    )
    assert result.digest is None
    assert result.error is not None and result.error.kind == "body-stream"


@pytest.mark.parametrize(
    ("trigger", "kind"),
    [("cancel", "cancelled"), ("expire", "deadline")],
)
def test_fetcher_maps_stopped_scope(trigger: str, kind: str) -> None:
    scope = Scope()
    getattr(scope, trigger)()
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    result = _fetch(handler, "http://example.test/", scope=scope)
    assert calls == []
    assert result.digest is None
    assert result.error is not None and result.error.kind == kind


def test_fetcher_maps_unsupported_protocol_to_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.UnsupportedProtocol("no transport for ftp", request=request)

    result = _fetch(handler, "ftp://example.test/file")
    assert result.digest is None
    assert result.error is not None and result.error.kind == "transport"


def test_fetcher_contains_unexpected_exception() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise ValueError("bad state in transport")

    result = _fetch(handler, "http://example.test/")
    assert result.digest is None
    assert result.error is not None and result.error.kind == "transport"
    assert "bad state in transport" in str(result.error)
