import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

# Ensure project root is on sys.path for module imports
sys.path.append(str(Path(__file__).resolve().parents[1]))

from api_types import Format
from translation_client import (
    MalformedResponseError,
    RemoteError,
    TransportError,
    TranslationClient,
    pool_limits,
)

ENDPOINT = "http://lt.test/translate"


def make_client(handler, **kwargs) -> TranslationClient:
    return TranslationClient(ENDPOINT, transport=httpx.MockTransport(handler), **kwargs)


def run_translate(client: TranslationClient, text: str, source: str = "auto", target: str = "fr"):
    async def go():
        async with client:
            return await client.translate(text, source, target)

    return asyncio.run(go())


def test_posts_query_and_returns_translation():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"translatedText": "Bonjour"})

    result = run_translate(make_client(handler), "Hello")

    assert result.translated_text == "Bonjour"
    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == ENDPOINT
    assert json.loads(seen[0].content) == {"q": "Hello", "source": "auto", "target": "fr", "alternatives": 0}


def test_api_key_and_format_are_sent():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"translatedText": "Hallo"})

    run_translate(make_client(handler, api_key="secret", fmt=Format.TEXT), "Hello", "en", "de")

    assert bodies[0]["api_key"] == "secret"
    assert bodies[0]["format"] == "text"


def test_empty_text_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected for an empty line")

    result = run_translate(make_client(handler), "")
    assert result.translated_text == ""


def test_error_body_raises_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "fr is not supported"})

    with pytest.raises(RemoteError) as excinfo:
        run_translate(make_client(handler), "Hello")
    assert excinfo.value.message == "fr is not supported"


def test_connection_error_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        run_translate(make_client(handler), "Hello")
    assert isinstance(excinfo.value.cause, httpx.ConnectError)
    assert excinfo.value.__cause__ is excinfo.value.cause


def test_timeout_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError):
        run_translate(make_client(handler), "Hello")


def test_non_json_body_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    with pytest.raises(TransportError) as excinfo:
        run_translate(make_client(handler), "Hello")
    assert not isinstance(excinfo.value, MalformedResponseError)


def test_unexpected_json_raises_malformed_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": "Bonjour"})

    with pytest.raises(MalformedResponseError):
        run_translate(make_client(handler), "Hello")


def test_http_client_is_reused_and_closed():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"translatedText": "x"})

    client = make_client(handler)

    async def go():
        await client.translate("a", "en", "fr")
        first = client._get_http_client()
        await client.translate("b", "en", "fr")
        assert client._get_http_client() is first
        await client.aclose()
        assert first.is_closed

    asyncio.run(go())
    assert len(calls) == 2


def test_invalid_endpoint_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected for an invalid URL")

    client = TranslationClient("http://[::1", transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError) as excinfo:
        run_translate(client, "Hello")
    assert isinstance(excinfo.value.cause, httpx.InvalidURL)


def test_pool_grows_with_large_chunks():
    assert pool_limits(5).max_connections == 100
    assert pool_limits(500).max_connections == 500
    assert pool_limits(3).max_keepalive_connections == 3
    assert TranslationClient(max_connections=250).max_connections == 250
