"""
Unit tests for the AI model client.

The upstream endpoint is replaced by httpx.MockTransport; no real HTTP calls
are made.
"""
import asyncio
import json

import httpx
import pytest

from grocery_search.services.ai.llm_client import LLMClient, extract_completion_text
from grocery_search.services.ai.schema import AIFailure, AIFailureCategory, AIFailureKind

ENDPOINT = "https://ai.example.test/v1beta/models/test:generateContent"


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_client(handler, api_key: str = "secret-key", timeout_seconds: float = 2.0) -> LLMClient:
    return LLMClient(
        api_endpoint=ENDPOINT,
        api_key=api_key,
        temperature=0.3,
        timeout_seconds=timeout_seconds,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_enhance_returns_completion_text_and_sends_wire_contract():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["key"] = request.url.params.get("key")
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply('{"correctedQuery": "milk"}'))

    client = make_client(handler)
    result = await client.enhance("find milk")

    assert result == '{"correctedQuery": "milk"}'
    assert seen["method"] == "POST"
    assert seen["key"] == "secret-key"
    assert seen["path"] == "/v1beta/models/test:generateContent"
    assert seen["body"] == {
        "contents": [{"parts": [{"text": "find milk"}]}],
        "generationConfig": {"temperature": 0.3},
    }


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_network_call():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=gemini_reply("{}"))

    client = make_client(handler, api_key="  ")
    result = await client.enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.MISSING_API_KEY
    assert result.category is AIFailureCategory.UPSTREAM_UNAVAILABLE
    assert calls == []


@pytest.mark.asyncio
async def test_transport_timeout_is_a_timeout_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    result = await make_client(handler).enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.TIMEOUT


@pytest.mark.asyncio
async def test_wall_clock_timeout_bounds_slow_upstream():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=gemini_reply("{}"))

    client = make_client(handler, timeout_seconds=0.05)
    result = await asyncio.wait_for(client.enhance("milk"), timeout=2)

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.TIMEOUT


@pytest.mark.asyncio
async def test_connection_error_is_a_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_client(handler).enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_non_2xx_status_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="overloaded")

    result = await make_client(handler).enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.HTTP_STATUS
    assert result.raw_excerpt == "overloaded"


@pytest.mark.asyncio
async def test_non_json_body_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    result = await make_client(handler).enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.INVALID_JSON


@pytest.mark.asyncio
async def test_missing_nested_text_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    result = await make_client(handler).enhance("milk")

    assert isinstance(result, AIFailure)
    assert result.kind is AIFailureKind.UNEXPECTED_SHAPE


@pytest.mark.asyncio
async def test_each_failure_logs_exactly_once(monkeypatch):
    from grocery_search.services.ai import llm_client as client_module

    events = []

    class RecordingLogger:
        def info(self, event, **kw):
            pass

        def debug(self, event, **kw):
            pass

        def warning(self, event, **kw):
            events.append((event, kw["failure_kind"]))

        def error(self, event, **kw):
            events.append((event, kw["failure_kind"]))

    monkeypatch.setattr(client_module, "logger", RecordingLogger())

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    await make_client(handler).enhance("milk")

    assert events == [("ai_client_http_status", "http_status")]


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"candidates": None},
        {"candidates": [{"content": {}}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        ["not", "a", "dict"],
    ],
)
def test_extract_completion_text_rejects_bad_shapes(data):
    assert extract_completion_text(data) is None


def test_from_settings_copies_configuration(settings):
    client = LLMClient.from_settings(settings)

    assert client.api_endpoint == settings.gemini_api_endpoint
    assert client.api_key == "test-key"
    assert client.temperature == pytest.approx(0.2)
    assert client.timeout_seconds == pytest.approx(2.0)
