"""Tests for the Ollama enhancement provider (no network: httpx.MockTransport)."""
import json

import httpx
import pytest

from app.config import settings
from app.services.errors import EnhancementError
from app.services.llm_provider import (
    EnhancementOptions,
    OllamaEnhancementProvider,
    build_provider,
)


def _provider(handler) -> OllamaEnhancementProvider:
    return OllamaEnhancementProvider(
        base_url="http://ollama.test",
        model="test-model",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_enhance_posts_generate_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": '{"content": ["ok"]}'})

    text = await _provider(handler).enhance("system", "user", EnhancementOptions(temperature=0.2))

    assert text == '{"content": ["ok"]}'
    assert seen["path"] == "/api/generate"
    body = seen["body"]
    assert body["model"] == "test-model"
    assert body["system"] == "system"
    assert body["prompt"] == "user"
    assert body["stream"] is False
    assert body["format"] == "json"
    assert body["options"]["temperature"] == 0.2


@pytest.mark.asyncio
async def test_unstructured_request_omits_format():
    def handler(request):
        assert "format" not in json.loads(request.content)
        return httpx.Response(200, json={"response": "plain text"})

    options = EnhancementOptions(expect_structured_output=False)
    assert await _provider(handler).enhance("s", "u", options) == "plain text"


@pytest.mark.asyncio
async def test_output_is_capped():
    provider = _provider(lambda r: httpx.Response(200, json={"response": "z" * 50}))
    text = await provider.enhance("s", "u", EnhancementOptions(max_output_chars=10))
    assert text == "z" * 10


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model crashed"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"response": "   "}),
        httpx.Response(200, json={"done": True}),
    ],
)
async def test_bad_responses_raise(response):
    with pytest.raises(EnhancementError):
        await _provider(lambda r: response).enhance("s", "u", EnhancementOptions())


@pytest.mark.asyncio
async def test_transport_errors_raise():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EnhancementError, match="transport"):
        await _provider(handler).enhance("s", "u", EnhancementOptions())


@pytest.mark.asyncio
async def test_timeouts_raise():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(EnhancementError, match="timed out"):
        await _provider(handler).enhance("s", "u", EnhancementOptions())


@pytest.mark.asyncio
async def test_is_available():
    assert await _provider(lambda r: httpx.Response(200, json={"models": []})).is_available()
    assert not await _provider(lambda r: httpx.Response(503)).is_available()


def test_build_provider_respects_flag(monkeypatch):
    monkeypatch.setattr(settings, "ENHANCEMENT_ENABLED", False)
    assert build_provider() is None
    monkeypatch.setattr(settings, "ENHANCEMENT_ENABLED", True)
    assert isinstance(build_provider(), OllamaEnhancementProvider)
