from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from actuator_ai.agent_core.errors import LLMProviderError
from actuator_ai.agent_core.llm.base import ChatMessage, ChatOptions
from actuator_ai.agent_core.llm.openai_compatible import OpenAICompatibleProvider

BASE_URL = "http://mock-llm/v1"


def _provider(handler, **kwargs) -> OpenAICompatibleProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleProvider(BASE_URL, model="local-model", client=client, **kwargs)


@pytest.mark.asyncio
async def test_chat_posts_openai_payload():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "hi!"}}]})

    provider = _provider(handler, api_key="secret")
    reply = await provider.chat(
        [ChatMessage(role="system", content="be nice"), ChatMessage(role="user", content="hello")],
        ChatOptions(temperature=0.2, max_tokens=64, stop=["\n\n"]),
    )

    assert reply == "hi!"
    (request,) = seen
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body == {
        "model": "local-model",
        "messages": [{"role": "system", "content": "be nice"}, {"role": "user", "content": "hello"}],
        "temperature": 0.2,
        "stream": False,
        "max_tokens": 64,
        "stop": ["\n\n"],
    }


@pytest.mark.asyncio
async def test_chat_without_key_sends_no_auth_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})

    assert await _provider(handler).chat([ChatMessage(role="user", content="x")]) == ""


@pytest.mark.asyncio
async def test_chat_http_error_raises_with_status():
    provider = _provider(lambda r: httpx.Response(500, text="model crashed"))

    with pytest.raises(LLMProviderError) as exc_info:
        await provider.chat([ChatMessage(role="user", content="x")])

    assert exc_info.value.status_code == 500
    assert "model crashed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_chat_response_without_choices_raises():
    provider = _provider(lambda r: httpx.Response(200, json={"choices": []}))

    with pytest.raises(LLMProviderError, match="without choices"):
        await provider.chat([ChatMessage(role="user", content="x")])


@pytest.mark.asyncio
async def test_unreachable_server_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LLMProviderError, match="unreachable"):
        await _provider(handler).chat([ChatMessage(role="user", content="x")])


@pytest.mark.asyncio
async def test_embed_uses_embedding_model():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/v1/embeddings"
        assert body == {"model": "embedder", "input": "hello"}
        return httpx.Response(200, json={"data": [{"embedding": [1, 0.5]}]})

    assert await _provider(handler, embedding_model="embedder").embed("hello") == [1.0, 0.5]


@pytest.mark.asyncio
async def test_health_check():
    ok = _provider(lambda r: httpx.Response(200, json={"data": []}))
    down = _provider(lambda r: httpx.Response(503))

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert await ok.health_check() is True
    assert await down.health_check() is False
    assert await _provider(refuse).health_check() is False


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    provider = OpenAICompatibleProvider(BASE_URL, model="m", client=client)

    await provider.aclose()

    assert client.is_closed is False
    await client.aclose()
