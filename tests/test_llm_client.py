"""
Tests for LLMClient using httpx.MockTransport
"""
import json

import httpx
import pytest

from blinthe.errors import ExtractionFailure, LLMServiceError
from blinthe.widgets.llm_client import ANTHROPIC_URL, OPENAI_URL, PERPLEXITY_URL, LLMClient
from blinthe.widgets.models import LLMProvider

WIDGET_REPLY = (
    "<template><h1>{{ t }}</h1></template><style>h1 { margin: 0 }</style>\n"
    '{"title": "Headline", "description": "Top story", "displayLogic": {"type": "text"}}'
)


def make_client(handler):
    requests = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return LLMClient(http_client=http_client), requests


def chat_reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.mark.asyncio
async def test_perplexity_request_contract():
    client, requests = make_client(lambda request: chat_reply("hello"))
    try:
        text = await client.complete(LLMProvider.PERPLEXITY, "news today", "pplx-key", system="be terse")
    finally:
        await client.close()

    assert text == "hello"
    request = requests[0]
    assert str(request.url) == PERPLEXITY_URL
    assert request.headers["Authorization"] == "Bearer pplx-key"
    body = json.loads(request.content)
    assert body["messages"] == [
        {"role": "system", "content": "be terse"},
        {"role": "user", "content": "news today"},
    ]
    assert body["max_tokens"] == 1024
    assert body["temperature"] == 0.7
    assert body["model"] == "sonar"


@pytest.mark.asyncio
async def test_widget_creation_uses_advanced_perplexity_model():
    client, requests = make_client(lambda request: chat_reply(WIDGET_REPLY))
    try:
        descriptor = await client.generate_widget(LLMProvider.PERPLEXITY, "news", "pplx-key")
    finally:
        await client.close()

    assert descriptor.title == "Headline"
    assert descriptor.description == "Top story"
    assert json.loads(requests[0].content)["model"] == "sonar-pro"


@pytest.mark.asyncio
async def test_openai_request():
    client, requests = make_client(lambda request: chat_reply(WIDGET_REPLY))
    try:
        descriptor = await client.generate_widget(LLMProvider.OPENAI, "news", "sk-abc")
    finally:
        await client.close()

    assert descriptor.title == "Headline"
    assert str(requests[0].url) == OPENAI_URL
    assert json.loads(requests[0].content)["model"] == "gpt-3.5-turbo"


@pytest.mark.asyncio
async def test_anthropic_request_contract():
    def handler(request):
        return httpx.Response(200, json={
            "content": [{"type": "text", "text": WIDGET_REPLY}],
            "stop_reason": "end_turn",
        })

    client, requests = make_client(handler)
    try:
        descriptor = await client.generate_widget(LLMProvider.ANTHROPIC, "news", "sk-ant-abc")
    finally:
        await client.close()

    assert descriptor.title == "Headline"
    request = requests[0]
    assert str(request.url) == ANTHROPIC_URL
    assert request.headers["x-api-key"] == "sk-ant-abc"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["system"]
    assert body["messages"] == [{"role": "user", "content": "news"}]
    assert body["max_tokens"] == 1024


@pytest.mark.asyncio
async def test_http_error_raises_service_error():
    client, _ = make_client(lambda request: httpx.Response(401, json={"error": "bad key"}))
    try:
        with pytest.raises(LLMServiceError) as exc_info:
            await client.complete(LLMProvider.OPENAI, "news", "sk-abc")
    finally:
        await client.close()

    assert exc_info.value.status_code == 401
    assert exc_info.value.provider == "openai"


@pytest.mark.asyncio
async def test_error_in_success_body_raises_service_error():
    def handler(request):
        return httpx.Response(200, json={"error": {"message": "Invalid model", "type": "invalid_request"}})

    client, _ = make_client(handler)
    try:
        with pytest.raises(LLMServiceError, match="Invalid model"):
            await client.complete(LLMProvider.PERPLEXITY, "news", "pplx-key")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_transport_error_raises_service_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(handler)
    try:
        with pytest.raises(LLMServiceError, match="request failed"):
            await client.complete(LLMProvider.PERPLEXITY, "news", "pplx-key")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_unparseable_reply_surfaces_extraction_failure():
    client, _ = make_client(lambda request: chat_reply("I'd rather not."))
    try:
        with pytest.raises(ExtractionFailure) as exc_info:
            await client.generate_widget(LLMProvider.OPENAI, "news", "sk-abc")
    finally:
        await client.close()

    assert exc_info.value.candidate_count == 0
    assert exc_info.value.preview == "I'd rather not."


@pytest.mark.asyncio
async def test_empty_choices_returns_empty_text():
    client, _ = make_client(lambda request: httpx.Response(200, json={"choices": []}))
    try:
        assert await client.complete(LLMProvider.OPENAI, "news", "sk-abc") == ""
    finally:
        await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("provider,payload", [
    (LLMProvider.OPENAI, ["not", "an", "object"]),
    (LLMProvider.OPENAI, {"choices": ["text"]}),
    (LLMProvider.PERPLEXITY, {"choices": [{"message": "text"}]}),
    (LLMProvider.ANTHROPIC, {"content": ["text"]}),
    (LLMProvider.ANTHROPIC, {"content": "text"}),
])
async def test_unexpected_reply_shape_raises_service_error(provider, payload):
    client, _ = make_client(lambda request: httpx.Response(200, json=payload))
    try:
        with pytest.raises(LLMServiceError, match="unexpected response shape"):
            await client.complete(provider, "news", "some-key")
    finally:
        await client.close()
