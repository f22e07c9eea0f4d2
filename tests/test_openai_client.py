"""Tests for the completion client wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from call_insights.config import Settings
from call_insights.exceptions import ConfigurationError, EmptyCompletionError, UpstreamError
from call_insights.services.openai_client import OpenAIClient

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client():
    oc = OpenAIClient(Settings(openai_api_key="sk-test"))
    oc.client = MagicMock()
    return oc


def test_requires_a_key():
    with pytest.raises(ConfigurationError):
        OpenAIClient(Settings())


def test_groq_preferred_over_openai():
    oc = OpenAIClient(Settings(openai_api_key="sk-test", groq_api_key="gsk-test"))
    assert oc.model == "llama-3.1-8b-instant"


def test_openai_default_model():
    assert OpenAIClient(Settings(openai_api_key="sk-test")).model == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_complete_sends_single_user_message(client):
    client.client.chat.completions.create = AsyncMock(return_value=reply("  A short recap. \n"))

    assert await client.complete("Summarize this call: Hello") == "A short recap."
    client.client.chat.completions.create.assert_awaited_once_with(
        model="gpt-4o-mini",
        messages=[{"role": "user", "content": "Summarize this call: Hello"}],
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [reply(""), reply("   "), reply(None), SimpleNamespace(choices=[])])
async def test_empty_completion(client, response):
    client.client.chat.completions.create = AsyncMock(return_value=response)
    with pytest.raises(EmptyCompletionError):
        await client.complete("prompt")


@pytest.mark.asyncio
async def test_status_error_carries_upstream_status(client):
    error = openai.APIStatusError("rate limited", response=httpx.Response(429, request=REQUEST), body=None)
    client.client.chat.completions.create = AsyncMock(side_effect=error)

    with pytest.raises(UpstreamError) as exc:
        await client.complete("prompt")
    assert exc.value.upstream_status == 429
    client.client.chat.completions.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_timeout_is_upstream_error(client):
    client.client.chat.completions.create = AsyncMock(side_effect=openai.APITimeoutError(request=REQUEST))

    with pytest.raises(UpstreamError) as exc:
        await client.complete("prompt")
    assert exc.value.upstream_status == 504


def transport_client(body):
    """OpenAIClient talking to a canned HTTP 200 response instead of the network."""
    def handler(request):
        return httpx.Response(200, json=body)

    oc = OpenAIClient(Settings(openai_api_key="sk-test"))
    oc.client = openai.AsyncOpenAI(
        api_key="sk-test",
        base_url="https://api.openai.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return oc


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {},
    {"choices": None},
    {"choices": [{}]},
    {"choices": [{"message": {"role": "assistant", "content": "   "}}]},
])
async def test_malformed_success_body_is_empty_completion(body):
    with pytest.raises(EmptyCompletionError):
        await transport_client(body).complete("prompt")


@pytest.mark.asyncio
async def test_success_body_over_http():
    body = {"choices": [{"index": 0, "message": {"role": "assistant", "content": " Recap. "}}]}
    assert await transport_client(body).complete("prompt") == "Recap."
