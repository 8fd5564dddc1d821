"""Tests for the OpenRouter text generator."""

from unittest.mock import AsyncMock, patch

import pytest

from newsbrief.clients.openrouter import OpenRouterClient


def completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def test_from_settings_without_key(settings):
    assert OpenRouterClient.from_settings(settings) is None


def test_from_settings_with_key(settings):
    settings = settings.model_copy(
        update={"openrouter_api_key": "sk-test", "openrouter_model": "openai/gpt-4o-mini"}
    )
    client = OpenRouterClient.from_settings(settings)

    assert client.default_model == "openai/gpt-4o-mini"
    assert client.headers["Authorization"] == "Bearer sk-test"
    assert client.timeout == settings.openrouter_timeout


@pytest.mark.asyncio
async def test_generate_text_returns_stripped_content():
    client = OpenRouterClient("sk-test")
    with patch.object(
        client, "_make_single_request", AsyncMock(return_value=completion("  body  "))
    ) as request:
        assert await client.generate_text("prompt") == "body"

    payload = request.call_args.args[0]
    assert payload["messages"] == [{"role": "user", "content": "prompt"}]
    assert payload["max_tokens"] == 2000


@pytest.mark.asyncio
async def test_generate_text_falls_back_to_next_model():
    client = OpenRouterClient("sk-test")
    request = AsyncMock(side_effect=[None, completion("from fallback")])
    with patch.object(client, "_make_single_request", request):
        assert await client.generate_text("prompt") == "from fallback"

    models = [call.args[0]["model"] for call in request.call_args_list]
    assert models == client.model_fallbacks[:2]


@pytest.mark.asyncio
async def test_generate_text_raises_when_all_models_fail():
    client = OpenRouterClient("sk-test")
    with patch.object(client, "_make_single_request", AsyncMock(return_value=None)):
        with pytest.raises(ValueError):
            await client.generate_text("prompt")


@pytest.mark.asyncio
async def test_generate_text_raises_on_empty_content():
    client = OpenRouterClient("sk-test")
    with patch.object(
        client, "_make_single_request", AsyncMock(return_value=completion(""))
    ):
        with pytest.raises(ValueError):
            await client.generate_text("prompt")


@pytest.mark.asyncio
async def test_generate_text_requires_key():
    with pytest.raises(ValueError):
        await OpenRouterClient("").generate_text("prompt")


@pytest.mark.asyncio
async def test_rate_limit_delay_waits_for_interval():
    client = OpenRouterClient("sk-test")
    client.min_request_interval = 3.0
    client.backoff_multiplier = 2.0
    with patch("newsbrief.clients.openrouter.time.time", side_effect=[100.0, 101.0]), patch(
        "newsbrief.clients.openrouter.asyncio.sleep", new=AsyncMock()
    ) as sleep:
        client.last_request_time = 99.0
        await client._rate_limit_delay()

    sleep.assert_awaited_once_with(5.0)
    assert client.last_request_time == 101.0


@pytest.mark.asyncio
async def test_connection_check():
    client = OpenRouterClient("sk-test")
    with patch.object(client, "_make_request", AsyncMock(return_value=completion("hi"))):
        assert await client.test_connection() is True
    with patch.object(client, "_make_request", AsyncMock(return_value=None)):
        assert await client.test_connection() is False


@pytest.mark.asyncio
async def test_preferred_model_tried_first_without_duplicates():
    client = OpenRouterClient("sk-test", model="openai/gpt-4o-mini")
    request = AsyncMock(return_value=None)
    with patch.object(client, "_make_single_request", request):
        assert await client._make_request("prompt", max_tokens=50) is None

    payloads = [call.args[0] for call in request.call_args_list]
    assert [p["model"] for p in payloads] == [
        "openai/gpt-4o-mini",
        "google/gemini-2.0-flash-lite-001",
        "meta-llama/llama-3.3-70b-instruct:free",
    ]
    assert all(p["max_tokens"] == 50 for p in payloads)
    assert all(p["temperature"] == OpenRouterClient.TEMPERATURE for p in payloads)
