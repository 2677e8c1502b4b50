"""Tests for AI providers and response parsing."""

import json
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from leadlint.ai import get_provider
from leadlint.ai.anthropic_provider import AnthropicProvider
from leadlint.ai.base import AIProvider, parse_json_response
from leadlint.ai.ollama import OllamaProvider


def test_parse_plain_json():
    assert parse_json_response('{"status": "pass"}') == {"status": "pass"}
    assert parse_json_response("[1, 2]") == [1, 2]


def test_parse_fenced_json():
    text = 'Here you go:\n```json\n{"fixes": []}\n```\nThanks'
    assert parse_json_response(text) == {"fixes": []}


def test_parse_non_json_falls_back_to_text():
    assert parse_json_response("looks fine to me") == {"text": "looks fine to me"}


def test_get_provider():
    provider, model = get_provider("ollama:llama3:8b", {"ollama_base_url": "http://gpu:11434/"})
    assert isinstance(provider, OllamaProvider)
    assert isinstance(provider, AIProvider)
    assert provider.base_url == "http://gpu:11434"
    assert model == "llama3:8b"

    provider, model = get_provider("mistral-nemo")
    assert isinstance(provider, OllamaProvider)
    assert model == "mistral-nemo"

    provider, model = get_provider("anthropic:claude-sonnet-4-5", {"max_tokens": 1000})
    assert isinstance(provider, AnthropicProvider)
    assert provider.max_tokens == 1000

    with pytest.raises(ValueError):
        get_provider("openai:gpt-4o")
    with pytest.raises(ValueError, match="No model name"):
        get_provider("anthropic:")


@pytest.fixture
def ollama_transport(monkeypatch):
    """Route OllamaProvider's httpx client through a mock transport."""
    requests = []
    responses = []

    def handler(request):
        requests.append(request)
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        return httpx.Response(200, json={"response": outcome})

    real_client = httpx.Client
    monkeypatch.setattr(
        "leadlint.ai.ollama.httpx.Client",
        lambda timeout: real_client(timeout=timeout, transport=httpx.MockTransport(handler)),
    )
    monkeypatch.setattr("leadlint.ai.ollama.time.sleep", lambda s: None)
    return requests, responses


def test_ollama_request(ollama_transport):
    requests, responses = ollama_transport
    responses.append(json.dumps({"status": "pass", "fixes": []}))

    provider = OllamaProvider("http://ollama:11434", api_key="key")
    result = provider.complete("Review this", "mistral-nemo", system="Be terse", response_format="json")

    assert result == {"status": "pass", "fixes": []}
    body = json.loads(requests[0].content)
    assert requests[0].url == "http://ollama:11434/api/generate"
    assert requests[0].headers["Authorization"] == "Bearer key"
    assert body == {
        "model": "mistral-nemo", "prompt": "Review this", "stream": False,
        "system": "Be terse", "format": "json",
    }


def test_ollama_retries_then_succeeds(ollama_transport):
    requests, responses = ollama_transport
    responses.extend([httpx.ConnectError("refused"), '{"ok": true}'])

    assert OllamaProvider().complete("p", "m") == {"ok": True}
    assert len(requests) == 2


def test_ollama_gives_up_with_connection_error(ollama_transport):
    requests, responses = ollama_transport
    responses.extend([httpx.ConnectError("refused")] * 3)

    with pytest.raises(ConnectionError, match="Failed to connect to Ollama"):
        OllamaProvider().complete("p", "m")
    assert len(requests) == 3


def test_anthropic_provider_joins_text_blocks():
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(content=[
            SimpleNamespace(text='{"status": '),
            SimpleNamespace(type="tool_use"),
            SimpleNamespace(text='"warning"}'),
        ])

    provider = AnthropicProvider(max_tokens=500)
    provider._client = SimpleNamespace(messages=SimpleNamespace(create=create))

    assert provider.complete("p", "claude-x", system="s") == {"status": "warning"}
    assert captured["max_tokens"] == 500
    assert captured["system"] == "s"
    assert captured["messages"] == [{"role": "user", "content": "p"}]


def test_ollama_error_status_becomes_connection_error(ollama_transport):
    requests, responses = ollama_transport
    responses.append(httpx.Response(404, text='{"error": "model \'nope\' not found"}'))

    with pytest.raises(ConnectionError, match="returned 404"):
        OllamaProvider("http://ollama:11434").complete("p", "nope")
    assert len(requests) == 1


def test_anthropic_api_error_becomes_connection_error():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

    def create(**kwargs):
        raise anthropic.APIError("overloaded", request, body=None)

    provider = AnthropicProvider()
    provider._client = SimpleNamespace(messages=SimpleNamespace(create=create))

    with pytest.raises(ConnectionError, match="Anthropic API error"):
        provider.complete("p", "claude-x")
