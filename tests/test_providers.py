import json

import httpx
import pytest

from terminalai.config import ProviderSettings, parse_config
from terminalai.errors import (
    AuthFailed,
    ConfigError,
    ConnectionFailed,
    MalformedResponse,
    ProviderTimeout,
)
from terminalai.providers import (
    ClaudeProvider,
    GeminiProvider,
    OllamaProvider,
    OpenAIProvider,
    QueryProvider,
    get_provider,
)


def ollama_settings(**overrides):
    values = dict(name="ollama", model="llama2", url="http://localhost:11434", timeout_seconds=5)
    values.update(overrides)
    return ProviderSettings(**values)


def hosted_settings(name, **overrides):
    values = dict(name=name, model="test-model", api_key="secret", timeout_seconds=5)
    values.update(overrides)
    return ProviderSettings(**values)


class Recorder:
    """MockTransport handler that returns a canned response."""

    def __init__(self, status=200, body=None, content=None):
        self.status = status
        self.body = body
        self.content = content
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status, content=self.content)
        return httpx.Response(self.status, json=self.body)

    @property
    def payload(self):
        return json.loads(self.requests[-1].content)


class TestOllama:
    def test_send_query(self):
        handler = Recorder(body={"response": "cp a b"})
        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))

        assert provider.send_query("SYSTEM", "copy a to b") == "cp a b"
        request = handler.requests[0]
        assert str(request.url) == "http://localhost:11434/api/generate"
        assert handler.payload == {
            "model": "llama2",
            "prompt": "SYSTEM\n\nUser Request: copy a to b",
            "stream": False,
        }

    def test_missing_url(self):
        with pytest.raises(ConfigError):
            OllamaProvider(ollama_settings(url=None))

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderTimeout):
            provider.send_query("s", "u")

    def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(ConnectionFailed) as excinfo:
            provider.send_query("s", "u")
        assert "reachable" in excinfo.value.hint

    def test_server_error(self):
        handler = Recorder(status=500, content=b"model not loaded")
        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(ConnectionFailed) as excinfo:
            provider.send_query("s", "u")
        assert "500" in str(excinfo.value)

    def test_invalid_json(self):
        handler = Recorder(content=b"<html>not json</html>")
        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(MalformedResponse):
            provider.send_query("s", "u")

    def test_missing_field(self):
        handler = Recorder(body={"done": True})
        provider = OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(MalformedResponse):
            provider.send_query("s", "u")


class TestOpenAI:
    def test_send_query(self):
        handler = Recorder(body={"choices": [{"message": {"content": "grep -r foo ."}}]})
        provider = OpenAIProvider(hosted_settings("openai"), transport=httpx.MockTransport(handler))

        assert provider.send_query("SYSTEM", "find foo") == "grep -r foo ."
        request = handler.requests[0]
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer secret"
        payload = handler.payload
        assert payload["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "find foo"},
        ]
        assert payload["max_tokens"] == 1000

    def test_unauthorized(self):
        handler = Recorder(status=401, body={"error": "invalid key"})
        provider = OpenAIProvider(hosted_settings("openai"), transport=httpx.MockTransport(handler))
        with pytest.raises(AuthFailed):
            provider.send_query("s", "u")

    def test_empty_choices(self):
        handler = Recorder(body={"choices": []})
        provider = OpenAIProvider(hosted_settings("openai"), transport=httpx.MockTransport(handler))
        with pytest.raises(MalformedResponse):
            provider.send_query("s", "u")

    def test_api_key_required(self):
        with pytest.raises(AuthFailed):
            OpenAIProvider(hosted_settings("openai", api_key=None))


class TestClaude:
    def test_send_query(self):
        handler = Recorder(body={"content": [{"type": "text", "text": "ps aux"}]})
        settings = hosted_settings("claude", base_url="https://example.test/")
        provider = ClaudeProvider(settings, transport=httpx.MockTransport(handler))

        assert provider.send_query("SYSTEM", "list processes") == "ps aux"
        request = handler.requests[0]
        assert str(request.url) == "https://example.test/v1/messages"
        assert request.headers["x-api-key"] == "secret"
        assert request.headers["anthropic-version"] == "2023-06-01"
        assert handler.payload["system"] == "SYSTEM"
        assert handler.payload["messages"] == [{"role": "user", "content": "list processes"}]

    def test_forbidden(self):
        handler = Recorder(status=403, body={})
        provider = ClaudeProvider(hosted_settings("claude"), transport=httpx.MockTransport(handler))
        with pytest.raises(AuthFailed):
            provider.send_query("s", "u")


class TestGemini:
    def test_send_query(self):
        body = {"candidates": [{"content": {"parts": [{"text": "find . -name '*.py'"}]}}]}
        handler = Recorder(body=body)
        provider = GeminiProvider(hosted_settings("gemini"), transport=httpx.MockTransport(handler))

        assert provider.send_query("SYSTEM", "python files") == "find . -name '*.py'"
        request = handler.requests[0]
        assert str(request.url) == (
            "https://generativelanguage.googleapis.com/v1/models/test-model:generateContent"
        )
        assert request.headers["x-goog-api-key"] == "secret"
        payload = handler.payload
        assert payload["contents"][0]["parts"][0]["text"] == "SYSTEM\n\nUser Request: python files"
        assert payload["generationConfig"]["maxOutputTokens"] == 1000

    def test_no_candidates(self):
        handler = Recorder(body={"candidates": []})
        provider = GeminiProvider(hosted_settings("gemini"), transport=httpx.MockTransport(handler))
        with pytest.raises(MalformedResponse):
            provider.send_query("s", "u")


class TestFactory:
    @pytest.mark.parametrize(
        "settings, cls",
        [
            (ollama_settings(), OllamaProvider),
            (hosted_settings("openai"), OpenAIProvider),
            (hosted_settings("claude"), ClaudeProvider),
            (hosted_settings("gemini"), GeminiProvider),
        ],
    )
    def test_get_provider(self, settings, cls):
        assert isinstance(get_provider(settings), cls)

    def test_unknown_provider(self):
        with pytest.raises(ConfigError):
            get_provider(hosted_settings("mistral"))

    def test_query_provider_wraps_variant(self):
        handler = Recorder(body={"response": "ps"})
        provider = QueryProvider(OllamaProvider(ollama_settings(), transport=httpx.MockTransport(handler)))
        assert provider.name == "Ollama"
        assert provider.send_query("s", "u") == "ps"

    def test_query_provider_from_config(self):
        config = parse_config({"active_provider": "openai", "providers": {"openai": {"api_key": "k"}}})
        handler = Recorder(body={"choices": [{"message": {"content": "ls"}}]})

        provider = QueryProvider.from_config(config, transport=httpx.MockTransport(handler))

        assert provider.name == "OpenAI"
        assert provider.send_query("s", "u") == "ls"
