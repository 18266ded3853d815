"""Model provider layer for Terminal AI.

This module contains one provider per AI backend.  Every provider
implements :meth:`BaseProvider.send_query`, which takes the skill's
system prompt and the user's prompt and returns the model's raw text
answer.  Request construction (URL, headers, auth, payload schema) and
response unmarshalling are private to each provider, so callers only
ever see a string or a :class:`~terminalai.errors.ProviderError`.

Supported providers:

* ``OllamaProvider`` - a local Ollama server (``/api/generate``).
* ``OpenAIProvider`` - the OpenAI chat completions API.
* ``ClaudeProvider`` - the Anthropic messages API.
* ``GeminiProvider`` - the Google Gemini ``generateContent`` API.

The active provider is chosen once from the configuration by
:func:`get_provider` and used for the lifetime of the process.  Each
query is a single HTTP request made through :mod:`httpx` with the
configured timeout; there are no retries and no caching.  Errors are
classified as follows:

* timeouts raise :class:`~terminalai.errors.ProviderTimeout`;
* connection problems and unexpected HTTP statuses raise
  :class:`~terminalai.errors.ConnectionFailed`;
* HTTP 401/403 or a missing key raise
  :class:`~terminalai.errors.AuthFailed`;
* payloads that cannot be decoded raise
  :class:`~terminalai.errors.MalformedResponse`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import AppConfig, ProviderSettings
from .errors import (
    AuthFailed,
    ConfigError,
    ConnectionFailed,
    MalformedResponse,
    ProviderTimeout,
)

logger = logging.getLogger(__name__)

MAX_TOKENS = 1000
TEMPERATURE = 0.1
ANTHROPIC_VERSION = "2023-06-01"


def combine_prompts(system_prompt: str, user_prompt: str) -> str:
    """Inline the system prompt for backends without a system role."""
    return f"{system_prompt}\n\nUser Request: {user_prompt}"


class BaseProvider:
    """Abstract base class for all providers."""

    name = "base"
    display_name = "Base"
    requires_api_key = False

    def __init__(
        self,
        settings: ProviderSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.validate_config()

    def validate_config(self) -> None:
        """Check the settings this provider needs.

        :raises AuthFailed: When a hosted provider has no API key.
        :raises ConfigError: When the model is missing.
        """
        if self.requires_api_key and not self.settings.api_key:
            raise AuthFailed(f"{self.display_name} API key is required")
        if not self.settings.model:
            raise ConfigError(f"{self.display_name} model is required")

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's answer for the given prompts.

        Subclasses must implement this method.
        """
        raise NotImplementedError

    def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST ``payload`` and return the decoded JSON body."""
        request_headers = {"Content-Type": "application/json"}
        request_headers.update(headers or {})
        logger.debug("POST %s (provider=%s, model=%s)", url, self.name, self.settings.model)
        try:
            with httpx.Client(timeout=self.settings.timeout_seconds, transport=self.transport) as client:
                response = client.post(url, json=payload, headers=request_headers)
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(
                f"{self.display_name} request timed out after {self.settings.timeout_seconds:g} seconds"
            ) from exc
        except httpx.TransportError as exc:
            raise ConnectionFailed(f"Failed to send request to {self.display_name}: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthFailed(
                f"{self.display_name} rejected the credentials (status {response.status_code})"
            )
        if not response.is_success:
            raise ConnectionFailed(
                f"{self.display_name} request failed with status: "
                f"{response.status_code} - {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"Failed to parse {self.display_name} response: {exc}") from exc

    def _malformed(self, data: Any) -> MalformedResponse:
        logger.debug("Unexpected %s payload: %r", self.name, data)
        return MalformedResponse(f"No response from {self.display_name}")


class OllamaProvider(BaseProvider):
    """Provider for a local Ollama server."""

    name = "ollama"
    display_name = "Ollama"

    def validate_config(self) -> None:
        if not self.settings.url:
            raise ConfigError("Ollama URL is required")
        super().validate_config()

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "prompt": combine_prompts(system_prompt, user_prompt),
            "stream": False,
        }
        url = f"{self.settings.url.rstrip('/')}/api/generate"
        data = self._post_json(url, payload)
        try:
            return str(data["response"])
        except (KeyError, TypeError):
            raise self._malformed(data) from None


class OpenAIProvider(BaseProvider):
    """Provider for the OpenAI chat completions API."""

    name = "openai"
    display_name = "OpenAI"
    requires_api_key = True
    default_base_url = "https://api.openai.com/v1"

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        base_url = (self.settings.base_url or self.default_base_url).rstrip("/")
        data = self._post_json(
            f"{base_url}/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self.settings.api_key}"},
        )
        try:
            return str(data["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data) from None


class ClaudeProvider(BaseProvider):
    """Provider for the Anthropic messages API."""

    name = "claude"
    display_name = "Claude"
    requires_api_key = True
    default_base_url = "https://api.anthropic.com"

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "max_tokens": MAX_TOKENS,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        base_url = (self.settings.base_url or self.default_base_url).rstrip("/")
        data = self._post_json(
            f"{base_url}/v1/messages",
            payload,
            headers={
                "x-api-key": self.settings.api_key or "",
                "anthropic-version": ANTHROPIC_VERSION,
            },
        )
        try:
            return str(data["content"][0]["text"])
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data) from None


class GeminiProvider(BaseProvider):
    """Provider for the Google Gemini API."""

    name = "gemini"
    display_name = "Gemini"
    requires_api_key = True
    default_base_url = "https://generativelanguage.googleapis.com"

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": combine_prompts(system_prompt, user_prompt)}],
                }
            ],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": MAX_TOKENS,
            },
        }
        base_url = (self.settings.base_url or self.default_base_url).rstrip("/")
        data = self._post_json(
            f"{base_url}/v1/models/{self.settings.model}:generateContent",
            payload,
            headers={"x-goog-api-key": self.settings.api_key or ""},
        )
        try:
            return str(data["candidates"][0]["content"]["parts"][0]["text"])
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data) from None


PROVIDERS = {
    OllamaProvider.name: OllamaProvider,
    OpenAIProvider.name: OpenAIProvider,
    ClaudeProvider.name: ClaudeProvider,
    GeminiProvider.name: GeminiProvider,
}


def get_provider(
    settings: ProviderSettings,
    transport: Optional[httpx.BaseTransport] = None,
) -> BaseProvider:
    """Factory function to instantiate the provider named by ``settings``.

    :param settings: Settings of the active provider.
    :param transport: Optional httpx transport, used by tests.
    :returns: A provider instance.
    :raises ConfigError: If the provider name is unknown.
    """
    provider_cls = PROVIDERS.get(settings.name.lower().strip())
    if provider_cls is None:
        raise ConfigError(f"Unknown provider: {settings.name}")
    return provider_cls(settings, transport=transport)


class QueryProvider:
    """The provider selected for this process."""

    def __init__(self, provider: BaseProvider) -> None:
        self._provider = provider

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "QueryProvider":
        return cls(get_provider(config.active, transport=transport))

    @property
    def name(self) -> str:
        return self._provider.display_name

    def send_query(self, system_prompt: str, user_prompt: str) -> str:
        return self._provider.send_query(system_prompt, user_prompt)
