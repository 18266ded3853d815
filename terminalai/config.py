"""Provider configuration.

The configuration lives in ``~/.terminalai/config.yaml`` (override the
location with the ``TERMINALAI_CONFIG`` environment variable).  It
names one active provider and holds a settings block per provider::

    active_provider: ollama
    providers:
      ollama:
        url: http://localhost:11434
        model: llama2
        timeout_seconds: 30
      openai:
        api_key: sk-...
        model: gpt-3.5-turbo

The file is written by ``tai configure`` and read once at startup by
every other command.  :func:`load_config` returns frozen records, so
the pipeline cannot change the configuration while it runs.  API keys
left empty in the file are taken from the usual environment variables
(``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``, ``GEMINI_API_KEY``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TERMINALAI_CONFIG"

DEFAULT_TIMEOUT = 30

PROVIDER_NAMES = ("ollama", "openai", "claude", "gemini")

HOSTED_PROVIDERS = ("openai", "claude", "gemini")

API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

DEFAULT_PROVIDER_SETTINGS: Dict[str, Dict[str, Any]] = {
    "ollama": {"url": "http://localhost:11434", "model": "llama2"},
    "openai": {"base_url": "https://api.openai.com/v1", "model": "gpt-3.5-turbo"},
    "claude": {"base_url": "https://api.anthropic.com", "model": "claude-3-sonnet-20240229"},
    "gemini": {"base_url": "https://generativelanguage.googleapis.com", "model": "gemini-pro"},
}


@dataclass(frozen=True)
class ProviderSettings:
    """Settings for one backend."""

    name: str
    model: str
    url: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT

    @property
    def is_hosted(self) -> bool:
        return self.name in HOSTED_PROVIDERS

    def missing_fields(self) -> List[str]:
        """Return the required fields this block leaves empty."""
        missing = []
        if not self.model:
            missing.append("model")
        if self.name == "ollama" and not self.url:
            missing.append("url")
        if self.is_hosted and not self.api_key:
            missing.append("api_key")
        return missing


@dataclass(frozen=True)
class AppConfig:
    active_provider: str = "ollama"
    providers: Mapping[str, ProviderSettings] = field(default_factory=dict)

    @property
    def active(self) -> ProviderSettings:
        try:
            return self.providers[self.active_provider]
        except KeyError:
            raise ConfigError(
                f"Active provider '{self.active_provider}' not found in configuration"
            ) from None


def config_path() -> Path:
    """Return the path to the configuration file."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".terminalai" / "config.yaml"


def _build_settings(name: str, raw: Mapping[str, Any]) -> ProviderSettings:
    merged: Dict[str, Any] = dict(DEFAULT_PROVIDER_SETTINGS.get(name, {}))
    merged.update({k: v for k, v in raw.items() if v is not None})
    timeout = merged.pop("timeout_seconds", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout_seconds for provider '{name}': {timeout!r}") from None
    if timeout <= 0:
        raise ConfigError(f"timeout_seconds for provider '{name}' must be positive")
    api_key = merged.get("api_key") or None
    if api_key is None and name in API_KEY_ENV_VARS:
        api_key = os.environ.get(API_KEY_ENV_VARS[name]) or None
    return ProviderSettings(
        name=name,
        model=str(merged.get("model") or ""),
        url=merged.get("url"),
        base_url=merged.get("base_url"),
        api_key=api_key,
        timeout_seconds=timeout,
    )


def parse_config(data: Any, strict: bool = True) -> AppConfig:
    """Build an :class:`AppConfig` from a decoded YAML document.

    :raises ConfigError: If the document is not a mapping, the active
      provider is unknown, or its required fields are missing.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")
    active = str(data.get("active_provider") or "ollama").lower()
    if active not in PROVIDER_NAMES:
        raise ConfigError(
            f"Unknown active provider '{active}'. Expected one of: {', '.join(PROVIDER_NAMES)}"
        )
    raw_providers = data.get("providers") or {}
    if not isinstance(raw_providers, dict):
        raise ConfigError("'providers' must be a mapping of provider name to settings")
    providers: Dict[str, ProviderSettings] = {}
    for name in PROVIDER_NAMES:
        raw = raw_providers.get(name) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Settings for provider '{name}' must be a mapping")
        providers[name] = _build_settings(name, raw)

    config = AppConfig(active_provider=active, providers=MappingProxyType(providers))
    missing = config.active.missing_fields()
    if missing and strict:
        env_hint = ""
        if "api_key" in missing and active in API_KEY_ENV_VARS:
            env_hint = f" (or set {API_KEY_ENV_VARS[active]})"
        raise ConfigError(
            f"Provider '{active}' is missing required settings: {', '.join(missing)}{env_hint}"
        )
    return config


def load_config(path: Optional[Union[str, Path]] = None, strict: bool = True) -> AppConfig:
    """Load the configuration, returning defaults when no file exists."""
    cfg_path = Path(path) if path else config_path()
    if not cfg_path.exists():
        logger.debug("No configuration at %s, using defaults", cfg_path)
        return parse_config({}, strict=strict)
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read config file {cfg_path}: {exc}") from exc
    logger.debug("Loaded configuration from %s", cfg_path)
    return parse_config(data, strict=strict)


def config_to_dict(config: AppConfig) -> Dict[str, Any]:
    """Serialisable form of ``config``; ``name`` keys are implied.

    API keys that match the provider's environment variable are left out.
    """
    providers = {}
    for name, settings in config.providers.items():
        block = {k: v for k, v in asdict(settings).items() if k != "name" and v is not None}
        # keys picked up from the environment stay there
        env_var = API_KEY_ENV_VARS.get(name)
        if env_var and block.get("api_key") and block["api_key"] == os.environ.get(env_var):
            del block["api_key"]
        providers[name] = block
    return {"active_provider": config.active_provider, "providers": providers}


def update_provider(config: AppConfig, settings: ProviderSettings, activate: bool = True) -> AppConfig:
    """Return a copy of ``config`` with ``settings`` stored (and optionally active)."""
    providers = dict(config.providers)
    providers[settings.name] = settings
    active = settings.name if activate else config.active_provider
    return replace(config, active_provider=active, providers=MappingProxyType(providers))


def save_config(config: AppConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """Persist configuration to disk.  Only ``tai configure`` calls this."""
    cfg_path = Path(path) if path else config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(config), f, sort_keys=False)
    return cfg_path
