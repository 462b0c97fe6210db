"""Build an LLM client from provider settings."""
from __future__ import annotations

import os

from deepwork.core.config import Settings
from deepwork.llm.client import OpenAIChatClient

PROVIDER_OPENAI = "openai"
PROVIDER_OLLAMA = "ollama"
PROVIDER_LMSTUDIO = "lmstudio"

_ALIASES = {
    "": PROVIDER_OPENAI,
    "lm-studio": PROVIDER_LMSTUDIO,
    "llmstudio": PROVIDER_LMSTUDIO,
}

_DEFAULT_BASE_URLS = {
    PROVIDER_OPENAI: None,
    PROVIDER_OLLAMA: "http://localhost:11434/v1",
    PROVIDER_LMSTUDIO: "http://localhost:1234/v1",
}

# Environment fallbacks when no key is configured, then a placeholder local servers accept.
_KEY_ENV = {
    PROVIDER_OPENAI: ("OPENAI_API_KEY",),
    PROVIDER_OLLAMA: ("OLLAMA_API_KEY", "OPENAI_API_KEY"),
    PROVIDER_LMSTUDIO: ("LMSTUDIO_API_KEY", "OPENAI_API_KEY"),
}
_PLACEHOLDER_KEYS = {
    PROVIDER_OLLAMA: "ollama",
    PROVIDER_LMSTUDIO: "lm-studio",
}


class LLMConfigurationError(ValueError):
    """The LLM provider cannot be used with the current settings."""


class UnsupportedProviderError(LLMConfigurationError):
    pass


def normalize_provider(provider: str | None) -> str:
    name = (provider or "").strip().lower()
    name = _ALIASES.get(name, name)
    if name not in _DEFAULT_BASE_URLS:
        raise UnsupportedProviderError(f"unsupported LLM provider: {provider}")
    return name


def resolve_api_key(provider: str, configured: str | None = None) -> str:
    if configured:
        return configured
    for variable in _KEY_ENV[provider]:
        value = os.environ.get(variable)
        if value:
            return value
    if provider in _PLACEHOLDER_KEYS:
        return _PLACEHOLDER_KEYS[provider]
    raise LLMConfigurationError("OPENAI_API_KEY is not set; configure DEEPWORK_LLM_API_KEY or OPENAI_API_KEY")


def create_llm_client(settings: Settings) -> OpenAIChatClient:
    provider = normalize_provider(settings.llm_provider)
    return OpenAIChatClient(
        model=settings.llm_model,
        api_key=resolve_api_key(provider, settings.llm_api_key),
        base_url=settings.llm_base_url or _DEFAULT_BASE_URLS[provider],
        timeout=settings.llm_timeout_seconds,
        provider=provider,
    )
