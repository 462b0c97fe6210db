from types import SimpleNamespace

import httpx
import openai
import pytest

from deepwork.core.config import Settings
from deepwork.llm.client import LLMResponseError, LLMTransportError, Message, OpenAIChatClient, extract_json
from deepwork.llm.factory import (
    LLMConfigurationError,
    UnsupportedProviderError,
    create_llm_client,
    normalize_provider,
    resolve_api_key,
)


class _Completions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.content is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def _client(content=None, error=None) -> OpenAIChatClient:
    completions = _Completions(content, error)
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIChatClient(model="gpt-test", api_key="sk-test", client=fake)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('Sure!\n```json\n{"tasks": []}\n```\nDone.', '{"tasks": []}'),
        ('```\n[1, 2]\n```', "[1, 2]"),
        ('Here you go: {"a": {"b": 1}} and more', '{"a": {"b": 1}}'),
        ("no json at all", "no json at all"),
    ],
)
def test_extract_json(text, expected) -> None:
    assert extract_json(text) == expected


def test_chat_json_parses_fenced_reply() -> None:
    client = _client('```json\n{"tasks": [], "warnings": ["ok"]}\n```')

    payload = client.chat_json([Message("system", "plan"), Message("tool", "hi")])

    assert payload == {"tasks": [], "warnings": ["ok"]}
    request = client._client.chat.completions.requests[0]
    assert request["model"] == "gpt-test"
    assert request["messages"][1] == {"role": "user", "content": "hi"}


def test_unparseable_reply_is_a_response_error() -> None:
    with pytest.raises(LLMResponseError, match="parsing JSON response"):
        _client("I cannot help with that").chat_json([Message("user", "plan")])


def test_empty_choices_is_a_response_error() -> None:
    with pytest.raises(LLMResponseError, match="no response choices"):
        _client(None).chat([Message("user", "plan")])


def test_transport_failures_are_wrapped() -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "http://localhost/v1/chat/completions"))

    with pytest.raises(LLMTransportError, match="openai chat completion"):
        _client(error=error).chat([Message("user", "plan")])


def test_model_is_required() -> None:
    with pytest.raises(ValueError):
        OpenAIChatClient(model=" ", api_key="x", client=object())


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("", "openai"), ("OpenAI", "openai"), ("ollama", "ollama"), ("LM-Studio", "lmstudio"), ("llmstudio", "lmstudio")],
)
def test_normalize_provider(raw, expected) -> None:
    assert normalize_provider(raw) == expected


def test_unknown_provider() -> None:
    with pytest.raises(UnsupportedProviderError):
        normalize_provider("copilot")


def test_api_key_resolution(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OLLAMA_API_KEY", raising=False)

    assert resolve_api_key("openai", "configured") == "configured"
    assert resolve_api_key("ollama") == "ollama"
    assert resolve_api_key("lmstudio") == "lm-studio"
    with pytest.raises(LLMConfigurationError):
        resolve_api_key("openai")

    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert resolve_api_key("openai") == "sk-env"
    assert resolve_api_key("ollama") == "sk-env"


def test_factory_uses_local_base_url(monkeypatch) -> None:
    monkeypatch.delenv("OLLAMA_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    client = create_llm_client(Settings(llm_provider="ollama", llm_model="llama3.1"))

    assert client.provider == "ollama"
    assert client.model == "llama3.1"
    assert str(client._client.base_url).startswith("http://localhost:11434/v1")
