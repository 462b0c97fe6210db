"""Chat-completion boundary used by the planner and the week evaluator."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Protocol, Sequence

import openai

logger = logging.getLogger(__name__)

ROLES = ("system", "user", "assistant")


class PlanningError(RuntimeError):
    """The LLM could not be reached or its reply could not be used."""


class LLMTransportError(PlanningError):
    """The chat request itself failed."""


class LLMResponseError(PlanningError):
    """The reply arrived but did not contain usable JSON."""


@dataclass(frozen=True)
class Message:
    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


class LLMClient(Protocol):
    def chat(self, messages: Sequence[Message]) -> str:
        ...

    def chat_json(self, messages: Sequence[Message]) -> Any:
        ...


def extract_json(text: str) -> str:
    """Pull the JSON payload out of a chatty model reply.

    Tries a ```json fence, then any ``` fence, then the first balanced
    ``{...}``/``[...]`` span. Returns the input unchanged when none is found.
    """
    for opener in ("```json", "```"):
        index = text.find(opener)
        if index == -1:
            continue
        start = index + len(opener)
        while start < len(text) and text[start] in "\r\n":
            start += 1
        end = text.find("```", start)
        if end != -1:
            return text[start:end].rstrip("\r\n")

    for index, char in enumerate(text):
        if char not in "{[":
            continue
        depth = 0
        for cursor in range(index, len(text)):
            if text[cursor] in "{[":
                depth += 1
            elif text[cursor] in "}]":
                depth -= 1
                if depth == 0:
                    return text[index : cursor + 1]
    return text


class OpenAIChatClient:
    """LLMClient backed by any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        *,
        model: str,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        provider: str = "openai",
        client: Any = None,
    ) -> None:
        if not model or not model.strip():
            raise ValueError(f"{provider} model is required")
        self.model = model
        self.provider = provider
        self._client = client or openai.OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def chat(self, messages: Sequence[Message]) -> str:
        payload: List[Dict[str, str]] = [_to_openai_message(message) for message in messages]
        try:
            completion = self._client.chat.completions.create(model=self.model, messages=payload)
        except openai.OpenAIError as exc:
            logger.warning("%s chat completion failed: %s", self.provider, exc)
            raise LLMTransportError(f"{self.provider} chat completion: {exc}") from exc

        if not completion.choices:
            raise LLMResponseError("no response choices returned")
        return completion.choices[0].message.content or ""

    def chat_json(self, messages: Sequence[Message]) -> Any:
        content = self.chat(messages)
        try:
            return json.loads(extract_json(content))
        except json.JSONDecodeError as exc:
            logger.debug("Unparseable %s reply: %s", self.provider, content[:500])
            raise LLMResponseError(f"parsing JSON response: {exc} (content: {content[:200]})") from exc


def _to_openai_message(message: Message) -> Dict[str, str]:
    role = message.role if message.role in ROLES else "user"
    return {"role": role, "content": message.content}
