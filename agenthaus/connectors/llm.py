from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Literal

import structlog

from agenthaus.config import settings

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Unified message type
# ---------------------------------------------------------------------------

@dataclass
class ChatMessage:
    role: Literal["system", "user", "assistant"]
    content: str


def split_system(messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, Any]]]:
    """Pull the system prompt out; the rest become plain role/content dicts."""
    system: str | None = None
    rest: list[dict[str, Any]] = []
    for m in messages:
        if m.role == "system":
            system = m.content
        else:
            rest.append({"role": m.role, "content": m.content})
    return system, rest


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class BaseLLMClient(ABC):
    @abstractmethod
    def stream(self, messages: list[ChatMessage]) -> AsyncIterator[str]:
        """Yield reply text fragments as the provider produces them."""


# ---------------------------------------------------------------------------
# Anthropic implementation
# ---------------------------------------------------------------------------

class AnthropicLLMClient(BaseLLMClient):
    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        from anthropic import AsyncAnthropic

        self._client = AsyncAnthropic(api_key=api_key or settings.anthropic_api_key)
        self._model = model or settings.anthropic_model
        self._max_tokens = settings.anthropic_max_tokens

    async def stream(self, messages: list[ChatMessage]) -> AsyncIterator[str]:
        system, msgs = split_system(messages)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": msgs,
        }
        if system:
            kwargs["system"] = system

        async with self._client.messages.stream(**kwargs) as stream:
            async for text in stream.text_stream:
                yield text
            final = await stream.get_final_message()

        log.debug("llm.anthropic.stream_done", model=self._model, stop_reason=final.stop_reason)


# ---------------------------------------------------------------------------
# OpenAI implementation
# ---------------------------------------------------------------------------

class OpenAILLMClient(BaseLLMClient):
    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(api_key=api_key or settings.openai_api_key)
        self._model = model or settings.openai_model

    async def stream(self, messages: list[ChatMessage]) -> AsyncIterator[str]:
        msgs = [{"role": m.role, "content": m.content} for m in messages]
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=msgs,
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta

        log.debug("llm.openai.stream_done", model=self._model)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_llm_client(provider: str | None = None) -> BaseLLMClient:
    """Create an LLM client based on the configured provider."""
    if (provider or settings.llm_provider) == "openai":
        return OpenAILLMClient()
    return AnthropicLLMClient()
