"""OpenAI LLM provider — GPT-4o, GPT-4o-mini, and OpenAI-compatible endpoints.

Requires ``openai`` and ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import openai

from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(LLMProvider):
    """Generate responses via the OpenAI Chat API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        kwargs: dict[str, Any] = {"timeout": timeout}
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            kwargs["base_url"] = base_url

        try:
            self._client: Any = openai.AsyncOpenAI(**kwargs)
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"OpenAI client misconfigured: {exc}") from exc

    async def generate(self, prompt: str, system: str | None = None) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt, system),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"OpenAI completion failed: {exc}") from exc
        return response.choices[0].message.content or ""

    async def stream(self, prompt: str, system: str | None = None) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt, system),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                stream=True,
            )
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"OpenAI completion failed: {exc}") from exc

        try:
            async for event in response:
                if event.choices and event.choices[0].delta.content:
                    yield event.choices[0].delta.content
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"OpenAI stream failed: {exc}") from exc
        finally:
            await response.close()

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages
