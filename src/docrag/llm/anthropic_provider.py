"""Anthropic Claude LLM provider.

Requires ``anthropic`` and ``ANTHROPIC_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import anthropic

from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(LLMProvider):
    """Generate responses via the Anthropic API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def generate(self, prompt: str, system: str | None = None) -> str:
        try:
            response = await self._client.messages.create(**self._kwargs(prompt, system))
        except anthropic.AnthropicError as exc:
            raise GenerationFailure(f"Anthropic completion failed: {exc}") from exc
        return "".join(block.text for block in response.content if block.type == "text")

    async def stream(self, prompt: str, system: str | None = None) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(**self._kwargs(prompt, system)) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.AnthropicError as exc:
            raise GenerationFailure(f"Anthropic stream failed: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.close()

    def _kwargs(self, prompt: str, system: str | None) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        return kwargs
