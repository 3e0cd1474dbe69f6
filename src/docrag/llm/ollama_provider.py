"""Ollama LLM provider — local-first, no API keys.

Supports Llama, Mistral, DeepSeek-R1, and any model available via Ollama.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1:8b"
DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaLLMProvider(LLMProvider):
    """Generate responses via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def generate(self, prompt: str, system: str | None = None) -> str:
        try:
            resp = await self._client.post("/api/generate", json=self._payload(prompt, system, False))
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise GenerationFailure(f"Ollama generate failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationFailure(f"Malformed Ollama generate response: {exc}") from exc
        if not isinstance(data, dict):
            raise GenerationFailure("Malformed Ollama generate response: expected a JSON object")
        if data.get("error"):
            raise GenerationFailure(f"Ollama generate error: {data['error']}")
        return data.get("response", "")

    async def stream(self, prompt: str, system: str | None = None) -> AsyncIterator[str]:
        payload = self._payload(prompt, system, True)
        try:
            async with self._client.stream("POST", "/api/generate", json=payload) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    data = json.loads(line)
                    if data.get("error"):
                        raise GenerationFailure(f"Ollama stream error: {data['error']}")
                    if data.get("response"):
                        yield data["response"]
                    if data.get("done"):
                        break
        except httpx.HTTPError as exc:
            raise GenerationFailure(f"Ollama stream failed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise GenerationFailure(f"Malformed Ollama stream line: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    def _payload(self, prompt: str, system: str | None, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": stream,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        if system:
            payload["system"] = system
        return payload
