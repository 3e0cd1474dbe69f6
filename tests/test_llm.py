"""Tests for LLM providers — Ollama over a mock transport, factory wiring."""

from __future__ import annotations

import json

import httpx
import pytest

from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider
from docrag.llm.factory import available_providers, get_llm_provider
from docrag.llm.ollama_provider import OllamaLLMProvider

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ollama(handler) -> OllamaLLMProvider:
    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    return OllamaLLMProvider(model="test-model", temperature=0.2, max_tokens=50, client=client)


def _ndjson(*events: dict) -> bytes:
    return "".join(json.dumps(e) + "\n" for e in events).encode()


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class TestLLMProviderABC:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore[abstract]

    def test_provider_name(self):
        assert OllamaLLMProvider.provider_name() == "OllamaLLMProvider"


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class TestOllamaLLMProvider:
    @pytest.mark.asyncio
    async def test_generate(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"response": "Paris.", "done": True})

        answer = await _ollama(handler).generate("Capital of France?", system="Be brief.")
        assert answer == "Paris."
        payload = seen[0]
        assert payload["model"] == "test-model"
        assert payload["stream"] is False
        assert payload["system"] == "Be brief."
        assert payload["options"] == {"temperature": 0.2, "num_predict": 50}

    @pytest.mark.asyncio
    async def test_generate_http_error(self):
        with pytest.raises(GenerationFailure):
            await _ollama(lambda request: httpx.Response(500)).generate("hi")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"<html>gateway</html>", b"[1, 2]", b'{"error": "model not found"}'])
    async def test_generate_malformed_body(self, body: bytes):
        provider = _ollama(lambda request: httpx.Response(200, content=body))
        with pytest.raises(GenerationFailure):
            await provider.generate("hi")

    @pytest.mark.asyncio
    async def test_stream_fragments(self):
        body = _ndjson(
            {"response": "Par", "done": False},
            {"response": "is", "done": False},
            {"response": ".", "done": False},
            {"response": "", "done": True},
        )
        provider = _ollama(lambda request: httpx.Response(200, content=body))
        fragments = [f async for f in provider.stream("Capital of France?")]
        assert fragments == ["Par", "is", "."]

    @pytest.mark.asyncio
    async def test_stream_stops_at_done(self):
        body = _ndjson({"response": "A", "done": True}, {"response": "ignored", "done": False})
        provider = _ollama(lambda request: httpx.Response(200, content=body))
        assert [f async for f in provider.stream("x")] == ["A"]

    @pytest.mark.asyncio
    async def test_stream_error_line(self):
        body = _ndjson({"response": "partial", "done": False}, {"error": "model crashed"})
        provider = _ollama(lambda request: httpx.Response(200, content=body))
        received: list[str] = []
        with pytest.raises(GenerationFailure):
            async for fragment in provider.stream("x"):
                received.append(fragment)
        assert received == ["partial"]

    @pytest.mark.asyncio
    async def test_stream_http_error(self):
        provider = _ollama(lambda request: httpx.Response(404))
        with pytest.raises(GenerationFailure):
            async for _ in provider.stream("x"):
                pass


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestLLMFactory:
    def test_available_providers(self):
        assert set(available_providers()) == {"ollama", "anthropic", "openai"}

    def test_get_ollama(self):
        provider = get_llm_provider("ollama", model="mistral")
        assert isinstance(provider, OllamaLLMProvider)
        assert provider.model == "mistral"

    def test_get_openai(self):
        from docrag.llm.openai_provider import OpenAILLMProvider

        provider = get_llm_provider("openai", api_key="sk-test")
        assert isinstance(provider, OpenAILLMProvider)
        assert provider.model == "gpt-4o-mini"

    def test_get_anthropic(self):
        from docrag.llm.anthropic_provider import AnthropicLLMProvider

        provider = get_llm_provider("anthropic", api_key="sk-ant-test")
        assert isinstance(provider, AnthropicLLMProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm_provider("nonexistent")
