"""LLM provider factory."""

from __future__ import annotations

from docrag.components import ComponentRegistry
from docrag.llm.base import LLMProvider

_PROVIDERS: ComponentRegistry[LLMProvider] = ComponentRegistry("LLM provider", [
    ("ollama", "docrag.llm.ollama_provider", "OllamaLLMProvider"),
    ("anthropic", "docrag.llm.anthropic_provider", "AnthropicLLMProvider"),
    ("openai", "docrag.llm.openai_provider", "OpenAILLMProvider"),
])


def get_llm_provider(provider: str = "ollama", **kwargs) -> LLMProvider:
    """Construct a generation model provider by name (``ollama``, ``anthropic``, ``openai``)."""
    return _PROVIDERS.create(provider, **kwargs)


def available_providers() -> list[str]:
    return _PROVIDERS.keys()
