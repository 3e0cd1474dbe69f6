"""LLM providers — Ollama, Anthropic, OpenAI."""

from docrag.llm.base import LLMProvider
from docrag.llm.factory import available_providers, get_llm_provider

__all__ = ["LLMProvider", "available_providers", "get_llm_provider"]
