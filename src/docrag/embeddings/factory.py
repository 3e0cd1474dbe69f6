"""Embedding provider factory.

Instances are not cached; the caller owns the provider it constructs.
"""

from __future__ import annotations

from docrag.components import ComponentRegistry
from docrag.embeddings.base import EmbeddingProvider

_PROVIDERS: ComponentRegistry[EmbeddingProvider] = ComponentRegistry("embedding provider", [
    ("ollama", "docrag.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
    ("openai", "docrag.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
    ("huggingface", "docrag.embeddings.huggingface_provider", "HuggingFaceEmbeddingProvider"),
])


def get_embedding_provider(provider: str = "ollama", **kwargs) -> EmbeddingProvider:
    """Construct an embedding provider by name.

    Args:
        provider: One of ``ollama``, ``openai``, ``huggingface``.
        **kwargs: Passed to the provider constructor.
    """
    return _PROVIDERS.create(provider, **kwargs)


def available_providers() -> list[str]:
    return _PROVIDERS.keys()
