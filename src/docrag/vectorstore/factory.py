"""Vector store factory."""

from __future__ import annotations

from docrag.components import ComponentRegistry
from docrag.vectorstore.base import VectorStore

_STORES: ComponentRegistry[VectorStore] = ComponentRegistry("vector store", [
    ("qdrant", "docrag.vectorstore.qdrant_store", "QdrantStore"),
    ("faiss", "docrag.vectorstore.faiss_store", "FAISSStore"),
])


def get_vector_store(provider: str = "qdrant", **kwargs) -> VectorStore:
    """Construct a vector store by name.

    Args:
        provider: One of ``qdrant``, ``faiss``.
        **kwargs: Passed to the store constructor, e.g. ``dimension``.
    """
    return _STORES.create(provider, **kwargs)


def available_stores() -> list[str]:
    return _STORES.keys()
