"""Vector store backends — Qdrant (production) and FAISS (local)."""

from docrag.vectorstore.base import VectorStore
from docrag.vectorstore.factory import available_stores, get_vector_store
from docrag.vectorstore.schemas import SearchResult, VectorRecord

__all__ = [
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "get_vector_store",
]
