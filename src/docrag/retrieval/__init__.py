"""Retrieval — similarity search and candidate ranking."""

from docrag.retrieval.retriever import Retriever
from docrag.retrieval.schemas import RetrievalCandidate, RetrievalConfig, RetrievalResult

__all__ = ["RetrievalCandidate", "RetrievalConfig", "RetrievalResult", "Retriever"]
