"""Abstract base class for vector stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docrag.errors import IndexFailure
from docrag.vectorstore.schemas import SearchResult, VectorRecord


class VectorStore(ABC):
    """Interface for vector store backends.

    Similarity is cosine over raw vectors; callers need not normalize.
    Backend errors surface as ``IndexFailure``.
    """

    def __init__(self, dimension: int):
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @abstractmethod
    async def upsert(self, document_id: str, records: list[VectorRecord]) -> int:
        """Insert or replace records belonging to one document.

        Args:
            document_id: Owning document; every record's metadata must match.
            records: Chunks with embeddings.

        Returns:
            Number of records written.
        """

    @abstractmethod
    async def similarity_search(self, query_embedding: list[float], k: int = 5) -> list[SearchResult]:
        """Return up to ``k`` nearest records by increasing cosine distance.

        Returns fewer than ``k`` results when the store holds fewer records.
        """

    @abstractmethod
    async def delete_by_document(self, document_id: str) -> int:
        """Delete every record whose metadata references ``document_id``.

        Returns:
            Number of records deleted (0 if none matched).
        """

    @abstractmethod
    async def count(self, document_id: str | None = None) -> int:
        """Return the number of records, optionally for one document."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete all records."""

    async def ensure_ready(self) -> None:
        """Provision backing storage if needed (no-op by default)."""

    async def aclose(self) -> None:
        """Release connections (no-op by default)."""

    def _check_records(self, document_id: str, records: list[VectorRecord]) -> None:
        for record in records:
            if len(record.embedding) != self._dimension:
                raise IndexFailure(
                    f"Embedding dimension {len(record.embedding)} does not match "
                    f"index dimension {self._dimension}"
                )
            if record.metadata.document_id != document_id:
                raise ValueError(
                    f"Record {record.id} belongs to {record.metadata.document_id!r}, "
                    f"not {document_id!r}"
                )

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
