"""Abstract base class for chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace

from docrag.chunking.schemas import Chunk, ChunkMetadata


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def split_spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of each chunk, in order.

        Adjacent spans may overlap; ``text[start:end]`` is the chunk text.
        """

    def split(self, text: str) -> list[str]:
        """Split text into ordered chunk strings."""
        return [text[start:end] for start, end in self.split_spans(text)]

    def chunk(
        self,
        text: str,
        metadata: ChunkMetadata | None = None,
        start_index: int = 0,
    ) -> list[Chunk]:
        """Split text into ``Chunk`` objects numbered from ``start_index``.

        Whitespace-only spans are dropped; they carry nothing to retrieve.
        """
        meta = metadata or ChunkMetadata()
        chunks: list[Chunk] = []
        for start, end in self.split_spans(text):
            piece = text[start:end]
            if not piece.strip():
                continue
            chunks.append(Chunk(
                text=piece,
                metadata=replace(meta, chunk_index=start_index + len(chunks)),
                start=start,
                end=end,
            ))
        return chunks

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
