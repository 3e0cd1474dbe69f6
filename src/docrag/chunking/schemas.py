"""Data models for chunks."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from docrag.documents.schemas import SourceKind


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk — stored alongside embeddings."""

    document_id: str = ""
    document_name: str = ""
    source_kind: SourceKind = SourceKind.TEXT
    locator: str | None = None
    page_number: int | None = None
    chunk_index: int = 0
    created_at: float = field(default_factory=time.time)


@dataclass
class Chunk:
    """A single retrievable piece of a document.

    ``start``/``end`` are character offsets into the segment text the
    chunk was cut from.
    """

    text: str
    metadata: ChunkMetadata
    start: int = 0
    end: int = 0

    @property
    def chunk_index(self) -> int:
        return self.metadata.chunk_index
