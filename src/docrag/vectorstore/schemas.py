"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docrag.chunking.schemas import ChunkMetadata
from docrag.documents.schemas import SourceKind


@dataclass
class VectorRecord:
    """A document chunk with its embedding, ready for storage."""

    id: str
    text: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single search hit; ``distance`` is cosine distance (0 = identical)."""

    id: str
    text: str
    distance: float
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


# ---------------------------------------------------------------------------
# Metadata serialization (shared by all backends)
# ---------------------------------------------------------------------------


def metadata_to_payload(meta: ChunkMetadata) -> dict[str, Any]:
    return {
        "document_id": meta.document_id,
        "document_name": meta.document_name,
        "source_kind": meta.source_kind.value,
        "locator": meta.locator,
        "page_number": meta.page_number,
        "chunk_index": meta.chunk_index,
        "created_at": meta.created_at,
    }


def payload_to_metadata(payload: dict[str, Any]) -> ChunkMetadata:
    return ChunkMetadata(
        document_id=payload.get("document_id", ""),
        document_name=payload.get("document_name", ""),
        source_kind=SourceKind(payload.get("source_kind", SourceKind.TEXT.value)),
        locator=payload.get("locator"),
        page_number=payload.get("page_number"),
        chunk_index=payload.get("chunk_index", 0),
        created_at=payload.get("created_at", 0.0),
    )
