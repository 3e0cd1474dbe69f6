"""Data models for document ingestion."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class SourceKind(StrEnum):
    """Closed set of supported source kinds."""

    TEXT = "text"
    PDF = "pdf"
    CSV = "csv"
    WEB_PAGE = "url"


@dataclass(frozen=True)
class Document:
    """Registry-level metadata for one ingested document.

    Immutable once created; removal is the only lifecycle transition.
    """

    id: str
    name: str
    kind: SourceKind
    created_at: float = field(default_factory=time.time)
    size_bytes: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        return cls(
            id=data["id"],
            name=data["name"],
            kind=SourceKind(data["kind"]),
            created_at=data.get("created_at", time.time()),
            size_bytes=data.get("size_bytes"),
        )


@dataclass(frozen=True)
class Segment:
    """A normalized slice of source text that is chunked independently.

    ``locator`` identifies where the segment came from: ``"page 3"`` for
    PDFs, ``"rows 4-6"`` for CSVs, ``None`` for text and web pages.
    """

    text: str
    locator: str | None = None
    page_number: int | None = None


@dataclass
class LoadResult:
    """Result of normalizing a single source.

    Attributes:
        segments: Independently chunkable text segments, in source order.
        name: Display name or source locator (filename, URL).
        kind: The source kind the adapter handled.
        size_bytes: Raw input size, when known.
        warnings: Non-fatal issues encountered during loading.
    """

    segments: list[Segment]
    name: str
    kind: SourceKind
    size_bytes: int | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n\n".join(s.text for s in self.segments)

    @property
    def char_count(self) -> int:
        return sum(len(s.text) for s in self.segments)
