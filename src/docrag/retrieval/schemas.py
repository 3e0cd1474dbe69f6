"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from docrag.chunking.schemas import ChunkMetadata

CONTINUATION = "..."


@dataclass
class RetrievalConfig:
    """Configuration for a retrieval operation."""

    top_k: int = 5
    snippet_chars: int = 150
    min_score: float = 0.0


@dataclass(frozen=True)
class RetrievalCandidate:
    """A ranked chunk returned for one query.

    ``score`` lies in [0, 1] and never increases with ``rank``; ``text``
    is the full chunk, ``snippet`` its bounded preview.
    """

    text: str
    snippet: str
    metadata: ChunkMetadata
    score: float
    rank: int
    distance: float = 0.0

    @property
    def label(self) -> str:
        """Human-readable source label, e.g. ``report.pdf (page 3)``."""
        if self.metadata.locator:
            return f"{self.metadata.document_name} ({self.metadata.locator})"
        return self.metadata.document_name


@dataclass
class RetrievalResult:
    """Result of a retrieval operation."""

    query: str
    candidates: list[RetrievalCandidate] = field(default_factory=list)
    total_candidates: int = 0


def make_snippet(text: str, limit: int = 150) -> str:
    """Truncate ``text`` to ``limit`` characters, marking the cut."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + CONTINUATION


def distance_to_score(distance: float) -> float:
    """Map cosine distance (0..2) onto a relevance score in [0, 1]."""
    return min(1.0, max(0.0, 1.0 - distance / 2.0))
