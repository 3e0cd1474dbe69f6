"""Data models for the RAG pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum

from docrag.documents.schemas import SourceKind
from docrag.retrieval.schemas import RetrievalCandidate


@dataclass
class IngestResult:
    """Result of document ingestion."""

    document_id: str
    name: str
    kind: SourceKind
    chunks_created: int
    chunks_stored: int
    warnings: list[str] = field(default_factory=list)


@dataclass
class QueryAnswer:
    """Output of a whole-answer query.

    ``confidence`` is a heuristic derived from retrieval, not a calibrated
    probability. ``cited`` lists candidate ranks referenced as ``[n]``.
    """

    answer: str
    candidates: list[RetrievalCandidate] = field(default_factory=list)
    confidence: float = 0.0
    cited: list[int] = field(default_factory=list)

    @property
    def cited_candidates(self) -> list[RetrievalCandidate]:
        return [c for c in self.candidates if c.rank in self.cited]


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    """One turn of a session-local conversation."""

    role: Role
    content: str
    timestamp: float = field(default_factory=time.time)
    candidates: list[RetrievalCandidate] = field(default_factory=list)
    confidence: float | None = None

    @classmethod
    def user(cls, content: str) -> ConversationMessage:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, answer: QueryAnswer) -> ConversationMessage:
        return cls(
            role=Role.ASSISTANT,
            content=answer.answer,
            candidates=list(answer.candidates),
            confidence=answer.confidence,
        )
