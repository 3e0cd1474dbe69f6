"""Events emitted by a streamed answer.

A stream is ``Fragment* (Sources Confidence | StreamError) End``; ``End``
is always last. ``to_dict`` gives the ``{"type", "data"}`` shape used
for newline-delimited JSON transports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from docrag.retrieval.schemas import RetrievalCandidate


@dataclass(frozen=True)
class Fragment:
    type: ClassVar[str] = "content"

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.text}


@dataclass(frozen=True)
class Sources:
    type: ClassVar[str] = "sources"

    candidates: tuple[RetrievalCandidate, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "data": [
                {
                    "rank": c.rank,
                    "document_id": c.metadata.document_id,
                    "document_name": c.metadata.document_name,
                    "locator": c.metadata.locator,
                    "snippet": c.snippet,
                    "score": round(c.score, 4),
                }
                for c in self.candidates
            ],
        }


@dataclass(frozen=True)
class Confidence:
    type: ClassVar[str] = "confidence"

    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.value}


@dataclass(frozen=True)
class StreamError:
    type: ClassVar[str] = "error"

    message: str

    @property
    def notice(self) -> str:
        """Inline notice appended after any partial answer text."""
        return f"\n\n_Error: {self.message}_"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.message}


@dataclass(frozen=True)
class End:
    type: ClassVar[str] = "end"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": None}


StreamEvent = Fragment | Sources | Confidence | StreamError | End
