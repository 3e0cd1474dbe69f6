"""FAISS vector store — local, zero infrastructure.

Vectors are L2-normalized on the way in so inner product equals cosine
similarity. An ``IndexIDMap2`` keeps stable integer ids, which makes
per-document deletion a direct ``remove_ids`` call.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path

import numpy as np

from docrag.errors import IndexFailure
from docrag.vectorstore.base import VectorStore
from docrag.vectorstore.schemas import SearchResult, VectorRecord, payload_to_metadata

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed in-process vector store."""

    def __init__(self, dimension: int = 768, path: str | None = None):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError("faiss-cpu required: pip install docrag[faiss]") from exc

        super().__init__(dimension)
        self._faiss = faiss
        self._path = path
        self._index = self._new_index()
        self._records: dict[int, dict] = {}  # int id -> {id, text, metadata}
        self._next_id = 0

        if path and (Path(path) / "index.faiss").exists():
            self.load(path)

    def _new_index(self):
        return self._faiss.IndexIDMap2(self._faiss.IndexFlatIP(self._dimension))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, document_id: str, records: list[VectorRecord]) -> int:
        if not records:
            return 0
        self._check_records(document_id, records)

        with self._write_guard("upsert"):
            # Replace records that already exist under the same string id
            incoming = {r.id for r in records}
            stale = [i for i, rec in self._records.items() if rec["id"] in incoming]
            if stale:
                self._remove(stale)

            vectors = np.array([r.embedding for r in records], dtype=np.float32)
            self._faiss.normalize_L2(vectors)

            ids = np.arange(self._next_id, self._next_id + len(records), dtype=np.int64)
            self._index.add_with_ids(vectors, ids)

            for int_id, record in zip(ids.tolist(), records, strict=True):
                self._records[int_id] = {
                    "id": record.id,
                    "text": record.text,
                    "metadata": record.metadata,
                }

            self._next_id += len(records)
            self._persist()
        logger.info("FAISSStore added %d records for %s (total: %d)", len(records), document_id, len(self._records))
        return len(records)

    async def similarity_search(self, query_embedding: list[float], k: int = 5) -> list[SearchResult]:
        if self._index.ntotal == 0 or k <= 0:
            return []

        query_vec = np.array([query_embedding], dtype=np.float32)
        self._faiss.normalize_L2(query_vec)

        fetch_k = min(k, self._index.ntotal)
        scores, indices = self._index.search(query_vec, fetch_k)

        results: list[SearchResult] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1:
                continue
            record = self._records.get(int(idx))
            if record is None:
                continue
            results.append(SearchResult(
                id=record["id"],
                text=record["text"],
                distance=1.0 - float(score),
                metadata=record["metadata"],
            ))
        return results

    async def delete_by_document(self, document_id: str) -> int:
        doomed = [
            int_id for int_id, rec in self._records.items()
            if rec["metadata"].document_id == document_id
        ]
        if doomed:
            with self._write_guard("delete"):
                self._remove(doomed)
                self._persist()
        logger.info("FAISSStore deleted %d records for %s", len(doomed), document_id)
        return len(doomed)

    async def count(self, document_id: str | None = None) -> int:
        if document_id is None:
            return len(self._records)
        return sum(1 for rec in self._records.values() if rec["metadata"].document_id == document_id)

    async def clear(self) -> None:
        with self._write_guard("clear"):
            self._index = self._new_index()
            self._records = {}
            self._next_id = 0
            self._persist()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: str) -> None:
        """Save FAISS index and metadata to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))

        serializable = {
            str(int_id): {
                "id": record["id"],
                "text": record["text"],
                "metadata": {**asdict(record["metadata"]), "source_kind": record["metadata"].source_kind.value},
            }
            for int_id, record in self._records.items()
        }
        with open(p / "metadata.json", "w", encoding="utf-8") as f:
            json.dump({"records": serializable, "next_id": self._next_id, "dimension": self._dimension}, f)

        logger.debug("FAISSStore saved to %s (%d records)", path, len(self._records))

    def load(self, path: str) -> None:
        """Load FAISS index and metadata from disk."""
        p = Path(path)

        with open(p / "metadata.json", encoding="utf-8") as f:
            data = json.load(f)
        if data.get("dimension", self._dimension) != self._dimension:
            raise ValueError(
                f"Stored index has dimension {data['dimension']}, expected {self._dimension}"
            )

        self._index = self._faiss.read_index(str(p / "index.faiss"))
        self._records = {
            int(str_id): {
                "id": record["id"],
                "text": record["text"],
                "metadata": payload_to_metadata(record["metadata"]),
            }
            for str_id, record in data["records"].items()
        }
        self._next_id = data.get("next_id", len(self._records))
        logger.info("FAISSStore loaded from %s (%d records)", path, len(self._records))

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _remove(self, int_ids: list[int]) -> None:
        self._index.remove_ids(np.array(int_ids, dtype=np.int64))
        for int_id in int_ids:
            self._records.pop(int_id, None)

    def _persist(self) -> None:
        if self._path:
            self.save(self._path)

    @contextmanager
    def _write_guard(self, action: str) -> Iterator[None]:
        """Apply a write all-or-nothing; on failure restore the prior state."""
        index = self._faiss.clone_index(self._index)
        records = dict(self._records)
        next_id = self._next_id
        try:
            yield
        except Exception as exc:
            self._index, self._records, self._next_id = index, records, next_id
            if isinstance(exc, IndexFailure):
                raise
            raise IndexFailure(f"FAISS {action} failed: {exc}") from exc
