"""Document registry — lightweight per-document metadata.

Tracks which documents exist independently of chunk-level storage. All
mutation is serialized by an ``asyncio.Lock``; removal runs a caller-supplied
hook (the vector index delete) under that lock and only drops the entry when
the hook succeeds.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from docrag.documents.schemas import Document
from docrag.errors import ConsistencyFailure, NotFound

logger = logging.getLogger(__name__)

RemoveHook = Callable[[str], Awaitable[object]]


class DocumentRegistry:
    """Insertion-ordered registry of ``Document`` metadata.

    Args:
        path: Optional JSON file used to persist entries across processes.
            Loaded on construction if it exists, rewritten after every change.
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else None
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()
        if self._path is not None and self._path.exists():
            self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[Document]:
        return list(self._documents.values())

    def get(self, doc_id: str) -> Document:
        try:
            return self._documents[doc_id]
        except KeyError:
            raise NotFound(f"Unknown document id {doc_id!r}") from None

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def register(self, document: Document) -> None:
        async with self._lock:
            if document.id in self._documents:
                raise ValueError(f"Document id {document.id!r} already registered")
            self._documents[document.id] = document
            try:
                self._save()
            except OSError:
                del self._documents[document.id]
                raise
        logger.info("Registered document %s (%s, %s)", document.id, document.kind.value, document.name)

    async def remove_by_id(self, doc_id: str, before_remove: RemoveHook | None = None) -> bool:
        """Remove a document, running ``before_remove(doc_id)`` first.

        Returns:
            ``True`` if the document was found and removed, ``False`` if the
            id was never registered (the hook is not called).

        Raises:
            Whatever ``before_remove`` raises; the entry is kept in that case.
            ConsistencyFailure: The hook succeeded but persisting the
                registry failed.
        """
        async with self._lock:
            if doc_id not in self._documents:
                return False

            if before_remove is not None:
                await before_remove(doc_id)

            document = self._documents.pop(doc_id)
            try:
                self._save()
            except OSError as exc:
                self._documents[doc_id] = document
                logger.error(
                    "Index records for %s were deleted but the registry could not be saved: %s",
                    doc_id, exc,
                )
                raise ConsistencyFailure(f"Registry save failed after removing {doc_id}") from exc

        logger.info("Removed document %s", doc_id)
        return True

    async def clear(self, before_clear: Callable[[], Awaitable[object]] | None = None) -> int:
        async with self._lock:
            if before_clear is not None:
                await before_clear()
            snapshot = dict(self._documents)
            self._documents.clear()
            try:
                self._save()
            except OSError as exc:
                self._documents.update(snapshot)
                logger.error("Index was cleared but the registry could not be saved: %s", exc)
                raise ConsistencyFailure("Registry save failed after clearing the index") from exc
        return len(snapshot)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"documents": [d.to_dict() for d in self._documents.values()]}, f)
        tmp.replace(self._path)

    def _load(self) -> None:
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        for raw in data.get("documents", []):
            doc = Document.from_dict(raw)
            self._documents[doc.id] = doc
        logger.info("Loaded %d documents from %s", len(self._documents), self._path)
