"""Ingestion pipeline — load result → sanitize → chunk → embed → store → register.

A document is all-or-nothing: it is registered only after every chunk is
stored, and a failed upsert is followed by a compensating delete so no
orphaned records remain in the index.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from docrag.chunking.base import BaseChunker
from docrag.chunking.recursive_chunker import RecursiveChunker
from docrag.chunking.schemas import Chunk, ChunkMetadata
from docrag.config import TimeoutSettings
from docrag.documents.registry import DocumentRegistry
from docrag.documents.sanitize import sanitize_document_text
from docrag.documents.schemas import Document, LoadResult
from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import (
    EmbeddingProviderFailure,
    IndexFailure,
    IngestionFailure,
    ProviderFailureKind,
    RAGError,
)
from docrag.pipeline.schemas import IngestResult
from docrag.vectorstore.base import VectorStore
from docrag.vectorstore.schemas import VectorRecord

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates document ingestion for already-loaded sources."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        registry: DocumentRegistry,
        chunker: BaseChunker | None = None,
        timeouts: TimeoutSettings | None = None,
        sanitize: bool = True,
        batch_size: int = 32,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.registry = registry
        self.chunker = chunker or RecursiveChunker()
        self.timeouts = timeouts or TimeoutSettings()
        self.sanitize = sanitize
        self.batch_size = batch_size

    async def ingest(self, loaded: LoadResult) -> IngestResult:
        """Store a loaded source and register it as a new document.

        Raises:
            IngestionFailure: The source produced no chunks, or the registry
                could not record it.
            EmbeddingProviderFailure: Embedding failed; nothing was stored.
            IndexFailure: Storing failed; partial records were removed.
        """
        document = Document(
            id=uuid.uuid4().hex,
            name=loaded.name,
            kind=loaded.kind,
            created_at=time.time(),
            size_bytes=loaded.size_bytes,
        )
        warnings = list(loaded.warnings)

        # Step 1: Chunk each segment, keeping its locator
        chunks = self._chunk(document, loaded)
        if not chunks:
            raise IngestionFailure(
                f"{loaded.name} produced no chunks",
                "The document contains no extractable text.",
            )

        # Step 2: Embed in batches
        embeddings = await self._embed([c.text for c in chunks])

        records = [
            VectorRecord(
                id=str(uuid.uuid4()),
                text=chunk.text,
                embedding=embedding,
                metadata=chunk.metadata,
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

        # Step 3: Store as one batch
        try:
            async with asyncio.timeout(self.timeouts.index):
                stored = await self.vector_store.upsert(document.id, records)
        except BaseException as exc:
            # Cancellation must not leave orphaned records behind
            await asyncio.shield(self._compensate(document.id))
            if isinstance(exc, TimeoutError):
                raise IndexFailure(f"Upsert timed out after {self.timeouts.index}s") from exc
            if isinstance(exc, Exception) and not isinstance(exc, RAGError):
                raise IndexFailure(f"Upsert failed for {document.id}: {exc}") from exc
            raise

        # Step 4: Register only once stored
        try:
            await self.registry.register(document)
        except BaseException as exc:
            await asyncio.shield(self._compensate(document.id))
            if isinstance(exc, OSError):
                raise IngestionFailure(f"Registry save failed for {document.id}: {exc}") from exc
            raise

        logger.info(
            "Ingested %s (%s): %d segments → %d chunks → %d stored",
            document.name,
            document.id,
            len(loaded.segments),
            len(chunks),
            stored,
        )

        return IngestResult(
            document_id=document.id,
            name=document.name,
            kind=document.kind,
            chunks_created=len(chunks),
            chunks_stored=stored,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _chunk(self, document: Document, loaded: LoadResult) -> list[Chunk]:
        chunks: list[Chunk] = []
        for segment in loaded.segments:
            text = sanitize_document_text(segment.text) if self.sanitize else segment.text
            meta = ChunkMetadata(
                document_id=document.id,
                document_name=document.name,
                source_kind=document.kind,
                locator=segment.locator,
                page_number=segment.page_number,
                created_at=document.created_at,
            )
            chunks.extend(self.chunker.chunk(text, metadata=meta, start_index=len(chunks)))
        return chunks

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        all_embeddings: list[list[float]] = []
        try:
            async with asyncio.timeout(self.timeouts.embedding):
                for i in range(0, len(texts), self.batch_size):
                    batch = texts[i : i + self.batch_size]
                    all_embeddings.extend(await self.embedding_provider.embed_texts(batch))
        except TimeoutError as exc:
            raise EmbeddingProviderFailure(
                f"Embedding timed out after {self.timeouts.embedding}s",
                ProviderFailureKind.TRANSIENT,
            ) from exc

        if len(all_embeddings) != len(texts):
            raise EmbeddingProviderFailure(
                f"Expected {len(texts)} embeddings, got {len(all_embeddings)}",
                ProviderFailureKind.TRANSIENT,
            )
        return all_embeddings

    async def _compensate(self, document_id: str) -> None:
        """Delete whatever part of a failed document reached the index."""
        try:
            async with asyncio.timeout(self.timeouts.index):
                removed = await self.vector_store.delete_by_document(document_id)
        except Exception as exc:
            logger.error("Compensating delete for %s failed: %s", document_id, exc)
            return
        if removed:
            logger.warning("Rolled back %d partially stored records for %s", removed, document_id)
