"""KnowledgeBase — the explicitly constructed service object.

Owns the embedding provider, vector store, model provider, chunker and
document registry for one knowledge base. Construct it once per process
and pass it to whatever handles requests; nothing here is a module global.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

from docrag.chunking.recursive_chunker import RecursiveChunker
from docrag.config import Settings, load_settings
from docrag.documents.loader import DocumentLoader
from docrag.documents.registry import DocumentRegistry
from docrag.documents.schemas import Document, SourceKind
from docrag.documents.web import WebPageLoader
from docrag.embeddings.base import EmbeddingProvider
from docrag.embeddings.factory import get_embedding_provider
from docrag.errors import (
    ConsistencyFailure,
    EmbeddingProviderFailure,
    GenerationFailure,
    IndexFailure,
    ValidationError,
)
from docrag.llm.base import LLMProvider
from docrag.llm.factory import get_llm_provider
from docrag.pipeline.events import Confidence, End, Fragment, Sources, StreamError, StreamEvent
from docrag.pipeline.ingest import IngestPipeline
from docrag.pipeline.prompts import NO_DOCUMENTS_ANSWER, QUERY_FAILED_ANSWER
from docrag.pipeline.schemas import IngestResult, QueryAnswer
from docrag.pipeline.synthesizer import AnswerSynthesizer
from docrag.retrieval.retriever import Retriever
from docrag.retrieval.schemas import RetrievalConfig
from docrag.vectorstore.base import VectorStore
from docrag.vectorstore.factory import get_vector_store

logger = logging.getLogger(__name__)

_QUERY_FAILURES = (EmbeddingProviderFailure, IndexFailure, GenerationFailure)


class KnowledgeBase:
    """A single shared knowledge base: ingest, list, remove, query."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        llm_provider: LLMProvider,
        registry: DocumentRegistry | None = None,
        settings: Settings | None = None,
        web_loader: WebPageLoader | None = None,
    ):
        self.settings = settings if settings is not None else Settings()
        s = self.settings

        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.llm_provider = llm_provider
        self.registry = registry if registry is not None else DocumentRegistry(s.registry.path)

        self.loader = DocumentLoader(
            csv_rows_per_segment=s.ingestion.csv_rows_per_segment,
            max_file_size_mb=s.ingestion.max_file_size_mb,
        )
        self.web_loader = web_loader if web_loader is not None else WebPageLoader(
            user_agent=s.web.user_agent,
            respect_robots=s.web.respect_robots,
            follow_redirects=s.web.follow_redirects,
            timeout=s.timeouts.fetch,
        )
        self.ingest_pipeline = IngestPipeline(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            registry=self.registry,
            chunker=RecursiveChunker(s.chunking.max_chars, s.chunking.overlap_chars),
            timeouts=s.timeouts,
            sanitize=s.ingestion.sanitize,
        )
        self.retriever = Retriever(embedding_provider, vector_store, timeouts=s.timeouts)
        self.retrieval_config = RetrievalConfig(
            top_k=s.retrieval.top_k,
            snippet_chars=s.retrieval.snippet_chars,
            min_score=s.retrieval.min_score,
        )
        self.synthesizer = AnswerSynthesizer(
            llm_provider,
            settings=s.synthesis,
            generation_timeout=s.timeouts.generation,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> KnowledgeBase:
        """Build a knowledge base with providers chosen by configuration."""
        settings = settings or load_settings()

        embedding = get_embedding_provider(
            settings.embedding.provider, **_embedding_kwargs(settings)
        )
        store = get_vector_store(
            settings.vectorstore.backend, **_store_kwargs(settings, embedding.dimension)
        )
        llm = get_llm_provider(
            settings.llm.provider,
            model=settings.llm.model,
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            timeout=settings.timeouts.generation,
        )
        return cls(embedding, store, llm, settings=settings)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def startup(self) -> None:
        """Provision the vector store eagerly; raises ``IndexFailure``."""
        try:
            async with asyncio.timeout(self.settings.timeouts.index):
                await self.vector_store.ensure_ready()
        except TimeoutError as exc:
            raise IndexFailure("Vector store did not become ready in time") from exc
        logger.info(
            "Knowledge base ready (embeddings=%s, store=%s, llm=%s)",
            self.embedding_provider.model_id,
            self.vector_store.store_name(),
            self.llm_provider.provider_name(),
        )

    async def aclose(self) -> None:
        await self.web_loader.aclose()
        await self.embedding_provider.aclose()
        await self.llm_provider.aclose()
        await self.vector_store.aclose()

    async def __aenter__(self) -> KnowledgeBase:
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def add_text(self, text: str, name: str | None = None) -> IngestResult:
        """Add plain text as a new document."""
        loaded = self.loader.load_text(text, name or _text_name(text))
        return await self.ingest_pipeline.ingest(loaded)

    async def add_file(self, data: bytes, filename: str, kind: SourceKind | str) -> IngestResult:
        """Add file bytes of a declared kind (``text``, ``pdf`` or ``csv``).

        Raises:
            UnsupportedSourceKind: Unknown kind, or ``url`` (use ``add_url``).
            IngestionFailure: The bytes could not be parsed.
        """
        loaded = await asyncio.to_thread(self.loader.load_bytes, data, filename, kind)
        return await self.ingest_pipeline.ingest(loaded)

    async def add_url(self, url: str) -> IngestResult:
        """Fetch a web page and add its main text.

        Raises:
            ValidationError: Malformed URL.
            FetchFailure: The page could not be fetched or had no text.
        """
        loaded = await self.web_loader.load(url)
        return await self.ingest_pipeline.ingest(loaded)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def list_documents(self) -> list[Document]:
        return self.registry.list()

    async def remove_document(self, doc_id: str) -> bool:
        """Remove a document and all of its indexed chunks.

        Returns:
            ``False`` if the id is unknown (nothing changes).

        Raises:
            ConsistencyFailure: Index deletion failed; the document stays
                registered and its chunks remain searchable.
        """
        return await self.registry.remove_by_id(doc_id, before_remove=self._delete_from_index)

    async def clear(self) -> int:
        """Remove every document, emptying the index before the registry."""
        removed = await self.registry.clear(before_clear=self._clear_index)
        logger.info("Cleared %d documents", removed)
        return removed

    async def status(self) -> dict[str, Any]:
        return {
            "documents": len(self.registry),
            "chunks": await self.vector_store.count(),
            "embedding_model": self.embedding_provider.model_id,
            "dimension": self.embedding_provider.dimension,
            "vector_store": self.vector_store.store_name(),
            "llm": self.llm_provider.provider_name(),
        }

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def query(self, text: str) -> QueryAnswer:
        """Answer a question from the indexed documents.

        Provider and index failures degrade to an apologetic answer with
        zero confidence and no candidates.
        """
        _require_query(text)
        if not len(self.registry):
            return QueryAnswer(answer=NO_DOCUMENTS_ANSWER)

        try:
            retrieval = await self.retriever.retrieve(text, self.retrieval_config)
            answer = await self.synthesizer.synthesize(text, retrieval.candidates)
        except _QUERY_FAILURES as exc:
            logger.warning("Query failed (%s): %s", type(exc).__name__, exc)
            return QueryAnswer(answer=f"{QUERY_FAILED_ANSWER} {exc.user_message}")

        logger.info("Query answered (confidence=%.2f)", answer.confidence)
        return answer

    def query_stream(self, text: str) -> AsyncIterator[StreamEvent]:
        """Stream an answer as events; see ``AnswerSynthesizer.stream``.

        A blank query raises ``ValidationError`` here, before any event.
        """
        _require_query(text)
        return self._stream(text)

    async def _stream(self, text: str) -> AsyncIterator[StreamEvent]:
        if not len(self.registry):
            yield Fragment(NO_DOCUMENTS_ANSWER)
            yield Sources()
            yield Confidence(0.0)
            yield End()
            return

        try:
            retrieval = await self.retriever.retrieve(text, self.retrieval_config)
        except (EmbeddingProviderFailure, IndexFailure) as exc:
            logger.warning("Streaming query failed during retrieval: %s", exc)
            yield StreamError(exc.user_message)
            yield End()
            return

        async with aclosing(self.synthesizer.stream(text, retrieval.candidates)) as events:
            async for event in events:
                yield event

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    async def _delete_from_index(self, doc_id: str) -> None:
        try:
            async with asyncio.timeout(self.settings.timeouts.index):
                removed = await self.vector_store.delete_by_document(doc_id)
        except (IndexFailure, TimeoutError) as exc:
            logger.error("Index delete failed for %s; keeping registry entry: %s", doc_id, exc)
            raise ConsistencyFailure(f"Index delete failed for {doc_id}: {exc}") from exc
        logger.debug("Deleted %d chunks for %s", removed, doc_id)

    async def _clear_index(self) -> None:
        try:
            async with asyncio.timeout(self.settings.timeouts.index):
                await self.vector_store.clear()
        except (IndexFailure, TimeoutError) as exc:
            raise ConsistencyFailure(f"Index clear failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_query(text: str) -> None:
    if not text or not text.strip():
        raise ValidationError("Query is required", "Query is required.")


def _text_name(text: str, limit: int = 40) -> str:
    lines = text.strip().splitlines() if text else []
    if not lines:
        return "Untitled text"
    first_line = lines[0]
    return first_line if len(first_line) <= limit else first_line[:limit].rstrip() + "..."


def _embedding_kwargs(settings: Settings) -> dict[str, Any]:
    e = settings.embedding
    if e.provider == "huggingface":
        return {"model": e.model}
    return {"model": e.model, "dimension": e.dimension, "timeout": settings.timeouts.embedding}


def _store_kwargs(settings: Settings, dimension: int) -> dict[str, Any]:
    v = settings.vectorstore
    if v.backend == "faiss":
        return {"dimension": dimension, "path": v.path}
    return {
        "collection_name": v.collection,
        "dimension": dimension,
        "url": v.url,
        "api_key": v.api_key,
        "path": v.path,
        "timeout": int(settings.timeouts.index),
    }
