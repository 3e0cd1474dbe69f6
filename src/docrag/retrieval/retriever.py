"""Retriever — embed query, search vector store, rank candidates."""

from __future__ import annotations

import asyncio
import logging

from docrag.config import TimeoutSettings
from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import EmbeddingProviderFailure, IndexFailure, ProviderFailureKind
from docrag.retrieval.schemas import (
    RetrievalCandidate,
    RetrievalConfig,
    RetrievalResult,
    distance_to_score,
    make_snippet,
)
from docrag.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)


class Retriever:
    """Orchestrates embedding → search → scoring.

    The embedding provider must be the one the index was built with;
    ``KnowledgeBase`` wires the same instance into ingestion and retrieval.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        timeouts: TimeoutSettings | None = None,
    ):
        if embedding_provider.dimension != vector_store.dimension:
            raise ValueError(
                f"Embedding dimension {embedding_provider.dimension} does not match "
                f"vector store dimension {vector_store.dimension}"
            )
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.timeouts = timeouts or TimeoutSettings()

    async def retrieve(
        self,
        query: str,
        config: RetrievalConfig | None = None,
    ) -> RetrievalResult:
        """Run a full retrieval: embed → search → score → filter.

        An empty query or an empty index yields no candidates.

        Raises:
            EmbeddingProviderFailure: Query embedding failed or timed out.
            IndexFailure: Search failed or timed out.
        """
        cfg = config or RetrievalConfig()

        if not query or not query.strip():
            return RetrievalResult(query=query)
        if await self._count() == 0:
            logger.debug("Index is empty; skipping retrieval")
            return RetrievalResult(query=query)

        # Step 1: Embed the query
        try:
            async with asyncio.timeout(self.timeouts.embedding):
                query_embedding = await self.embedding_provider.embed_query(query)
        except TimeoutError as exc:
            raise EmbeddingProviderFailure(
                f"Query embedding timed out after {self.timeouts.embedding}s",
                ProviderFailureKind.TRANSIENT,
            ) from exc

        # Step 2: Search the vector store
        try:
            async with asyncio.timeout(self.timeouts.index):
                hits = await self.vector_store.similarity_search(query_embedding, k=cfg.top_k)
        except TimeoutError as exc:
            raise IndexFailure(f"Search timed out after {self.timeouts.index}s") from exc

        total_candidates = len(hits)

        # Step 3: Score, filter and rank
        hits = sorted(hits, key=lambda h: h.distance)
        candidates: list[RetrievalCandidate] = []
        for hit in hits:
            score = distance_to_score(hit.distance)
            if score < cfg.min_score:
                continue
            candidates.append(RetrievalCandidate(
                text=hit.text,
                snippet=make_snippet(hit.text, cfg.snippet_chars),
                metadata=hit.metadata,
                score=score,
                rank=len(candidates),
                distance=hit.distance,
            ))

        logger.info(
            "Retrieved %d candidates for query (searched=%d)",
            len(candidates),
            total_candidates,
        )

        return RetrievalResult(
            query=query,
            candidates=candidates,
            total_candidates=total_candidates,
        )

    async def _count(self) -> int:
        try:
            async with asyncio.timeout(self.timeouts.index):
                return await self.vector_store.count()
        except TimeoutError as exc:
            raise IndexFailure(f"Index count timed out after {self.timeouts.index}s") from exc
