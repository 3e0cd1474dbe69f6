"""Qdrant vector store — production-grade with native payload filtering.

Supports Qdrant server/Cloud (``url``), embedded on-disk storage (``path``)
and an in-memory instance for tests. The collection is created on first
use with a fixed dimension and cosine distance.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from qdrant_client import AsyncQdrantClient, models
from qdrant_client.local.async_qdrant_local import AsyncQdrantLocal

from docrag.errors import IndexFailure
from docrag.vectorstore.base import VectorStore
from docrag.vectorstore.schemas import (
    SearchResult,
    VectorRecord,
    metadata_to_payload,
    payload_to_metadata,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "rag-documents"


@asynccontextmanager
async def _index_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except IndexFailure:
        raise
    except Exception as exc:
        raise IndexFailure(f"Qdrant {action} failed: {exc}") from exc


class QdrantStore(VectorStore):
    """Qdrant-backed vector store."""

    def __init__(
        self,
        collection_name: str = DEFAULT_COLLECTION,
        dimension: int = 768,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
        timeout: int = 15,
        client: AsyncQdrantClient | None = None,
    ):
        super().__init__(dimension)
        self._collection_name = collection_name

        if client is not None:
            self._client = client
        elif url:
            self._client = AsyncQdrantClient(url=url, api_key=api_key, timeout=timeout)
        elif path:
            self._client = AsyncQdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = AsyncQdrantClient(location=":memory:")
        # Local mode filters by scanning and warns on payload indexes
        self._local = isinstance(getattr(self._client, "_client", None), AsyncQdrantLocal)

        self._ready = False
        self._ready_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Collection provisioning
    # ------------------------------------------------------------------

    async def ensure_ready(self) -> None:
        """Create the collection if absent; safe under concurrent first calls."""
        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            async with _index_errors("collection setup"):
                if await self._client.collection_exists(self._collection_name):
                    await self._check_dimension()
                else:
                    await self._client.create_collection(
                        collection_name=self._collection_name,
                        vectors_config=models.VectorParams(
                            size=self._dimension,
                            distance=models.Distance.COSINE,
                        ),
                    )
                    if not self._local:
                        await self._client.create_payload_index(
                            collection_name=self._collection_name,
                            field_name="document_id",
                            field_schema=models.PayloadSchemaType.KEYWORD,
                        )
                    logger.info(
                        "Created Qdrant collection '%s' (dim=%d)",
                        self._collection_name, self._dimension,
                    )
            self._ready = True

    async def _check_dimension(self) -> None:
        info = await self._client.get_collection(self._collection_name)
        vectors = info.config.params.vectors
        size = getattr(vectors, "size", None)
        if size is not None and size != self._dimension:
            raise IndexFailure(
                f"Collection '{self._collection_name}' has dimension {size}, "
                f"embedding provider produces {self._dimension}"
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, document_id: str, records: list[VectorRecord]) -> int:
        if not records:
            return 0
        self._check_records(document_id, records)
        await self.ensure_ready()

        points = []
        for record in records:
            payload = metadata_to_payload(record.metadata)
            payload["text"] = record.text
            points.append(models.PointStruct(
                id=record.id,
                vector=record.embedding,
                payload=payload,
            ))

        async with _index_errors("upsert"):
            await self._client.upsert(
                collection_name=self._collection_name,
                points=points,
                wait=True,
            )

        logger.info("QdrantStore upserted %d records for %s", len(records), document_id)
        return len(records)

    async def similarity_search(self, query_embedding: list[float], k: int = 5) -> list[SearchResult]:
        if k <= 0:
            return []
        await self.ensure_ready()

        async with _index_errors("search"):
            response = await self._client.query_points(
                collection_name=self._collection_name,
                query=query_embedding,
                limit=k,
                with_payload=True,
            )

        results: list[SearchResult] = []
        for point in response.points:
            payload = point.payload or {}
            similarity = point.score if point.score is not None else 0.0
            results.append(SearchResult(
                id=str(point.id),
                text=payload.get("text", ""),
                distance=1.0 - similarity,
                metadata=payload_to_metadata(payload),
            ))
        return results

    async def delete_by_document(self, document_id: str) -> int:
        await self.ensure_ready()
        async with _index_errors("delete"):
            matched = await self.count(document_id)
            if matched:
                await self._client.delete(
                    collection_name=self._collection_name,
                    points_selector=models.FilterSelector(filter=self._document_filter(document_id)),
                    wait=True,
                )
        logger.info("QdrantStore deleted %d records for %s", matched, document_id)
        return matched

    async def count(self, document_id: str | None = None) -> int:
        await self.ensure_ready()
        async with _index_errors("count"):
            result = await self._client.count(
                collection_name=self._collection_name,
                count_filter=self._document_filter(document_id) if document_id else None,
                exact=True,
            )
        return result.count

    async def clear(self) -> None:
        async with self._ready_lock:
            async with _index_errors("clear"):
                if await self._client.collection_exists(self._collection_name):
                    await self._client.delete_collection(self._collection_name)
            self._ready = False
        await self.ensure_ready()

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def _document_filter(document_id: str) -> models.Filter:
        return models.Filter(must=[
            models.FieldCondition(
                key="document_id",
                match=models.MatchValue(value=document_id),
            )
        ])
