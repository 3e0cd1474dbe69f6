"""Local embeddings with sentence-transformers.

Encoding is CPU/GPU bound and runs in a worker thread. Some model families
(e5, bge) expect different prefixes on queries and passages; set
``query_prefix``/``passage_prefix`` for those.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import EmbeddingProviderFailure, ProviderFailureKind

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Embed text in-process with a ``SentenceTransformer``.

    Args:
        model: Hub model name or local path.
        device: Torch device (``cpu``, ``cuda``...); auto-selected if ``None``.
        batch_size: Texts per forward pass.
        encoder: An already-loaded encoder exposing ``encode`` and
            ``get_sentence_embedding_dimension``. Skips model loading.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        device: str | None = None,
        batch_size: int = 32,
        query_prefix: str = "",
        passage_prefix: str = "",
        encoder: Any = None,
    ):
        if encoder is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as exc:
                raise ImportError(
                    "sentence-transformers required: pip install docrag[huggingface]"
                ) from exc
            encoder = SentenceTransformer(model, device=device)

        self.model = model
        self.batch_size = batch_size
        self.query_prefix = query_prefix
        self.passage_prefix = passage_prefix
        self._encoder = encoder
        self._dim: int = encoder.get_sentence_embedding_dimension()
        logger.info("Loaded sentence-transformers model %s (dim=%d)", model, self._dim)

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await self._encode([self.passage_prefix + t for t in texts])

    async def embed_query(self, query: str) -> list[float]:
        vectors = await self._encode([self.query_prefix + query])
        return vectors[0]

    @property
    def dimension(self) -> int:
        return self._dim

    async def _encode(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = await asyncio.to_thread(
                self._encoder.encode,
                texts,
                batch_size=self.batch_size,
                show_progress_bar=False,
                normalize_embeddings=True,
            )
        except (RuntimeError, ValueError) as exc:
            # torch surfaces OOM and device errors as RuntimeError
            raise EmbeddingProviderFailure(
                f"sentence-transformers encode failed: {exc}", ProviderFailureKind.TRANSIENT,
            ) from exc
        return [[float(x) for x in vec] for vec in vectors]
