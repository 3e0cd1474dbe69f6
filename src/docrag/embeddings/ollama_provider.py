"""Ollama embedding provider — local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import EmbeddingProviderFailure, ProviderFailureKind

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


def classify_http_error(exc: httpx.HTTPError) -> ProviderFailureKind:
    """Map an httpx error onto a provider failure kind."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return ProviderFailureKind.AUTH
        if status == 429:
            return ProviderFailureKind.RATE_LIMIT
    return ProviderFailureKind.TRANSIENT


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts in one ``/api/embed`` call."""
        if not texts:
            return []
        embeddings = await self._post_embed(texts)
        if len(embeddings) != len(texts):
            raise EmbeddingProviderFailure(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} inputs"
            )
        return embeddings

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query."""
        embeddings = await self._post_embed([query])
        if len(embeddings) != 1:
            raise EmbeddingProviderFailure(f"Ollama returned {len(embeddings)} embeddings for 1 query")
        return embeddings[0]

    @property
    def dimension(self) -> int:
        return self._dimension

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    async def _post_embed(self, inputs: list[str]) -> list[list[float]]:
        try:
            resp = await self._client.post(
                "/api/embed",
                json={"model": self.model, "input": inputs},
            )
            resp.raise_for_status()
            return resp.json()["embeddings"]
        except httpx.HTTPError as exc:
            raise EmbeddingProviderFailure(
                f"Ollama embedding request failed: {exc}", kind=classify_http_error(exc)
            ) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise EmbeddingProviderFailure(f"Malformed Ollama embedding response: {exc}") from exc
