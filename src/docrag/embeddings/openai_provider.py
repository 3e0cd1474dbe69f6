"""OpenAI embedding provider — text-embedding-3-small/large.

Requires ``openai`` and an API key via ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from typing import Any

import openai

from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import EmbeddingProviderFailure, ProviderFailureKind

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-large"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

BATCH_SIZE = 2048  # OpenAI max batch size


def classify_openai_error(exc: openai.OpenAIError) -> ProviderFailureKind:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderFailureKind.AUTH
    if isinstance(exc, openai.RateLimitError):
        return ProviderFailureKind.RATE_LIMIT
    return ProviderFailureKind.TRANSIENT


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimension: int | None = None,
        timeout: float = 60.0,
    ):
        self.model = model
        self._dimension = dimension or _DIMENSION_MAP.get(model, 1536)
        try:
            self._client: Any = openai.AsyncOpenAI(api_key=api_key, timeout=timeout)
        except openai.OpenAIError as exc:
            raise EmbeddingProviderFailure(
                f"OpenAI client misconfigured: {exc}", kind=ProviderFailureKind.AUTH
            ) from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i : i + BATCH_SIZE]
            all_embeddings.extend(await self._create(batch))
        return all_embeddings

    async def embed_query(self, query: str) -> list[float]:
        return (await self._create([query]))[0]

    @property
    def dimension(self) -> int:
        return self._dimension

    async def aclose(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    async def _create(self, batch: list[str]) -> list[list[float]]:
        kwargs: dict[str, Any] = {"model": self.model, "input": batch}
        if self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self._dimension
        try:
            resp = await self._client.embeddings.create(**kwargs)
        except openai.OpenAIError as exc:
            raise EmbeddingProviderFailure(
                f"OpenAI embedding request failed: {exc}", kind=classify_openai_error(exc)
            ) from exc
        # Sort by index to guarantee order
        return [d.embedding for d in sorted(resp.data, key=lambda x: x.index)]
