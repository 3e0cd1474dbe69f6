"""Error hierarchy for ingestion, retrieval and answer synthesis.

Every error carries a short ``user_message`` suitable for display; the
exception text itself may hold diagnostic detail for logs.
"""

from __future__ import annotations

from enum import StrEnum


class RAGError(Exception):
    """Base class for all docrag errors."""

    user_message = "Something went wrong while processing your request."

    def __init__(self, detail: str = "", user_message: str | None = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(RAGError):
    """Empty or malformed input rejected at the boundary."""

    user_message = "The request is missing required input."


class UnsupportedSourceKind(RAGError):
    user_message = "This file type is not supported."


class IngestionFailure(RAGError):
    """Parsing or fetching a source failed; nothing was stored."""

    user_message = "The document could not be processed."


class ProviderFailureKind(StrEnum):
    AUTH = "auth"
    TRANSIENT = "transient"
    RATE_LIMIT = "rate_limit"


class EmbeddingProviderFailure(RAGError):
    user_message = "The embedding service is unavailable."

    def __init__(
        self,
        detail: str = "",
        kind: ProviderFailureKind = ProviderFailureKind.TRANSIENT,
        user_message: str | None = None,
    ):
        super().__init__(detail, user_message)
        self.kind = kind


class IndexFailure(RAGError):
    user_message = "The vector store is unavailable."


class GenerationFailure(RAGError):
    user_message = "The answer could not be generated."


class NotFound(RAGError):
    user_message = "Document not found."


class ConsistencyFailure(RAGError):
    """The registry and the vector index could not be kept in step."""

    user_message = "The document could not be removed cleanly; please retry."


class FetchFailureReason(StrEnum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    DISALLOWED = "disallowed"
    UNSUPPORTED_CONTENT = "unsupported_content"
    EMPTY_CONTENT = "empty_content"


class FetchFailure(IngestionFailure):
    """A web page could not be turned into text."""

    user_message = "The web page could not be fetched."

    def __init__(
        self,
        detail: str,
        reason: FetchFailureReason,
        status_code: int | None = None,
        user_message: str | None = None,
    ):
        super().__init__(detail, user_message)
        self.reason = reason
        self.status_code = status_code
