"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class LLMProvider(ABC):
    """Interface for LLM response generation.

    Implementations raise ``GenerationFailure`` for any model or transport
    error. ``stream`` is an async generator: closing it (``aclose()``) or
    cancelling the consuming task must release the upstream connection.
    """

    @abstractmethod
    async def generate(self, prompt: str, system: str | None = None) -> str:
        """Generate a response from the LLM.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.

        Returns:
            Generated text response.
        """

    @abstractmethod
    def stream(self, prompt: str, system: str | None = None) -> AsyncIterator[str]:
        """Yield the response incrementally as text fragments."""

    async def aclose(self) -> None:
        """Release network resources (no-op by default)."""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
