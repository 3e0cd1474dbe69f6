"""Answer synthesis: grounding prompt → model → answer + confidence."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

from docrag.config import SynthesisSettings
from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider
from docrag.pipeline.citations import extract_citations
from docrag.pipeline.events import Confidence, End, Fragment, Sources, StreamError, StreamEvent
from docrag.pipeline.prompts import NO_RELEVANT_INFO_ANSWER, RAG_SYSTEM_PROMPT, build_rag_prompt
from docrag.pipeline.schemas import QueryAnswer
from docrag.retrieval.schemas import RetrievalCandidate

logger = logging.getLogger(__name__)


class AnswerSynthesizer:
    """Builds grounded answers from retrieval candidates.

    With no candidates the model is never called. Confidence is
    ``min(cap, base + step * len(candidates))``, a retrieval heuristic
    and not a calibrated probability.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        settings: SynthesisSettings | None = None,
        generation_timeout: float = 120.0,
        system_prompt: str = RAG_SYSTEM_PROMPT,
    ):
        self.llm_provider = llm_provider
        self.settings = settings or SynthesisSettings()
        self.generation_timeout = generation_timeout
        self.system_prompt = system_prompt

    def confidence(self, candidates: Sequence[RetrievalCandidate]) -> float:
        if not candidates:
            return 0.0
        s = self.settings
        return min(s.confidence_cap, s.confidence_base + s.confidence_step * len(candidates))

    async def synthesize(self, query: str, candidates: Sequence[RetrievalCandidate]) -> QueryAnswer:
        """Generate a whole answer.

        Raises:
            GenerationFailure: The model failed, timed out or returned nothing.
        """
        if not candidates:
            return QueryAnswer(answer=NO_RELEVANT_INFO_ANSWER)

        prompt = build_rag_prompt(query, candidates)
        try:
            async with asyncio.timeout(self.generation_timeout):
                answer = await self.llm_provider.generate(prompt, system=self.system_prompt)
        except TimeoutError as exc:
            raise GenerationFailure(
                f"Generation timed out after {self.generation_timeout}s",
                "The model took too long to answer.",
            ) from exc

        if not answer or not answer.strip():
            raise GenerationFailure("Model returned no content")

        cited = extract_citations(answer, candidates)
        logger.info("Answer generated: %d candidates, %d cited", len(candidates), len(cited))

        return QueryAnswer(
            answer=answer,
            candidates=list(candidates),
            confidence=self.confidence(candidates),
            cited=cited,
        )

    async def stream(
        self,
        query: str,
        candidates: Sequence[RetrievalCandidate],
    ) -> AsyncIterator[StreamEvent]:
        """Yield answer fragments, then sources and confidence, then ``End``.

        On model failure the fragments already yielded stand, followed by
        ``StreamError`` and ``End``. Closing this generator closes the
        upstream model stream.
        """
        if not candidates:
            yield Fragment(NO_RELEVANT_INFO_ANSWER)
            yield Sources()
            yield Confidence(0.0)
            yield End()
            return

        prompt = build_rag_prompt(query, candidates)
        emitted = 0
        failure: GenerationFailure | None = None

        try:
            async with aclosing(self.llm_provider.stream(prompt, system=self.system_prompt)) as fragments:
                while True:
                    try:
                        async with asyncio.timeout(self.generation_timeout):
                            text = await anext(fragments)
                    except StopAsyncIteration:
                        break
                    if text:
                        emitted += 1
                        yield Fragment(text)
        except TimeoutError:
            failure = GenerationFailure(
                f"Stream stalled for {self.generation_timeout}s",
                "The model took too long to answer.",
            )
        except GenerationFailure as exc:
            failure = exc

        if failure is None and emitted == 0:
            failure = GenerationFailure("Model returned no content")

        if failure is not None:
            logger.warning("Streaming generation failed after %d fragments: %s", emitted, failure)
            yield StreamError(failure.user_message)
            yield End()
            return

        yield Sources(tuple(candidates))
        yield Confidence(self.confidence(candidates))
        yield End()
