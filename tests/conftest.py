"""Shared fixtures for tests — deterministic doubles, no network calls."""

from __future__ import annotations

import asyncio
import math
import re
import textwrap
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from docrag.chunking.schemas import ChunkMetadata
from docrag.documents.registry import DocumentRegistry
from docrag.documents.schemas import SourceKind
from docrag.embeddings.base import EmbeddingProvider
from docrag.errors import GenerationFailure
from docrag.llm.base import LLMProvider
from docrag.service import KnowledgeBase
from docrag.vectorstore.faiss_store import FAISSStore

DIM = 128

_STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in",
    "is", "it", "of", "on", "or", "that", "the", "this", "to", "was",
    "what", "which", "who", "with",
}
_TOKEN_RE = re.compile(r"[a-z0-9]+")

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class KeywordEmbedder(EmbeddingProvider):
    """Bag-of-words embedder: each content word gets its own dimension.

    Words are assigned dimensions in order of first appearance, so two
    texts are similar exactly when they share words. Dimension 0 holds a
    small constant so no vector is all zeros.
    """

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.model = "keywords"
        self.vocabulary: dict[str, int] = {}
        self.calls = 0

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [self._embed(t) for t in texts]

    async def embed_query(self, query: str) -> list[float]:
        self.calls += 1
        return self._embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _embed(self, text: str) -> list[float]:
        vec = [0.0] * self._dim
        vec[0] = 0.1
        for word in _TOKEN_RE.findall(text.lower()):
            if word in _STOPWORDS:
                continue
            slot = self.vocabulary.setdefault(word, 1 + len(self.vocabulary) % (self._dim - 1))
            vec[slot] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        return [v / norm for v in vec]


class ScriptedLLM(LLMProvider):
    """Answers by quoting the first context block of the prompt.

    Tracks call counts, how many fragments the stream produced, and
    whether the stream was closed.
    """

    def __init__(self, fail: bool = False, fail_after: int | None = None, delay: float = 0.0):
        self.model = "scripted"
        self.fail = fail
        self.fail_after = fail_after
        self.delay = delay
        self.calls = 0
        self.produced = 0
        self.closed = False
        self.prompts: list[str] = []

    async def generate(self, prompt: str, system: str | None = None) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationFailure("scripted failure")
        return self.answer_for(prompt)

    async def stream(self, prompt: str, system: str | None = None) -> AsyncIterator[str]:
        self.calls += 1
        self.prompts.append(prompt)
        try:
            if self.fail:
                raise GenerationFailure("scripted failure")
            for i, fragment in enumerate(re.findall(r"\S+\s*", self.answer_for(prompt))):
                if self.fail_after is not None and i == self.fail_after:
                    raise GenerationFailure("scripted failure mid-stream")
                await asyncio.sleep(self.delay)
                self.produced += 1
                yield fragment
        finally:
            self.closed = True

    @staticmethod
    def answer_for(prompt: str) -> str:
        match = re.search(r"^\[1\][^\n]*\n(.*?)(?:\n\n---\n\n|\n\nQuestion:)", prompt, re.S | re.M)
        quoted = match.group(1).strip() if match else "nothing"
        return f"According to the documents, {quoted} [1]"


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def store() -> FAISSStore:
    return FAISSStore(dimension=DIM)


@pytest.fixture
def kb(embedder: KeywordEmbedder, store: FAISSStore, llm: ScriptedLLM) -> KnowledgeBase:
    return KnowledgeBase(embedder, store, llm, registry=DocumentRegistry())


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_txt_content() -> str:
    return textwrap.dedent("""\
        Solar Energy Overview

        Photovoltaic panels convert sunlight directly into electricity. Modern
        silicon cells reach efficiencies above 22 percent, and costs have fallen
        by roughly ninety percent over the last decade.

        Storage

        Lithium-ion batteries smooth out the daily production curve. Grid-scale
        installations now routinely exceed one hundred megawatt-hours.

        Outlook

        Analysts expect solar to become the largest source of new capacity
        worldwide, although permitting delays remain a constraint.
    """)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Three-page PDF built with fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pages = [
        "Chapter 1. Volcanoes\n\nVolcanoes form where magma reaches the surface.",
        "Chapter 2. Glaciers\n\nGlaciers carve valleys over thousands of years.",
        "Chapter 3. Deserts\n\nDeserts receive less than 250 millimetres of rain per year.",
    ]
    for text in pages:
        pdf.add_page()
        pdf.multi_cell(0, 10, text=text)

    return bytes(pdf.output())


@pytest.fixture
def sample_pdf_file(tmp_path: Path, sample_pdf_bytes: bytes) -> Path:
    p = tmp_path / "earth.pdf"
    p.write_bytes(sample_pdf_bytes)
    return p


@pytest.fixture
def sample_csv_bytes() -> bytes:
    return (
        "city,country,population\n"
        "Paris,France,2100000\n"
        "Tokyo,Japan,14000000\n"
        "Lima,Peru,10000000\n"
    ).encode("utf-8")


@pytest.fixture
def sample_chunk_metadata() -> ChunkMetadata:
    return ChunkMetadata(
        document_id="doc-1",
        document_name="notes.txt",
        source_kind=SourceKind.TEXT,
    )
