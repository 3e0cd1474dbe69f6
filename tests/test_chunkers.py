"""Tests for the recursive character chunker."""

from __future__ import annotations

import random

import pytest

from docrag.chunking.base import BaseChunker
from docrag.chunking.recursive_chunker import RecursiveChunker
from docrag.chunking.schemas import Chunk, ChunkMetadata

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WORDS = [
    "river", "mountain", "quiet", "lantern", "harbor", "copper", "meadow",
    "signal", "orbit", "thunder", "velvet", "canyon", "ember", "prairie",
]


def _prose(n_sentences: int, seed: int = 7) -> str:
    rng = random.Random(seed)
    sentences = []
    for i in range(n_sentences):
        words = [rng.choice(_WORDS) for _ in range(rng.randint(5, 14))]
        sentence = " ".join(words).capitalize() + "."
        sentences.append(sentence)
        if i % 6 == 5:
            sentences.append("\n\n")
        else:
            sentences.append(" ")
    return "".join(sentences).strip()


def _reconstruct(text: str, spans: list[tuple[int, int]]) -> str:
    """Concatenate spans, dropping each one's overlap with its predecessor."""
    parts = []
    prev_end = 0
    for start, end in spans:
        parts.append(text[max(start, prev_end):end])
        prev_end = end
    return "".join(parts)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_is_chunker(self):
        assert isinstance(RecursiveChunker(), BaseChunker)

    def test_defaults(self):
        c = RecursiveChunker()
        assert c.max_chars == 1000
        assert c.overlap_chars == 200

    @pytest.mark.parametrize("max_chars,overlap", [(0, 0), (100, 100), (100, -1), (100, 150)])
    def test_rejects_bad_sizes(self, max_chars: int, overlap: int):
        with pytest.raises(ValueError):
            RecursiveChunker(max_chars, overlap)


# ---------------------------------------------------------------------------
# Splitting properties
# ---------------------------------------------------------------------------


class TestSplit:
    @pytest.fixture
    def chunker(self) -> RecursiveChunker:
        return RecursiveChunker(max_chars=300, overlap_chars=60)

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t \n"])
    def test_empty_input_yields_nothing(self, chunker: RecursiveChunker, text: str):
        assert chunker.split(text) == []
        assert chunker.chunk(text) == []

    def test_short_text_is_single_chunk(self, chunker: RecursiveChunker):
        text = "Paris is the capital of France."
        assert chunker.split(text) == [text]

    def test_text_at_exact_limit_is_single_chunk(self, chunker: RecursiveChunker):
        text = ("a" * 9 + " ") * 30
        assert len(text) == 300
        assert chunker.split(text) == [text]

    @pytest.mark.parametrize("seed", [1, 2, 3, 4])
    def test_reconstructs_original(self, chunker: RecursiveChunker, seed: int):
        text = _prose(60, seed=seed)
        spans = chunker.split_spans(text)
        assert len(spans) > 1
        assert _reconstruct(text, spans) == text

    def test_reconstructs_sample(self, sample_txt_content: str):
        chunker = RecursiveChunker(max_chars=120, overlap_chars=30)
        spans = chunker.split_spans(sample_txt_content)
        assert _reconstruct(sample_txt_content, spans) == sample_txt_content

    def test_chunks_within_budget(self, chunker: RecursiveChunker):
        for piece in chunker.split(_prose(80)):
            assert len(piece) <= 300

    def test_overlap_bounded(self, chunker: RecursiveChunker):
        spans = chunker.split_spans(_prose(80))
        for (_, prev_end), (start, _) in zip(spans, spans[1:]):
            assert 0 <= prev_end - start <= 60

    def test_overlap_comes_from_previous_tail(self, chunker: RecursiveChunker):
        text = _prose(40)
        spans = chunker.split_spans(text)
        pieces = chunker.split(text)
        overlaps = [prev_end - start for (_, prev_end), (start, _) in zip(spans, spans[1:])]
        assert any(overlaps)
        for i, ov in enumerate(overlaps):
            if ov:
                assert pieces[i][-ov:] == pieces[i + 1][:ov]

    def test_zero_overlap_partitions_text(self):
        chunker = RecursiveChunker(max_chars=200, overlap_chars=0)
        text = _prose(30)
        assert "".join(chunker.split(text)) == text

    def test_splits_on_word_boundaries(self, chunker: RecursiveChunker):
        text = " ".join(_WORDS * 20)
        spans = chunker.split_spans(text)
        for start, end in spans:
            assert end == len(text) or text[end - 1].isspace()
            assert start == 0 or text[start - 1].isspace()

    def test_prefers_paragraph_break(self):
        chunker = RecursiveChunker(max_chars=800, overlap_chars=100)
        para1 = ("first " * 100).strip()
        para2 = ("second " * 150).strip()
        text = f"{para1}\n\n{para2}"
        assert chunker.split(text)[0] == para1 + "\n\n"

    def test_prefers_sentence_over_word_break(self):
        chunker = RecursiveChunker(max_chars=100, overlap_chars=10)
        text = "One two three four five six seven eight. " + "nine ten eleven twelve " * 10
        first = chunker.split(text)[0]
        assert first.endswith(". ")

    def test_unsplittable_word_kept_whole(self):
        chunker = RecursiveChunker(max_chars=100, overlap_chars=20)
        text = "y" * 150
        assert chunker.split(text) == [text]

    def test_oversized_word_extends_chunk(self):
        chunker = RecursiveChunker(max_chars=100, overlap_chars=20)
        long_word = "z" * 130
        text = f"{long_word} tail words follow here " * 3
        spans = chunker.split_spans(text)
        assert spans[0][1] - spans[0][0] > 100
        assert _reconstruct(text, spans) == text

    def test_runaway_token_cut_raw(self):
        chunker = RecursiveChunker(max_chars=100, overlap_chars=20)
        text = "q" * 500
        pieces = chunker.split(text)
        assert len(pieces) > 1
        assert len(pieces[0]) == 100
        assert _reconstruct(text, chunker.split_spans(text)) == text


# ---------------------------------------------------------------------------
# Chunk objects
# ---------------------------------------------------------------------------


class TestChunkObjects:
    def test_chunk_carries_metadata(self, sample_chunk_metadata: ChunkMetadata):
        chunker = RecursiveChunker(max_chars=200, overlap_chars=40)
        chunks = chunker.chunk(_prose(30), metadata=sample_chunk_metadata)
        assert chunks
        assert all(isinstance(c, Chunk) for c in chunks)
        for c in chunks:
            assert c.metadata.document_id == "doc-1"
            assert c.metadata.document_name == "notes.txt"

    def test_chunk_indices_sequential(self, sample_chunk_metadata: ChunkMetadata):
        chunker = RecursiveChunker(max_chars=200, overlap_chars=40)
        chunks = chunker.chunk(_prose(30), metadata=sample_chunk_metadata, start_index=5)
        assert [c.chunk_index for c in chunks] == list(range(5, 5 + len(chunks)))

    def test_offsets_match_text(self):
        chunker = RecursiveChunker(max_chars=150, overlap_chars=30)
        text = _prose(20)
        for c in chunker.chunk(text):
            assert text[c.start:c.end] == c.text
