"""Character-budget chunker that prefers semantic boundaries.

Each chunk is cut at the last paragraph break inside the budget, else the
last line break, else the last sentence end, else the last word break.
Only a single unbroken run of text longer than the budget is cut raw.
Chunks are exact slices of the input, so dropping each chunk's overlap
with its predecessor and concatenating reproduces the input.
"""

from __future__ import annotations

import logging
import re

from docrag.chunking.base import BaseChunker

logger = logging.getLogger(__name__)

MAX_CHARS = 1000
OVERLAP_CHARS = 200

# Highest priority first. Within a tier the rightmost hit wins.
SEPARATOR_TIERS: tuple[tuple[str, ...], ...] = (
    ("\n\n",),
    ("\n",),
    (". ", "! ", "? ", ".\t", "!\t", "?\t"),
    (" ", "\t"),
)

_WHITESPACE = re.compile(r"\s")


class RecursiveChunker(BaseChunker):
    """Split text into overlapping chunks of at most ``max_chars``.

    A chunk may exceed ``max_chars`` only when it contains a single word
    longer than the budget; the chunk then runs to the end of that word as
    long as that stays within twice the budget, otherwise it is cut raw.
    """

    def __init__(self, max_chars: int = MAX_CHARS, overlap_chars: int = OVERLAP_CHARS):
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        if not 0 <= overlap_chars < max_chars:
            raise ValueError("overlap_chars must be in [0, max_chars)")
        self.max_chars = max_chars
        self.overlap_chars = overlap_chars

    def split_spans(self, text: str) -> list[tuple[int, int]]:
        if not text or not text.strip():
            return []

        n = len(text)
        if n <= self.max_chars:
            return [(0, n)]

        spans: list[tuple[int, int]] = []
        start = 0
        while True:
            end = self._find_end(text, start)
            spans.append((start, end))
            if end >= n:
                break
            start = self._next_start(text, start, end)

        logger.debug("RecursiveChunker produced %d spans from %d chars", len(spans), n)
        return spans

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _find_end(self, text: str, start: int) -> int:
        n = len(text)
        limit = start + self.max_chars
        if limit >= n:
            return n

        window = text[start:limit]
        # A cut inside the overlap would not move the next chunk forward.
        floor = self.overlap_chars

        for tier in SEPARATOR_TIERS:
            best = -1
            for sep in tier:
                idx = window.rfind(sep)
                if idx != -1 and idx + len(sep) > floor:
                    best = max(best, idx + len(sep))
            if best != -1:
                return start + best

        # No usable break: extend to the end of the current word, within reason.
        horizon = min(n, start + 2 * self.max_chars)
        match = _WHITESPACE.search(text, limit, horizon)
        if match:
            return match.end()
        if horizon == n:
            return n
        return limit

    def _next_start(self, text: str, start: int, end: int) -> int:
        if self.overlap_chars == 0:
            return end

        candidate = max(end - self.overlap_chars, start + 1)
        if not text[candidate - 1].isspace():
            # Open the overlap on a word boundary rather than mid-word.
            match = _WHITESPACE.search(text, candidate, end)
            candidate = match.end() if match else end
        return candidate
