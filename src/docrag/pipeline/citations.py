"""Citation extraction.

Parses [1], [2], [1,3], [2-4] from model output and maps them back to
candidate ranks.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from docrag.retrieval.schemas import RetrievalCandidate

# Matches [1], [2], [3,4], [1-3], etc.
_CITATION_RE = re.compile(r"\[(\d+(?:\s*[,\-]\s*\d+)*)\]")


def extract_citations(answer: str, candidates: Sequence[RetrievalCandidate]) -> list[int]:
    """Return the sorted ranks of candidates the answer cites.

    References outside ``1..len(candidates)`` are ignored.
    """
    limit = len(candidates)
    cited: set[int] = set()
    for match in _CITATION_RE.finditer(answer):
        for part in match.group(1).split(","):
            part = part.strip()
            if "-" in part:
                bounds = [int(p) for p in part.split("-")]
                # Clamp to the candidate count
                cited.update(range(max(bounds[0], 1), min(bounds[-1], limit) + 1))
            else:
                cited.add(int(part))

    return sorted(i - 1 for i in cited if 1 <= i <= limit)
