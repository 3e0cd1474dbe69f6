"""Grounding prompt templates for answer synthesis."""

from __future__ import annotations

from collections.abc import Sequence

from docrag.retrieval.schemas import RetrievalCandidate

# ---------------------------------------------------------------------------
# Fixed answers (no model call)
# ---------------------------------------------------------------------------

NO_DOCUMENTS_ANSWER = (
    "No documents have been added yet. Please add some documents first."
)

NO_RELEVANT_INFO_ANSWER = (
    "I could not find any relevant information in the uploaded documents."
)

QUERY_FAILED_ANSWER = "Sorry, I encountered an error while processing your query."

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

RAG_SYSTEM_PROMPT = """\
You are an assistant who answers questions using ONLY the context documents \
provided with each question. If the context does not contain enough \
information to answer, say so explicitly instead of guessing.

Rules:
1. Cite sources using [1], [2], etc. corresponding to the numbered context \
documents.
2. Use markdown where it helps: bullet or numbered lists, **emphasis** for \
key terms, `code spans` for identifiers, values and commands.
3. If sources conflict, point out the discrepancy.
"""

RAG_QUERY_TEMPLATE = """\
Context Documents:
{context}

Question: {question}

Answer the question using only the context documents above. Cite sources \
using [1], [2], etc.
"""


def format_context(candidates: Sequence[RetrievalCandidate]) -> str:
    """Format candidates as numbered, labeled context blocks.

    Block ``[n]`` corresponds to the candidate with ``rank == n - 1``.
    """
    parts = []
    for i, candidate in enumerate(candidates, 1):
        meta = candidate.metadata
        label = f"[{i}] {meta.document_name or 'untitled'}"
        if meta.page_number is not None:
            label += f" (page {meta.page_number})"
        elif meta.locator:
            label += f" ({meta.locator})"
        parts.append(f"{label}\n{candidate.text}")
    return "\n\n---\n\n".join(parts)


def build_rag_prompt(question: str, candidates: Sequence[RetrievalCandidate]) -> str:
    """Build the user prompt: labeled context followed by the question."""
    return RAG_QUERY_TEMPLATE.format(context=format_context(candidates), question=question)
