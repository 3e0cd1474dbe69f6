"""Prompt-injection scrubbing for ingested text.

Retrieved chunks are pasted verbatim into the grounding prompt, so text that
tries to issue instructions to the model is replaced before it is indexed.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

REDACTION = "[REDACTED]"

_INJECTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?i)ignore\s+(?:all\s+)?previous\s+instructions"),
    re.compile(r"(?i)you\s+are\s+now\s+an?\b"),
    re.compile(r"(?im)^\s*system\s*:"),
    re.compile(r"(?i)</?system>"),
    re.compile(r"(?im)^\s*assistant\s*:"),
    re.compile(r"(?i)forget\s+(?:everything|your)\b"),
    re.compile(r"(?i)new\s+instructions\s*:"),
    re.compile(r"(?i)override\s+(?:your|all|the)\s+(?:instructions|rules)"),
]


def sanitize_document_text(text: str) -> str:
    """Replace instruction-override phrases with ``[REDACTED]``."""
    if not text:
        return text

    hits = 0
    for pattern in _INJECTION_PATTERNS:
        text, n = pattern.subn(REDACTION, text)
        hits += n

    if hits:
        logger.warning("Redacted %d prompt-injection pattern(s) from document text", hits)
    return text
