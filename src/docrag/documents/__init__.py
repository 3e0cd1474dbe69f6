"""Document ingestion — source adapters, sanitizing, and the registry."""

from docrag.documents.loader import DocumentLoader
from docrag.documents.registry import DocumentRegistry
from docrag.documents.sanitize import sanitize_document_text
from docrag.documents.schemas import Document, LoadResult, Segment, SourceKind
from docrag.documents.web import WebPageLoader

__all__ = [
    "Document",
    "DocumentLoader",
    "DocumentRegistry",
    "LoadResult",
    "Segment",
    "SourceKind",
    "WebPageLoader",
    "sanitize_document_text",
]
