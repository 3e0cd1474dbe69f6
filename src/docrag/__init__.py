"""docrag — retrieval-augmented question answering over your own documents."""

from docrag.config import Settings, load_settings
from docrag.documents.schemas import Document, SourceKind
from docrag.pipeline.events import Confidence, End, Fragment, Sources, StreamError, StreamEvent
from docrag.pipeline.schemas import ConversationMessage, IngestResult, QueryAnswer
from docrag.service import KnowledgeBase

__version__ = "0.1.0"

__all__ = [
    "Confidence",
    "ConversationMessage",
    "Document",
    "End",
    "Fragment",
    "IngestResult",
    "KnowledgeBase",
    "QueryAnswer",
    "Settings",
    "SourceKind",
    "Sources",
    "StreamError",
    "StreamEvent",
    "load_settings",
]
