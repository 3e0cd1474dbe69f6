"""RAG pipeline — ingestion and answer synthesis."""

from docrag.pipeline.events import Confidence, End, Fragment, Sources, StreamError, StreamEvent
from docrag.pipeline.ingest import IngestPipeline
from docrag.pipeline.schemas import ConversationMessage, IngestResult, QueryAnswer, Role
from docrag.pipeline.synthesizer import AnswerSynthesizer

__all__ = [
    "AnswerSynthesizer",
    "Confidence",
    "ConversationMessage",
    "End",
    "Fragment",
    "IngestPipeline",
    "IngestResult",
    "QueryAnswer",
    "Role",
    "Sources",
    "StreamError",
    "StreamEvent",
]
