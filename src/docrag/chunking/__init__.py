"""Document chunking."""

from docrag.chunking.base import BaseChunker
from docrag.chunking.recursive_chunker import RecursiveChunker
from docrag.chunking.schemas import Chunk, ChunkMetadata

__all__ = ["BaseChunker", "Chunk", "ChunkMetadata", "RecursiveChunker"]
