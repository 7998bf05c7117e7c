"""ClauseBase ingest pipeline — chunker and embedding cache."""

from clausebase.ingest.chunker import TextChunker, reconstruct, split, validate_chunking
from clausebase.ingest.embedding_cache import EmbeddingCache

__all__ = [
    "EmbeddingCache",
    "TextChunker",
    "reconstruct",
    "split",
    "validate_chunking",
]
