"""ClauseBase — semantic retrieval over contract documents."""

from clausebase.errors import (
    AnalysisFailed,
    ClauseBaseError,
    ConfigurationError,
    DimensionMismatch,
    EmbeddingUnavailable,
)
from clausebase.knowledge_base import KnowledgeBase, KnowledgeBaseStats
from clausebase.models import ChunkRecord, Document, ScoredChunk

__all__ = [
    "AnalysisFailed",
    "ChunkRecord",
    "ClauseBaseError",
    "ConfigurationError",
    "DimensionMismatch",
    "Document",
    "EmbeddingUnavailable",
    "KnowledgeBase",
    "KnowledgeBaseStats",
    "ScoredChunk",
]
