"""In-memory vector index."""

from clausebase.index.vector_index import VectorIndex, cosine_similarity, matches_filter

__all__ = ["VectorIndex", "cosine_similarity", "matches_filter"]
