"""In-memory vector index: append-only records, exact cosine top-k search.

Scoring is brute force over the (optionally metadata-filtered) candidates with
numpy. Zero-norm vectors score 0.0. Ties keep insertion order.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np

from clausebase.errors import DimensionMismatch
from clausebase.models import ChunkRecord, ScoredChunk

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b|)``; 0.0 when either vector has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or vb.ndim != 1 or va.shape != vb.shape:
        raise DimensionMismatch(expected=int(va.size), actual=int(vb.size))
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def matches_filter(metadata: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    """True if *metadata* holds every ``(key, value)`` pair of *filter*."""
    if not filter:
        return True
    return all(key in metadata and metadata[key] == value for key, value in filter.items())


class VectorIndex:
    """Append-only collection of embedded ChunkRecords.

    The first record added fixes the dimensionality; every later record and
    every query vector must match it. A lock serializes appends against
    snapshots taken for search, so concurrent writers cannot interleave.
    """

    def __init__(self) -> None:
        self._records: list[ChunkRecord] = []
        self._dimensions: int | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    @property
    def dimensions(self) -> int | None:
        return self._dimensions

    def records(self) -> list[ChunkRecord]:
        """Snapshot of stored records in insertion order."""
        with self._lock:
            return list(self._records)

    def add(self, chunks: Iterable[ChunkRecord]) -> None:
        """Append *chunks*; all-or-nothing per call.

        Raises:
            ValueError: If a chunk has no embedding.
            DimensionMismatch: If an embedding's length differs from the index's.
        """
        batch = list(chunks)
        if not batch:
            return

        with self._lock:
            dims = self._dimensions
            for chunk in batch:
                if chunk.embedding is None:
                    raise ValueError(f"Chunk '{chunk.id}' has no embedding.")
                if dims is None:
                    dims = len(chunk.embedding)
                elif len(chunk.embedding) != dims:
                    raise DimensionMismatch(
                        expected=dims, actual=len(chunk.embedding), chunk_id=chunk.id
                    )
            self._records.extend(batch)
            self._dimensions = dims

        logger.debug("Indexed %d chunks (%d total, %s-d)", len(batch), len(self._records), dims)

    def search(
        self,
        query_vector: Sequence[float],
        k: int,
        filter: Mapping[str, Any] | None = None,
    ) -> list[ChunkRecord]:
        """Return up to *k* records most similar to *query_vector*, best first."""
        return [sc.chunk for sc in self.search_scored(query_vector, k, filter)]

    def search_scored(
        self,
        query_vector: Sequence[float],
        k: int,
        filter: Mapping[str, Any] | None = None,
    ) -> list[ScoredChunk]:
        """Like ``search`` but keeps each record's cosine score and rank.

        Raises:
            DimensionMismatch: If *query_vector* does not match the index dimensionality.
        """
        if k <= 0:
            return []

        with self._lock:
            candidates = [r for r in self._records if matches_filter(r.metadata, filter)]
            dims = self._dimensions

        if not candidates:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != dims:
            raise DimensionMismatch(expected=dims or 0, actual=int(query.size))

        scores = _cosine_scores(query, np.asarray([c.embedding for c in candidates], dtype=np.float64))

        # Python's sort is stable: equal scores keep insertion order.
        order = sorted(range(len(candidates)), key=lambda i: -scores[i])[:k]
        return [
            ScoredChunk(chunk=candidates[i], score=float(scores[i]), rank=rank)
            for rank, i in enumerate(order, start=1)
        ]


def _cosine_scores(query: np.ndarray, matrix: np.ndarray) -> list[float]:
    """Cosine of *query* against every row of *matrix*; zero norms score 0.0."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    safe = np.where(norms == 0.0, 1.0, norms)
    return np.where(norms == 0.0, 0.0, dots / safe).tolist()
