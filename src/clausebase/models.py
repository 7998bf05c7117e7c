"""Domain models for the ClauseBase retrieval engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Union

Scalar = Union[str, int, float, bool, None]


def freeze_metadata(metadata: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return a read-only snapshot of *metadata* (a private copy, not a live view)."""
    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True)
class Document:
    """A decoded source document waiting to be chunked."""

    text: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChunkRecord:
    id: str
    text: str
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    embedding: tuple[float, ...] | None = None
    start: int = 0  # offset of ``text`` inside the parent document

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def dimensions(self) -> int | None:
        return len(self.embedding) if self.embedding is not None else None

    def with_embedding(self, embedding: tuple[float, ...] | list[float]) -> ChunkRecord:
        """Return a copy of this record carrying *embedding*."""
        return replace(self, embedding=tuple(float(v) for v in embedding))


@dataclass(frozen=True)
class ScoredChunk:
    """A retrieved chunk together with its cosine score and 1-based rank.

    Attributes:
        chunk: The stored ChunkRecord.
        score: Cosine similarity to the query vector, in [-1, 1].
        rank: Position in the result list (1 = most similar).
    """

    chunk: ChunkRecord
    score: float
    rank: int
