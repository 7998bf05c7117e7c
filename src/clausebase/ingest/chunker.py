"""Overlapping character-window chunker with soft boundaries.

Windows are at most ``chunk_size`` characters. A window prefers to end just
after the last paragraph break, line break, sentence end or space it contains;
if none lies past the midpoint of the window it is cut at the hard limit.
Each following window starts ``chunk_overlap`` characters before the previous
window's end, so consecutive chunks share exactly ``chunk_overlap`` characters
and the parent text is recoverable from the chunks' offsets.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from clausebase.errors import ConfigurationError
from clausebase.models import ChunkRecord, Document, freeze_metadata

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

# Tried in order; the cut falls right after the separator.
_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ")


def validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    """Raise ConfigurationError unless ``0 <= chunk_overlap < chunk_size``."""
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")
    if chunk_overlap < 0:
        raise ConfigurationError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ConfigurationError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )


class TextChunker:
    """Split documents into overlapping ChunkRecords.

    Args:
        chunk_size: Maximum characters per chunk.
        chunk_overlap: Characters shared by consecutive chunks.

    Raises:
        ConfigurationError: If ``chunk_overlap >= chunk_size`` or either is out of range.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        validate_chunking(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split(self, documents: Iterable[Document]) -> list[ChunkRecord]:
        chunks: list[ChunkRecord] = []
        for document in documents:
            chunks.extend(self.chunk(document.text, document.metadata))
        return chunks

    def chunk(self, text: str, metadata: Mapping[str, Any] | None = None) -> list[ChunkRecord]:
        """Split one document's *text*; every chunk gets a snapshot of *metadata*."""
        if not text:
            return []

        snapshot = freeze_metadata(metadata)
        doc_id = document_id(snapshot)
        return [
            ChunkRecord(
                id=f"{doc_id}-{i}",
                text=text[start:end],
                metadata=snapshot,
                start=start,
            )
            for i, (start, end) in enumerate(self.spans(text))
        ]

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return the ``(start, end)`` offsets of every window over *text*."""
        spans: list[tuple[int, int]] = []
        length = len(text)
        pos = 0

        while True:
            end = min(pos + self.chunk_size, length)
            if end < length:
                end = self._soft_end(text, pos, end)
            spans.append((pos, end))
            if end >= length:
                break
            pos = end - self.chunk_overlap

        return spans

    def _soft_end(self, text: str, start: int, hard_end: int) -> int:
        """Pull *hard_end* back to the best separator, keeping forward progress."""
        floor = start + max(self.chunk_overlap, self.chunk_size // 2)
        for sep in _SEPARATORS:
            idx = text.rfind(sep, floor, hard_end)
            if idx != -1:
                return idx + len(sep)
        return hard_end


def document_id(metadata: Mapping[str, Any]) -> str:
    """Use the source-supplied ``id`` when present, else a fresh one."""
    supplied = metadata.get("id")
    if supplied not in (None, ""):
        return str(supplied)
    return f"doc-{uuid.uuid4().hex[:12]}"


def split(
    documents: Sequence[Document | tuple[str, Mapping[str, Any]]],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[ChunkRecord]:
    """Chunk *documents* (Document objects or ``(text, metadata)`` pairs)."""
    chunker = TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    docs = [d if isinstance(d, Document) else Document(text=d[0], metadata=d[1]) for d in documents]
    return chunker.split(docs)


def reconstruct(chunks: Sequence[ChunkRecord]) -> str:
    """Rebuild the parent text from one document's consecutive chunks."""
    parts: list[str] = []
    prev_end = 0
    for chunk in chunks:
        parts.append(chunk.text[prev_end - chunk.start:])
        prev_end = chunk.end
    return "".join(parts)
