"""Knowledge base: owns the index and cache, seeds once, ingests documents.

A ``KnowledgeBase`` is constructed once by the caller and passed around by
reference. ``initialize`` seeds it on the first successful call only; later
calls return immediately even with different seed documents.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from clausebase.errors import EmbeddingUnavailable
from clausebase.index.vector_index import VectorIndex
from clausebase.ingest.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, TextChunker
from clausebase.ingest.embedding_cache import EmbeddingCache
from clausebase.models import ChunkRecord, Document
from clausebase.rag.llm_client import EmbedFn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnowledgeBaseStats:
    documents: int
    chunks: int
    dimensions: int | None
    cache_entries: int
    cache_hits: int
    cache_misses: int
    initialized: bool


class KnowledgeBase:
    """Vector index + embedding cache + chunker behind one handle.

    Args:
        embed_fn: ``async (text) -> vector`` embedding service.
        chunk_size: Characters per chunk (default 1000).
        chunk_overlap: Characters shared by consecutive chunks (default 200).

    Raises:
        ConfigurationError: If the chunking parameters are invalid.
    """

    def __init__(
        self,
        embed_fn: EmbedFn,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self.chunker = TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.cache = EmbeddingCache(embed_fn)
        self.index = VectorIndex()
        self.initialized = False
        self._documents = 0
        self._init_lock = asyncio.Lock()

    async def initialize(self, seed_documents: Sequence[str] = ()) -> None:
        """Seed the index on the first successful call; no-op afterwards."""
        if self.initialized:
            logger.debug("Knowledge base already initialized")
            return

        async with self._init_lock:
            if self.initialized:
                return
            docs = [
                Document(text=text, metadata={"id": f"seed-{i}"})
                for i, text in enumerate(seed_documents)
            ]
            records = await self._ingest_documents(docs)
            self.initialized = True

        logger.info(
            "Knowledge base initialized: %d seed documents, %d chunks",
            len(docs),
            len(records),
        )

    async def ingest(
        self,
        document_text: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> list[ChunkRecord]:
        """Chunk, embed and index one document. Returns the records added.

        Raises:
            EmbeddingUnavailable: If any chunk could not be embedded. Nothing
                from this document is indexed in that case.
        """
        await self.initialize()
        records = await self._ingest_documents([Document(text=document_text, metadata=metadata or {})])
        logger.info("Ingested document as %d chunks", len(records))
        return records

    async def ingest_many(
        self,
        documents: Iterable[Document | tuple[str, Mapping[str, Any]]],
    ) -> list[ChunkRecord]:
        """Ingest several documents in order; stops at the first failure."""
        added: list[ChunkRecord] = []
        for doc in documents:
            if isinstance(doc, Document):
                added.extend(await self.ingest(doc.text, doc.metadata))
            else:
                added.extend(await self.ingest(doc[0], doc[1]))
        return added

    def stats(self) -> KnowledgeBaseStats:
        return KnowledgeBaseStats(
            documents=self._documents,
            chunks=len(self.index),
            dimensions=self.index.dimensions,
            cache_entries=len(self.cache),
            cache_hits=self.cache.hits,
            cache_misses=self.cache.misses,
            initialized=self.initialized,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _ingest_documents(self, documents: list[Document]) -> list[ChunkRecord]:
        records: list[ChunkRecord] = []
        for doc in documents:
            records.extend(await self._embed_chunks(self.chunker.chunk(doc.text, doc.metadata)))
        self.index.add(records)
        self._documents += sum(1 for doc in documents if doc.text)
        return records

    async def _embed_chunks(self, chunks: list[ChunkRecord]) -> list[ChunkRecord]:
        embedded: list[ChunkRecord] = []
        for chunk in chunks:
            try:
                vector = await self.cache.embed(chunk.text)
            except EmbeddingUnavailable:
                logger.warning(
                    "Embedding failed for chunk %s after %d of %d chunks; nothing indexed",
                    chunk.id,
                    len(embedded),
                    len(chunks),
                )
                raise
            embedded.append(chunk.with_embedding(vector))
        return embedded
