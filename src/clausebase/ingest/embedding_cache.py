"""Memoizing front for the external embedding service.

Keys are the exact chunk text (no normalization). A miss calls the service
and caches the vector before returning it. A failed or empty response raises
EmbeddingUnavailable; there is no substitute vector.
"""

from __future__ import annotations

import logging

from clausebase.errors import EmbeddingUnavailable
from clausebase.rag.llm_client import EmbedFn

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """Text → vector cache in front of an async embedding service.

    Args:
        embed_fn: ``async (text) -> Sequence[float]`` (see ``llm_client.embedder``).
    """

    def __init__(self, embed_fn: EmbedFn) -> None:
        self._embed_fn = embed_fn
        self._vectors: dict[str, tuple[float, ...]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, text: object) -> bool:
        return text in self._vectors

    async def embed(self, text: str) -> tuple[float, ...]:
        cached = self._vectors.get(text)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        try:
            raw = await self._embed_fn(text)
        except Exception as exc:
            raise EmbeddingUnavailable(
                f"Embedding service failed: {exc}", text=text
            ) from exc

        if raw is None or len(raw) == 0:
            raise EmbeddingUnavailable("Embedding service returned no vector.", text=text)

        vector = tuple(float(v) for v in raw)
        # A concurrent miss on the same text may have landed first; keep that one.
        vector = self._vectors.setdefault(text, vector)
        logger.debug("Cached %d-d embedding (%d entries)", len(vector), len(self._vectors))
        return vector

    def clear(self) -> None:
        self._vectors.clear()
        self.hits = 0
        self.misses = 0
