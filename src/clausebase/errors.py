"""ClauseBase error hierarchy.

Every failure that would degrade retrieval quality surfaces as one of these;
none of them is logged-and-swallowed inside the library.
"""

from __future__ import annotations


class ClauseBaseError(Exception):
    """Base class for all ClauseBase errors."""


class ConfigurationError(ClauseBaseError, ValueError):
    """Invalid chunking parameters or a forbidden/invalid config value."""


class EmbeddingUnavailable(ClauseBaseError):
    """The embedding service failed or returned no vector for *text*."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class DimensionMismatch(ClauseBaseError, ValueError):
    """An embedding's length differs from the index's established dimensionality."""

    def __init__(self, expected: int, actual: int, chunk_id: str | None = None) -> None:
        where = f" for chunk '{chunk_id}'" if chunk_id else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: index uses {expected}, got {actual}."
        )
        self.expected = expected
        self.actual = actual
        self.chunk_id = chunk_id


class AnalysisFailed(ClauseBaseError):
    """The completion service reported failure or raised."""
