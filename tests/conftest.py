"""Shared pytest fixtures: in-process stand-ins for the external services."""

from __future__ import annotations

import pytest

from clausebase.knowledge_base import KnowledgeBase
from clausebase.rag.llm_client import CompletionResult

DIMS = 26


def letter_vector(text: str) -> list[float]:
    """Deterministic 26-d letter-frequency embedding."""
    vec = [0.0] * DIMS
    for ch in text.lower():
        if "a" <= ch <= "z":
            vec[ord(ch) - ord("a")] += 1.0
    return vec


class FakeEmbedder:
    """Async embedding service that records every call."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = vectors or {}
        self.calls: list[str] = []

    async def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.vectors:
            return self.vectors[text]
        return letter_vector(text)


class FakeCompleter:
    """Async completion service returning a canned result."""

    def __init__(self, result: CompletionResult | None = None) -> None:
        self.result = result or CompletionResult(success=True, text="canned answer")
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> CompletionResult:
        self.prompts.append(prompt)
        return self.result


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_completer() -> FakeCompleter:
    return FakeCompleter()


@pytest.fixture
def kb(fake_embedder: FakeEmbedder) -> KnowledgeBase:
    """Knowledge base with small chunks so short test documents split."""
    return KnowledgeBase(fake_embedder, chunk_size=40, chunk_overlap=10)
