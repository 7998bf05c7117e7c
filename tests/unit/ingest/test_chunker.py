"""Tests for TextChunker / split()."""

from __future__ import annotations

import pytest

from clausebase.errors import ConfigurationError
from clausebase.ingest.chunker import TextChunker, document_id, reconstruct, split
from clausebase.models import ChunkRecord, Document

_CONTRACT = (
    "MASTER SERVICES AGREEMENT\n\n"
    "1. Term. This Agreement begins on the Effective Date and continues for two years. "
    "Either party may renew by written notice.\n\n"
    "2. Fees. Client shall pay all undisputed invoices within thirty days of receipt. "
    "Late payments accrue interest at one percent per month.\n\n"
    "3. Termination. Either party may terminate for material breach not cured within "
    "thirty days of notice."
)


def test_default_settings():
    chunker = TextChunker()
    assert chunker.chunk_size == 1000
    assert chunker.chunk_overlap == 200


def test_example_from_alphabet():
    chunks = split([("ABCDEFGHIJ", {})], chunk_size=4, chunk_overlap=2)
    assert [c.text for c in chunks] == ["ABCD", "CDEF", "EFGH", "GHIJ"]


def test_zero_overlap_tiles_text():
    chunks = split([("ABCDEFGHIJ", {})], chunk_size=4, chunk_overlap=0)
    assert [c.text for c in chunks] == ["ABCD", "EFGH", "IJ"]


def test_short_text_single_chunk():
    chunks = split([("Short text.", {})], chunk_size=100, chunk_overlap=10)
    assert len(chunks) == 1
    assert chunks[0].text == "Short text."
    assert chunks[0].start == 0


def test_empty_text_yields_no_chunks():
    assert TextChunker(10, 2).chunk("") == []


@pytest.mark.parametrize("size,overlap", [(4, 4), (4, 5), (0, 0), (10, -1)])
def test_invalid_parameters_raise(size, overlap):
    with pytest.raises(ConfigurationError):
        TextChunker(chunk_size=size, chunk_overlap=overlap)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        split([("abc", {})], chunk_size=3, chunk_overlap=3)


@pytest.mark.parametrize("size,overlap", [(4, 2), (7, 0), (40, 10), (64, 63), (100, 30), (1000, 200)])
def test_reconstruction_is_lossless(size, overlap):
    chunks = TextChunker(size, overlap).chunk(_CONTRACT * 3)
    assert reconstruct(chunks) == _CONTRACT * 3


@pytest.mark.parametrize("size,overlap", [(4, 2), (40, 10), (64, 63), (100, 30)])
def test_no_chunk_exceeds_size(size, overlap):
    chunks = TextChunker(size, overlap).chunk(_CONTRACT)
    assert all(0 < len(c.text) <= size for c in chunks)


def test_consecutive_chunks_share_overlap():
    chunks = TextChunker(60, 15).chunk(_CONTRACT)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.start == prev.end - 15
        assert prev.text[-15:] == nxt.text[:15]


def test_prefers_paragraph_boundary():
    text = "First paragraph here.\n\nSecond paragraph follows on."
    chunks = TextChunker(chunk_size=30, chunk_overlap=0).chunk(text)
    assert chunks[0].text == "First paragraph here.\n\n"


def test_falls_back_to_word_boundary():
    text = "alpha beta gamma delta epsilon zeta"
    chunks = TextChunker(chunk_size=20, chunk_overlap=0).chunk(text)
    assert chunks[0].text == "alpha beta gamma "
    assert reconstruct(chunks) == text


def test_metadata_copied_to_every_chunk():
    meta = {"id": "msa-1", "title": "MSA", "uploaded": 1717000000}
    chunks = TextChunker(40, 10).chunk(_CONTRACT, meta)
    assert len(chunks) > 1
    assert all(dict(c.metadata) == meta for c in chunks)


def test_metadata_is_snapshot_not_live_reference():
    meta = {"id": "msa-1", "title": "MSA"}
    chunks = TextChunker(40, 10).chunk(_CONTRACT, meta)
    meta["title"] = "changed"
    assert chunks[0].metadata["title"] == "MSA"
    with pytest.raises(TypeError):
        chunks[0].metadata["title"] = "mutated"  # type: ignore[index]


def test_ids_derived_from_supplied_document_id():
    chunks = TextChunker(40, 10).chunk(_CONTRACT, {"id": "msa-1"})
    assert [c.id for c in chunks] == [f"msa-1-{i}" for i in range(len(chunks))]


def test_ids_generated_when_not_supplied():
    a = TextChunker(40, 10).chunk(_CONTRACT)
    b = TextChunker(40, 10).chunk(_CONTRACT)
    ids = [c.id for c in a + b]
    assert len(set(ids)) == len(ids)
    assert all(c.id.startswith("doc-") for c in a)


def test_document_id_ignores_empty_id():
    assert document_id({"id": ""}).startswith("doc-")
    assert document_id({"id": 42}) == "42"


def test_split_accepts_documents_and_pairs():
    chunks = split(
        [Document(text="ABCDEF", metadata={"id": "a"}), ("GHIJKL", {"id": "b"})],
        chunk_size=4,
        chunk_overlap=1,
    )
    assert all(isinstance(c, ChunkRecord) for c in chunks)
    assert {c.metadata["id"] for c in chunks} == {"a", "b"}
    assert all(c.embedding is None for c in chunks)
