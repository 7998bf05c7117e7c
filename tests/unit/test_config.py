"""Tests for the ClauseBase config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from clausebase.config import load_config
from clausebase.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv("CLAUSEBASE_GENERATION_MODEL", raising=False)
    monkeypatch.delenv("CLAUSEBASE_EMBEDDING_MODEL", raising=False)


# ---------------------------------------------------------------------------
# Defaults — no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.embedding.model == "gemini/text-embedding-004"
    assert cfg.generation.model == "gemini/gemini-1.5-flash"
    assert cfg.generation.max_tokens == 2048
    assert cfg.chunking.chunk_size == 1000
    assert cfg.chunking.chunk_overlap == 200
    assert cfg.retrieval.top_k == 3
    assert cfg.retrieval.max_chunks_from_target == 3
    assert cfg.retrieval.max_similar_docs == 2


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "gemini/gemini-1.5-flash"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "openai/gpt-4o-mini"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.embedding.model == "gemini/text-embedding-004"


def test_load_config_project_partial_override(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"retrieval": {"top_k": 8, "max_similar_docs": 4}})
    _write_yaml(tmp_path / "clausebase.yaml", {"retrieval": {"top_k": 5}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 5
    assert cfg.retrieval.max_similar_docs == 4


def test_load_config_chunking_override(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "clausebase.yaml", {"chunking": {"chunk_size": 500, "chunk_overlap": 50}})
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.chunking.chunk_size == 500
    assert cfg.chunking.chunk_overlap == 50


def test_load_config_env_overrides_files(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "clausebase.yaml", {"embedding": {"model": "openai/text-embedding-3-small"}})
    monkeypatch.setenv("CLAUSEBASE_EMBEDDING_MODEL", "ollama/nomic-embed-text")
    monkeypatch.setenv("CLAUSEBASE_GENERATION_MODEL", "ollama/llama3")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.embedding.model == "ollama/nomic-embed-text"
    assert cfg.generation.model == "ollama/llama3"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_load_config_rejects_overlap_not_below_size(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "clausebase.yaml", {"chunking": {"chunk_size": 200, "chunk_overlap": 200}})
    with pytest.raises(ConfigurationError, match="chunk_overlap"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_load_config_rejects_non_numeric_values(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "clausebase.yaml", {"retrieval": {"top_k": "many"}})
    with pytest.raises(ConfigurationError):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_load_config_rejects_non_mapping_file(tmp_path: Path) -> None:
    (tmp_path / "clausebase.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


@pytest.mark.parametrize("key", ["api_key", "gemini_api_key", "auth_token", "password"])
def test_global_config_rejects_api_keys(tmp_path: Path, key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {key: "secret-value"}})
    with pytest.raises(ConfigurationError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_config_allows_max_tokens(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"max_tokens": 512}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.generation.max_tokens == 512


def test_unknown_section_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "clausebase.yaml", {"delivery": {"output": "x.md"}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert any("Unknown config key 'delivery'" in str(w.message) for w in caught)
