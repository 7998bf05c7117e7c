"""Layered configuration for ClauseBase.

Later layers win:
  defaults  <  ~/.clausebase/config.yaml  <  ./clausebase.yaml  <  environment
(CLAUSEBASE_EMBEDDING_MODEL, CLAUSEBASE_GENERATION_MODEL). Command-line flags
are applied by the commands themselves.

The global file may hold model defaults only. Credentials belong in the
provider's environment variable, so credential-like keys there are rejected.
YAML is always parsed with yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from clausebase.errors import ConfigurationError
from clausebase.ingest.chunker import validate_chunking

# ---------------------------------------------------------------------------
# Paths and patterns
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".clausebase"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "clausebase.yaml"

# Key names that suggest a credential. Does NOT match max_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "chunking", "retrieval"]
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (clausebase.yaml: embedding:)."""

    model: str = "gemini/text-embedding-004"


@dataclass
class GenerationCfg:
    """Completion model configuration (clausebase.yaml: generation:)."""

    model: str = "gemini/gemini-1.5-flash"
    max_tokens: int = 2048
    temperature: float = 0.0


@dataclass
class ChunkingCfg:
    """Chunk size and overlap in characters (clausebase.yaml: chunking:)."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass
class RetrievalCfg:
    """Retrieval defaults (clausebase.yaml: retrieval:)."""

    top_k: int = 3
    max_chunks_from_target: int = 3
    max_similar_docs: int = 2


@dataclass
class ClauseBaseConfig:
    """Everything load_config() resolves: models, chunking and retrieval defaults."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Reject credential-like key names anywhere in *data*."""

    def _walk(node: Any, prefix: str) -> None:
        if not isinstance(node, dict):
            return
        for key, value in node.items():
            dotted = f"{prefix}.{key}" if prefix else str(key)
            if _API_KEY_RE.search(str(key)):
                env_name = str(key).upper().replace("-", "_")
                raise ConfigurationError(
                    f"'{source}' holds a forbidden key '{dotted}'.\n"
                    f"  Credentials are read from the environment only. Delete '{dotted}' "
                    f"and run:\n    export {env_name}=<value>"
                )
            _walk(value, dotted)

    _walk(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    unknown = sorted(str(key) for key in data if key not in _KNOWN_SECTIONS)
    for key in unknown:
        warnings.warn(
            f"Unknown config key '{key}' in '{source}', ignoring it.",
            UserWarning,
            stacklevel=4,
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{path}' must contain a mapping at top level.")
    return data


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge *override* into a copy of *base*, recursing into nested mappings."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> ClauseBaseConfig:
    """Build a *ClauseBaseConfig* from a merged raw YAML dict."""
    cfg = ClauseBaseConfig()

    try:
        if "embedding" in data:
            e = data["embedding"]
            cfg.embedding = EmbeddingCfg(model=str(e.get("model", cfg.embedding.model)))

        if "generation" in data:
            g = data["generation"]
            cfg.generation = GenerationCfg(
                model=str(g.get("model", cfg.generation.model)),
                max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
                temperature=float(g.get("temperature", cfg.generation.temperature)),
            )

        if "chunking" in data:
            c = data["chunking"]
            cfg.chunking = ChunkingCfg(
                chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
                chunk_overlap=int(c.get("chunk_overlap", cfg.chunking.chunk_overlap)),
            )

        if "retrieval" in data:
            r = data["retrieval"]
            cfg.retrieval = RetrievalCfg(
                top_k=int(r.get("top_k", cfg.retrieval.top_k)),
                max_chunks_from_target=int(
                    r.get("max_chunks_from_target", cfg.retrieval.max_chunks_from_target)
                ),
                max_similar_docs=int(r.get("max_similar_docs", cfg.retrieval.max_similar_docs)),
            )
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: ClauseBaseConfig) -> ClauseBaseConfig:
    """Apply CLAUSEBASE_* environment variable overrides."""
    if model := os.environ.get("CLAUSEBASE_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("CLAUSEBASE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    return cfg


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ClauseBaseConfig:
    """Load and return a merged *ClauseBaseConfig*.

    Reads the global file, then clausebase.yaml in *project_dir*, then the
    CLAUSEBASE_* environment variables; each layer overrides the previous one.

    Args:
        project_dir: Directory to search for *clausebase.yaml*. Defaults to CWD.
        global_config_path: Global config file to read instead of ~/.clausebase/config.yaml.

    Raises:
        ConfigurationError: If global config contains API-key-like fields, a value
            has the wrong type, or the chunking parameters are invalid.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    validate_chunking(cfg.chunking.chunk_size, cfg.chunking.chunk_overlap)

    return _apply_env_overrides(cfg)
