"""clausebase ask / analyze — one-shot retrieval over local text files.

The knowledge base lives in memory for the duration of one command: every
--source file is ingested (metadata: id, title, contractId from the file
name), then the question is answered or the contract analyzed.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from clausebase.cli.errors import (
    err_analysis_failed,
    err_bad_filter,
    err_config,
    err_dimension_mismatch,
    err_embedding_unavailable,
    err_no_api_key,
    err_source_not_found,
)
from clausebase.config import ClauseBaseConfig, load_config
from clausebase.errors import (
    AnalysisFailed,
    ClauseBaseError,
    ConfigurationError,
    DimensionMismatch,
    EmbeddingUnavailable,
)
from clausebase.knowledge_base import KnowledgeBase
from clausebase.rag.llm_client import completer, embedder, validate_api_key
from clausebase.rag.orchestrator import AnalysisOptions, ContractAnalysis, RagOrchestrator

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer.")],
    source: Annotated[
        list[Path] | None,
        typer.Option("--source", "-s", help="Plain-text document to ingest (repeatable)."),
    ] = None,
    k: Annotated[
        int | None,
        typer.Option("--k", "-k", help="Chunks to retrieve (default: retrieval.top_k)."),
    ] = None,
    filters: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="Metadata filter key=value (repeatable)."),
    ] = None,
) -> None:
    """Answer QUESTION from the ingested sources."""
    metadata_filter = _parse_filters(filters or [])
    cfg = _load_cfg()
    orchestrator = _build_orchestrator(cfg)

    async def _run() -> str:
        await _ingest_sources(orchestrator.kb, source or [])
        return await orchestrator.answer(
            question,
            k=k if k is not None else cfg.retrieval.top_k,
            filter=metadata_filter or None,
        )

    answer = _run_or_exit(_run())
    console.print(answer, markup=False)


def analyze_cmd(
    contract: Annotated[Path, typer.Argument(help="Plain-text contract to analyze.")],
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Focus of the analysis."),
    ] = "Summarize the key terms, risks and obligations.",
    source: Annotated[
        list[Path] | None,
        typer.Option("--source", "-s", help="Reference document to ingest (repeatable)."),
    ] = None,
    contract_id: Annotated[
        str | None,
        typer.Option("--contract-id", help="contractId of an ingested source to pull excerpts from."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the analysis as JSON only."),
    ] = False,
) -> None:
    """Produce a structured analysis of CONTRACT."""
    if not contract.is_file():
        console.print(err_source_not_found(str(contract)))
        raise typer.Exit(1)

    cfg = _load_cfg()
    orchestrator = _build_orchestrator(cfg)
    options = AnalysisOptions(
        target_contract_id=contract_id,
        max_chunks_from_target=cfg.retrieval.max_chunks_from_target,
        max_similar_docs=cfg.retrieval.max_similar_docs,
    )
    contract_text = contract.read_text(encoding="utf-8", errors="replace")

    async def _run() -> ContractAnalysis:
        await _ingest_sources(orchestrator.kb, source or [])
        return await orchestrator.analyze_contract(contract_text, query, options)

    analysis = _run_or_exit(_run())

    if as_json:
        console.print_json(json.dumps(asdict(analysis)))
        return
    _print_analysis(analysis)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _parse_filters(raw: list[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            console.print(err_bad_filter(item))
            raise typer.Exit(1)
        parsed[key.strip()] = value.strip()
    return parsed


def _load_cfg() -> ClauseBaseConfig:
    try:
        cfg = load_config()
    except ConfigurationError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    for model in (cfg.embedding.model, cfg.generation.model):
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(model.split("/")[0] if "/" in model else "openai"))
            raise typer.Exit(1)
    return cfg


def _build_orchestrator(cfg: ClauseBaseConfig) -> RagOrchestrator:
    kb = KnowledgeBase(
        embedder(cfg.embedding.model),
        chunk_size=cfg.chunking.chunk_size,
        chunk_overlap=cfg.chunking.chunk_overlap,
    )
    complete_fn = completer(
        cfg.generation.model,
        max_tokens=cfg.generation.max_tokens,
        temperature=cfg.generation.temperature,
    )
    return RagOrchestrator(kb, complete_fn, default_k=cfg.retrieval.top_k)


async def _ingest_sources(kb: KnowledgeBase, sources: list[Path]) -> None:
    await kb.initialize()
    for path in sources:
        if not path.is_file():
            console.print(err_source_not_found(str(path)))
            raise typer.Exit(1)
        text = path.read_text(encoding="utf-8", errors="replace")
        records = await kb.ingest(
            text,
            {"id": path.stem, "title": path.name, "contractId": path.stem},
        )
        console.print(f"[green]✓[/] {path.name}: {len(records)} chunks", highlight=False)


def _run_or_exit(coro):
    try:
        return asyncio.run(coro)
    except EmbeddingUnavailable as exc:
        console.print(err_embedding_unavailable(str(exc)))
    except DimensionMismatch as exc:
        console.print(err_dimension_mismatch(str(exc)))
    except AnalysisFailed as exc:
        console.print(err_analysis_failed(str(exc)))
    except ClauseBaseError as exc:
        console.print(f"[red]Error:[/] {exc}")
    raise typer.Exit(1)


def _print_analysis(analysis: ContractAnalysis) -> None:
    console.print(f"[bold]{analysis.document_type}[/]")
    console.print(analysis.executive_summary, markup=False)

    if analysis.parties:
        console.print("\n[bold]Parties[/]")
        for party in analysis.parties:
            console.print(f"  • {party.name} ({party.role or 'Party'})", markup=False)

    dates = analysis.key_dates
    console.print(
        f"\n[bold]Dates[/]  effective: {dates.effective_date or '—'}  "
        f"expires: {dates.expiration_date or '—'}  renewal: {dates.renewal_date or '—'}"
    )

    if analysis.risks:
        table = Table(title="Risks")
        table.add_column("Level")
        table.add_column("Description")
        table.add_column("Mitigation")
        for risk in analysis.risks:
            table.add_row(risk.level, risk.description, risk.mitigation or "")
        console.print(table)

    if analysis.obligations:
        table = Table(title="Obligations")
        table.add_column("Description")
        table.add_column("Responsible")
        table.add_column("Due")
        for ob in analysis.obligations:
            table.add_row(ob.description, ob.responsible_party, ob.due_date or "")
        console.print(table)

    if analysis.recommendations:
        console.print("\n[bold]Recommendations[/]")
        for rec in analysis.recommendations:
            console.print(f"  • {rec}", markup=False)
