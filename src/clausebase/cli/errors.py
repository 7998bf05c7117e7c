"""ClauseBase rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from clausebase.cli.errors import err_no_api_key
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GEMINI_API_KEY=...
    """
    env_map = {
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_source_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] Source file not found: '{path}'.\n"
        "  Pass an existing plain-text file with --source."
    )


def err_bad_filter(raw: str) -> str:
    return (
        f"[red]Error:[/] Invalid --filter '{raw}'.\n"
        "  Use key=value, e.g.  --filter contractId=msa-2024"
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix clausebase.yaml (chunking.chunk_overlap must be below chunking.chunk_size)."
    )


def err_embedding_unavailable(message: str) -> str:
    """Embedding service failed; nothing from the failing document was indexed."""
    return (
        f"[red]Error:[/] Embedding service unavailable: {message}\n"
        "  Check the embedding.model setting and your API key, then re-run."
    )


def err_dimension_mismatch(message: str) -> str:
    return (
        f"[red]Error:[/] {message}\n"
        "  All documents and queries must be embedded with the same embedding.model."
    )


def err_analysis_failed(message: str) -> str:
    return (
        f"[red]Error:[/] Analysis failed: {message}\n"
        "  Check the generation.model setting and your API key, then re-run."
    )
