"""ClauseBase CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from clausebase.cli.query import analyze_cmd, ask_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("clausebase")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"clausebase {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="clausebase",
    help=(
        "ClauseBase — ask questions about contracts.\n\n"
        "  clausebase ask      Answer a question from ingested documents.\n"
        "  clausebase analyze  Structured analysis of one contract."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log retrieval details."),
    ] = False,
) -> None:
    """ClauseBase — ask questions about contracts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )
    logging.getLogger("clausebase").setLevel(logging.DEBUG if verbose else logging.WARNING)


app.command("ask")(ask_cmd)
app.command("analyze")(analyze_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ClauseBase version."""
    typer.echo(f"clausebase {_version()}")


if __name__ == "__main__":
    app()
