"""Command line interface for dsfr-docs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from dsfrdocs.config import AppConfig
from dsfrdocs.index.indexer import build_repository
from dsfrdocs.services.retrieval import RetrievalService, ToolResponse


console = Console()
app = typer.Typer(help="dsfr-docs - index and query the DSFR component sources")

SOURCE_OPTION = typer.Option(None, "--source", help="Root of the DSFR source tree")
DOCS_OPTION = typer.Option(None, "--docs", help="Directory of documentation pages")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _config(source: Optional[Path], docs: Optional[Path]) -> AppConfig:
    config = AppConfig()
    if source is not None:
        config.source_root = source
    if docs is not None:
        config.docs_root = docs
    return config


def _service(source: Optional[Path], docs: Optional[Path]) -> RetrievalService:
    config = _config(source, docs)
    repository, _ = build_repository(config, Path.cwd())
    return RetrievalService.from_config(repository, config)


def _render(response: ToolResponse) -> None:
    if response.is_error:
        console.print(response.text, style="red", markup=False)
        raise typer.Exit(code=1)
    console.print(Markdown(response.text))


@app.command()
def index(
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Ingest the sources and documentation, then print a summary."""
    _setup_logging(verbose)
    config = _config(source, docs)
    console.print(f"Indexing [bold]{config.source_root}[/bold] and [bold]{config.docs_root}[/bold]...")
    repository, stats = build_repository(config, Path.cwd())

    console.print(
        f"Processed: {stats.processed}, skipped: {stats.skipped}, failed: {stats.failed}"
    )
    summary = repository.summary()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Map")
    table.add_column("Entries", justify="right")
    for key, value in summary.items():
        if key != "component_details":
            table.add_row(key, str(value))
    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    category: Optional[str] = typer.Option(None, help="Restrict to one document category"),
    limit: int = typer.Option(10, help="Number of results to display"),
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Fuzzy-search the documentation pages."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.search_components(query, category=category, limit=limit))


@app.command()
def component(
    name: str = typer.Argument(..., help="Component name, e.g. 'bouton'"),
    examples: bool = typer.Option(True, "--examples/--no-examples", help="Include code examples"),
    accessibility: bool = typer.Option(
        True, "--accessibility/--no-accessibility", help="Include accessibility notes"
    ),
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show everything known about one component."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.get_component_details(name, examples, accessibility))


@app.command()
def categories(
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List document categories and the source inventory."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.list_categories())


@app.command()
def patterns(
    query: str = typer.Argument(..., help="Query text"),
    pattern_type: Optional[str] = typer.Option(None, "--type", help="Keep titles containing this word"),
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Search page patterns and templates."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.search_patterns(query, pattern_type))


@app.command()
def icons(
    category: Optional[str] = typer.Option(None, help="Icon family, e.g. 'system'"),
    search: Optional[str] = typer.Option(None, "--search", help="Query text"),
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List icon documentation pages."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.get_icons(category, search))


@app.command()
def colors(
    fmt: str = typer.Option("hex", "--format", help="hex, rgb or hsl"),
    utilities: bool = typer.Option(True, "--utilities/--no-utilities", help="Include utility classes"),
    source: Optional[Path] = SOURCE_OPTION,
    docs: Optional[Path] = DOCS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the core colour palette."""
    _setup_logging(verbose)
    with _service(source, docs) as service:
        _render(service.get_colors(fmt, utilities))
