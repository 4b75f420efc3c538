#!/usr/bin/env python3
"""docsearch command line interface."""

import json
import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docsearch.config.settings import SearchSettings
from docsearch.errors import IndexBuildError
from docsearch.indexer.builder import build_search_index
from docsearch.indexer.models import SearchFilter, SearchIndex
from docsearch.indexer.search import search as run_query
from docsearch.observability.logging import setup_logging
from docsearch.sources.collector import CatalogCollector

console = Console(stderr=True)
app = typer.Typer(help="docsearch CLI - full-text search over documentation and examples")


def _settings(ctx: typer.Context) -> SearchSettings:
    return ctx.obj


def _build(settings: SearchSettings) -> SearchIndex:
    collector = CatalogCollector(settings.catalog_path, settings.content_dir)
    try:
        return asyncio.run(build_search_index(collector))
    except IndexBuildError as e:
        console.print(f"❌ Index build failed: {e}", style="bold red")
        raise typer.Exit(1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")
):
    """Configure settings and logging for every command."""
    settings = SearchSettings.from_env()
    setup_logging(level="DEBUG" if verbose else settings.log_level, use_json=settings.log_json)
    ctx.obj = settings


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search query"),
    filter: str = typer.Option("all", "--filter", "-f", help="all, docs, examples or components"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of results"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON")
):
    """Search the documentation index"""
    settings = _settings(ctx)
    search_filter = SearchFilter.parse(filter)
    index = _build(settings)

    results = run_query(
        query,
        index,
        search_filter,
        limit=limit if limit is not None else settings.max_results,
        weights=settings.weights,
        excerpt_radius=settings.excerpt_radius
    )

    if as_json:
        typer.echo(json.dumps({
            "query": query,
            "filter": search_filter.value,
            "results": [result.to_dict() for result in results],
            "total": len(results)
        }, indent=2))
        return

    out = Console()
    out.print(f"\n🔍 Query: [bold]{escape(query)}[/bold] ({search_filter.value})")
    out.print(f"📊 Found {len(results)} results in {index.total_items} indexed items\n")

    if not results:
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="bold")
    table.add_column("Type", width=8)
    table.add_column("URL")
    table.add_column("Excerpt")

    for i, result in enumerate(results, 1):
        excerpt = result.excerpt
        table.add_row(
            str(i),
            result.item.title,
            result.item.type.value,
            result.item.url,
            excerpt[:100] + "..." if len(excerpt) > 100 else excerpt
        )

    out.print(table)


@app.command("dump-index")
def dump_index(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout")
):
    """Write the full search index as JSON"""
    index = _build(_settings(ctx))
    payload = json.dumps(index.to_dict(), indent=2, ensure_ascii=False)

    if output is None:
        typer.echo(payload)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    console.print(f"✅ Wrote {index.total_items} items to {output}", style="bold green")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8001, "--port", help="Bind port")
):
    """Run the search API"""
    import uvicorn

    uvicorn.run("docsearch.server.search_api:app", host=host, port=port, log_config=None)


def main():
    app()


if __name__ == "__main__":
    main()
