"""Command-line interface for the News Aggregator."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from news_aggregator.aggregator import NewsAggregator, ProviderValidationError
from news_aggregator.config import get_settings
from news_aggregator.models.schemas import (
    FetchParams,
    NewsCategory,
    NewsSource,
    PaginatedResult,
)

# Configure logging with Rich handler for better formatting
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)
logger = logging.getLogger(__name__)

app = typer.Typer(
    name="news-aggregator",
    help="Aggregate headlines from NewsAPI and The New York Times",
)
console = Console()


async def _fetch(
    params: FetchParams,
    source: Optional[NewsSource],
) -> PaginatedResult:
    aggregator = NewsAggregator(get_settings())
    try:
        if source:
            return await aggregator.fetch_one(source, params)
        return await aggregator.fetch_all(params)
    finally:
        await aggregator.close()


async def _search(
    query: str,
    category: Optional[NewsCategory],
    source: Optional[NewsSource],
) -> PaginatedResult:
    aggregator = NewsAggregator(get_settings())
    try:
        return await aggregator.search(query, category=category, source=source)
    finally:
        await aggregator.close()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")


def _display_result(result: PaginatedResult) -> None:
    """Render a page of articles as a table."""
    if not result.articles:
        console.print("[yellow]No articles found[/yellow]")
        return

    table = Table(title=f"Page {result.page} ({result.total_results} total)")
    table.add_column("Published", style="cyan", no_wrap=True)
    table.add_column("Source", style="green")
    table.add_column("Category")
    table.add_column("Title", max_width=60)

    for article in result.articles:
        table.add_row(
            article.published_at[:16] or "N/A",
            article.source,
            article.category.value,
            article.title,
        )

    console.print(table)
    if result.has_more:
        console.print(f"[dim]More available: --page {result.page + 1}[/dim]")


def _emit(result: PaginatedResult, json_output: bool) -> None:
    if json_output:
        print(result.model_dump_json(by_alias=True, indent=2))
    else:
        _display_result(result)


@app.command()
def headlines(
    category: Optional[NewsCategory] = typer.Option(
        None, "--category", "-c", help="Filter by category"
    ),
    query: str = typer.Option("", "--query", "-q", help="Search term"),
    source: Optional[NewsSource] = typer.Option(
        None, "--source", "-s", help="Only ask one provider"
    ),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    page_size: int = typer.Option(
        10, "--page-size", "-n", min=1, max=100, help="Articles per page"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON only"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """Fetch a page of headlines from every provider, or one."""
    _configure_logging(verbose)

    params = FetchParams(category=category, query=query, page=page, page_size=page_size)
    try:
        result = asyncio.run(_fetch(params, source))
    except ProviderValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _emit(result, json_output)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search term"),
    category: Optional[NewsCategory] = typer.Option(
        None, "--category", "-c", help="Filter by category"
    ),
    source: Optional[NewsSource] = typer.Option(
        None, "--source", "-s", help="Only ask one provider"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON only"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """Search the first page of articles matching QUERY."""
    _configure_logging(verbose)

    try:
        result = asyncio.run(_search(query, category, source))
    except ProviderValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _emit(result, json_output)


@app.command()
def sources():
    """List the enabled providers."""
    settings = get_settings()
    for source in settings.enabled_providers:
        configured = {
            NewsSource.NEWS_API: settings.has_newsapi,
            NewsSource.NY_TIMES: settings.has_nytimes,
        }[source]
        status = "[green]configured[/green]" if configured else "[red]missing API key[/red]"
        console.print(f"{source.value}: {status}")


if __name__ == "__main__":
    app()
