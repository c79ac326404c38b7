"""Catalog Scraper CLI.

Usage:
    catalog-scraper scrape [CATEGORIES_FILE] [OPTIONS]
    catalog-scraper session URL
    catalog-scraper categories [FILE]

Exit codes: 0=every category succeeded (possibly with skipped pages),
1=at least one category failed, 2=invalid input.
"""

# Load .env file before any other imports
from pathlib import Path as _Path

from dotenv import load_dotenv

_env_path = _Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from cli.categories import load_categories, to_category
from collectors.orchestrator import CategoryOrchestrator, summarize
from common.catalog_client import CatalogClient
from common.session import SessionProvider, load_default_credentials
from config import get_settings
from config.constants import SAVE_FORMATS, TARGET_DOMAIN
from config.settings import Settings
from core.types import Category, CategoryOutcome
from observability import setup_logging
from rate_limit.progress import ProgressReporter
from sources import PageProbeSessionSource, StaticSessionSource
from sources.base import SessionSource

# Create CLI app
app = typer.Typer(
    name="catalog-scraper",
    help="Catalog Scraper CLI",
    add_completion=False,
)

console = Console()

RESULT_STYLES = {"success": "green", "partial": "yellow", "failed": "red"}


def _log_level(quiet: bool, verbose: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


@app.command()
def scrape(
    categories_file: Annotated[
        Path | None, typer.Argument(help="Category list (.txt or .json)")
    ] = None,
    url: Annotated[
        list[str] | None, typer.Option("--url", "-u", help="Category URL (repeatable)")
    ] = None,
    batch_size: Annotated[
        int | None, typer.Option("--batch-size", "-b", min=1, help="Pages per concurrent batch")
    ] = None,
    formats: Annotated[
        str | None, typer.Option("--formats", "-f", help="Output formats: json, csv or both")
    ] = None,
    no_auto_session: Annotated[
        bool, typer.Option("--no-auto-session", help="Use the default credentials only")
    ] = False,
    retry_failed: Annotated[
        bool, typer.Option("--retry-failed", help="Re-fetch retryable failed pages")
    ] = False,
    no_combined: Annotated[
        bool, typer.Option("--no-combined", help="Skip all-categories outputs")
    ] = False,
    limit: Annotated[int | None, typer.Option("--limit", min=1, help="Limit number of categories")] = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Emit JSON log lines")] = False,
) -> None:
    """Scrape every category into JSON/CSV files.

    Examples:
        catalog-scraper scrape categories.txt
        catalog-scraper scrape --url https://hotline.ua/ua/mobile/mobilnye-telefony-i-smartfony/
        catalog-scraper scrape categories.json --formats csv --batch-size 10
    """
    settings = get_settings()

    if formats is not None:
        formats = formats.strip().lower()
        if formats not in SAVE_FORMATS:
            console.print(
                f"[red]Invalid formats: {formats}. Use {', '.join(SAVE_FORMATS)}.[/red]"
            )
            raise typer.Exit(code=2)

    overrides: dict = {}
    if batch_size is not None:
        overrides["batch_size"] = batch_size
    if formats is not None:
        overrides["save_formats"] = formats
    if no_auto_session:
        overrides["auto_session"] = False
    if retry_failed:
        overrides["retry_failed_pages"] = True
    if no_combined:
        overrides["combined_output"] = False
    settings = settings.model_copy(update=overrides)

    categories = _resolve_categories(categories_file, url or [], settings)
    if limit:
        categories = categories[:limit]
    if not categories:
        console.print("[red]No valid categories to process.[/red]")
        raise typer.Exit(code=2)

    reporter = ProgressReporter(disable=quiet)
    setup_logging(
        level=_log_level(quiet, verbose),
        json_format=json_logs,
        quiet=quiet,
        reporter=reporter,
        force=True,
    )

    if not quiet:
        console.print("=" * 44)
        console.print("[bold]Catalog Scraper[/bold]")
        console.print(f"Categories: {len(categories)}")
        console.print(f"Batch size: {settings.batch_size}")
        console.print(f"Formats: {settings.save_formats}")
        console.print(f"Auto session: {settings.auto_session}")
        console.print(f"Retry failed pages: {settings.retry_failed_pages}")
        console.print(f"Output: {settings.output_dir}")
        console.print("=" * 44)

    try:
        outcomes = asyncio.run(_run_scrape(settings, categories, reporter))
    except KeyboardInterrupt:
        reporter.stop()
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=1)

    counts = summarize(outcomes)
    if not quiet:
        console.print(_summary_table(outcomes))
        console.print(
            f"Success: {counts['success']}, partial: {counts['partial']}, "
            f"failed: {counts['failed']}, skipped pages: {counts['skipped_pages']}, "
            f"records: {counts['total_records']}"
        )

    if counts["failed"]:
        raise typer.Exit(code=1)


@app.command()
def session(
    url: Annotated[str, typer.Argument(help="Category URL to probe")],
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Probe timeout in seconds")
    ] = None,
) -> None:
    """Probe session credentials for one category."""
    setup_logging(level=logging.WARNING, force=True)
    settings = get_settings()

    category = to_category(url)
    if category is None:
        console.print(f"[red]Not a {TARGET_DOMAIN} category URL: {url}[/red]")
        raise typer.Exit(code=2)

    defaults = load_default_credentials(settings)
    provider = SessionProvider(
        PageProbeSessionSource(timeout=timeout or settings.session_timeout),
        defaults,
        timeout or settings.session_timeout,
    )

    async def probe():
        try:
            return await provider.obtain(category)
        finally:
            await provider.close()

    creds = asyncio.run(probe())

    if creds.source == "default":
        console.print("[yellow]Probe failed, default credentials would be used.[/yellow]")
    else:
        console.print(f"[green]Credentials obtained via {creds.source}.[/green]")
    console.print(f"  {creds.masked()}")

    if not creds.is_complete:
        console.print("[red]No usable credentials.[/red]")
        raise typer.Exit(code=1)


@app.command()
def categories(
    file: Annotated[Path | None, typer.Argument(help="Category list (.txt or .json)")] = None,
) -> None:
    """List the categories a source file yields."""
    setup_logging(level=logging.WARNING, force=True)
    path = file or get_settings().categories_file

    try:
        loaded = load_categories(path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(code=2)

    table = Table(title=f"{len(loaded)} categories")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Section", justify="right")
    table.add_column("URL")
    for index, category in enumerate(loaded, start=1):
        table.add_row(
            str(index),
            category.path,
            str(category.section_id or ""),
            category.url,
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print("[bold]Catalog Scraper v0.1.0[/bold]")


# ==================== Helper Functions ====================


def _resolve_categories(
    categories_file: Path | None,
    urls: list[str],
    settings: Settings,
) -> list[Category]:
    """Categories from --url options plus the category file."""
    result: list[Category] = []
    seen: set[str] = set()

    for raw in urls:
        candidate = raw.strip()
        if candidate in seen:
            continue
        category = to_category(candidate)
        if category is None:
            console.print(
                f"[yellow]Skipping non-{TARGET_DOMAIN} category URL: {candidate}[/yellow]"
            )
            continue
        seen.add(candidate)
        result.append(category)

    path = categories_file
    if path is None and not urls:
        path = settings.categories_file

    if path is not None:
        try:
            loaded = load_categories(path)
        except (OSError, ValueError) as e:
            console.print(f"[red]Cannot read {path}: {e}[/red]")
            raise typer.Exit(code=2)
        for category in loaded:
            if category.url not in seen:
                seen.add(category.url)
                result.append(category)

    return result


async def _run_scrape(
    settings: Settings,
    categories: list[Category],
    reporter: ProgressReporter,
) -> dict[str, CategoryOutcome]:
    defaults = load_default_credentials(settings)
    source: SessionSource
    if settings.auto_session:
        source = PageProbeSessionSource(timeout=settings.session_timeout)
    else:
        source = StaticSessionSource(defaults)
    sessions = SessionProvider(source, defaults, settings.session_timeout)

    async with CatalogClient(
        api_url=settings.api_url,
        city_id=settings.city_id,
        locale=settings.locale,
        items_per_page=settings.items_per_page,
        timeout=settings.request_timeout,
        concurrency=max(settings.batch_size, 1) * 2,
    ) as client:
        orchestrator = CategoryOrchestrator(
            settings=settings,
            client=client,
            sessions=sessions,
            reporter=reporter,
        )
        try:
            return await orchestrator.run(categories, settings.batch_size)
        finally:
            await sessions.close()
            reporter.stop()


def _summary_table(outcomes: dict[str, CategoryOutcome]) -> Table:
    table = Table(title="Scrape summary")
    table.add_column("Category")
    table.add_column("Result")
    table.add_column("Records", justify="right")
    table.add_column("Failed pages", justify="right")
    table.add_column("Error")

    for key, outcome in outcomes.items():
        style = RESULT_STYLES.get(outcome.result, "")
        table.add_row(
            key,
            f"[{style}]{outcome.result}[/{style}]",
            str(outcome.records_count),
            f"{len(outcome.failed_pages)}/{outcome.total_pages}",
            outcome.error or "",
        )
    return table


if __name__ == "__main__":
    app()
