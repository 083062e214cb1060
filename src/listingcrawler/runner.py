"""CLI runner for listing crawls.

Run via: python -m listingcrawler.runner URL [URL ...]
Or schedule with cron/Task Scheduler.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import Settings
from .crawler import CrawlOrchestrator
from .errors import StoreError
from .models import CrawlRequest, CrawlResult
from .sites import available_profiles
from .storage import ListingStore, PostgresListingStore, SQLiteListingStore

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def build_requests(
    urls: list[str],
    site: Optional[str] = None,
    max_pages: Optional[int] = None,
    per_page_cap: Optional[int] = None,
    timeout_seconds: Optional[float] = None,
) -> list[CrawlRequest]:
    """One request per seed URL, sharing the same bounds."""
    deadline = None
    if timeout_seconds:
        deadline = datetime.now() + timedelta(seconds=timeout_seconds)
    return [
        CrawlRequest(
            seed_url=url,
            site=site,
            max_pages=max_pages,
            per_page_item_cap=per_page_cap,
            deadline=deadline,
        )
        for url in urls
    ]


def print_summary(
    requests: list[CrawlRequest],
    outcomes: list[Union[CrawlResult, Exception]],
) -> None:
    """Render one row per crawl."""
    table = Table(title="Crawl summary")
    table.add_column("Seed URL", overflow="fold")
    table.add_column("Site")
    table.add_column("Records", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("No data", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Stop")

    for request, outcome in zip(requests, outcomes):
        if isinstance(outcome, Exception):
            table.add_row(
                request.seed_url, request.site or "-", "-", "-", "-", "-", "-",
                f"[red]{outcome}[/red]",
            )
            continue
        stop = outcome.stop_reason.value if outcome.stop_reason else "-"
        if outcome.cancelled:
            stop = f"[yellow]{stop}[/yellow]"
        table.add_row(
            request.seed_url,
            outcome.source,
            str(outcome.count),
            str(outcome.items_failed),
            str(outcome.items_skipped),
            str(outcome.pages_visited),
            str(outcome.stored),
            stop,
        )

    console.print(table)


async def open_store(
    db_path: Optional[Path] = None,
    database_url: Optional[str] = None,
) -> Optional[ListingStore]:
    """Postgres when a DSN is given, else SQLite when a path is given."""
    if database_url:
        store = PostgresListingStore(database_url)
        await store.connect()
        return store
    if db_path:
        return SQLiteListingStore(db_path)
    return None


async def run_crawls(
    requests: list[CrawlRequest],
    settings: Settings,
    db_path: Optional[Path] = None,
    concurrency: int = 1,
    database_url: Optional[str] = None,
) -> list[Union[CrawlResult, Exception]]:
    """Run every request and return results (or errors) in request order.

    Store targets not given explicitly fall back to ``settings``.
    """
    store = await open_store(
        db_path or settings.db_path,
        database_url or settings.database_url,
    )
    orchestrator = CrawlOrchestrator(settings=settings, store=store)
    try:
        return await orchestrator.run_many(requests, concurrency=concurrency)
    finally:
        if store is not None:
            await store.close()


def main() -> None:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="listingcrawler - crawl rendered listing sites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Site profiles: {", ".join(available_profiles())}

Examples:
  python -m listingcrawler.runner https://www.redfin.com/city/19187/WA/Walla-Walla
  python -m listingcrawler.runner https://www.apartments.com/houses/walla-walla-wa/ --db data/listings.db
  python -m listingcrawler.runner https://example.com/homes --site generic --json
        """,
    )

    parser.add_argument("urls", nargs="+", metavar="URL", help="Seed listing page(s)")
    parser.add_argument("--site", help="Site profile (default: detect from URL)")
    parser.add_argument("--max-pages", type=int, help="Stop after this many pages")
    parser.add_argument("--per-page-cap", type=int, help="Items taken from each page")
    parser.add_argument(
        "--timeout-seconds", type=float, help="Cancel crawls still running after this"
    )
    parser.add_argument("--db", type=Path, help="SQLite file to store new listings in")
    parser.add_argument(
        "--database-url",
        help="Postgres DSN to store new listings in (default: LISTINGCRAWLER_DATABASE_URL)",
    )
    parser.add_argument(
        "--concurrency", type=int, default=1, help="Parallel sessions (one per site)"
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        requests = build_requests(
            args.urls,
            site=args.site,
            max_pages=args.max_pages,
            per_page_cap=args.per_page_cap,
            timeout_seconds=args.timeout_seconds,
        )
    except ValueError as e:
        console.print(f"[red]Invalid arguments: {e}[/red]")
        sys.exit(2)

    try:
        outcomes = asyncio.run(run_crawls(
            requests,
            settings=Settings(),
            db_path=args.db,
            concurrency=args.concurrency,
            database_url=args.database_url,
        ))
    except StoreError as e:
        logger.error(f"Store unavailable: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    if args.json:
        payload = [
            {"seed_url": r.seed_url, "error": str(o)}
            if isinstance(o, Exception)
            else o.model_dump(mode="json")
            for r, o in zip(requests, outcomes)
        ]
        console.print_json(json.dumps(payload))
    else:
        print_summary(requests, outcomes)

    failed = [o for o in outcomes if isinstance(o, Exception)]
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
