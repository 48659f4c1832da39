"""ycscrape CLI: run a scrape from the terminal or start the web service.

Usage:
    ycscrape scrape URL                     # Stream profile records as NDJSON
    ycscrape scrape URL --qa                # Stream application Q&A instead
    ycscrape scrape URL -o companies.jsonl  # Write events to a file
    ycscrape serve                          # Start the HTTP service
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TextIO

import click

from ycscrape.common.exceptions import RequestValidationException
from ycscrape.data_types import ExtractionMode, ListingRequest
from ycscrape.events import EventKind
from ycscrape.settings import ScrapeSettings


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("ycscrape").setLevel(log_level)


@click.group()
@click.version_option(package_name="ycscrape")
def cli() -> None:
    """ycscrape: listing-page company scraper."""


@cli.command()
@click.argument("url")
@click.option(
    "--qa",
    is_flag=True,
    help="Extract application question/answer pairs instead of profile fields.",
)
@click.option(
    "--browser",
    "browser_type",
    type=click.Choice(["chromium", "firefox", "webkit"]),
    default="chromium",
    show_default=True,
    help="Browser to drive.",
)
@click.option("--headed", is_flag=True, help="Show the browser window.")
@click.option(
    "--max-scrolls",
    type=click.IntRange(min=1),
    default=None,
    help="Cap on listing scroll attempts (default: 20).",
)
@click.option(
    "-o",
    "--output",
    type=click.File("w", encoding="utf-8"),
    default="-",
    help="Write NDJSON events to this file instead of stdout.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def scrape(
    url: str,
    qa: bool,
    browser_type: str,
    headed: bool,
    max_scrolls: int | None,
    output: TextIO,
    verbose: bool,
) -> None:
    """Scrape every company on a listing page.

    URL is a listing page such as https://www.ycombinator.com/companies?batch=W24.
    Each event is written as one line of JSON as soon as it happens.

    \b
    Exit codes:
        0  the scrape completed
        1  the scrape failed as a whole
        2  the URL was rejected
    """
    _configure_logging(verbose)

    settings = ScrapeSettings().with_overrides(
        browser_type=browser_type,
        headless=not headed,
        max_scroll_attempts=max_scrolls,
    )
    mode = ExtractionMode.QA if qa else ExtractionMode.FLAT

    try:
        listing = ListingRequest.from_payload(
            {"url": url}, mode, settings.required_segment
        )
    except RequestValidationException as e:
        raise click.BadParameter(e.message, param_hint="URL") from e

    terminal_kind = asyncio.run(_run_scrape(listing, settings, output))
    if terminal_kind is not EventKind.COMPLETE:
        sys.exit(1)


async def _run_scrape(
    listing: ListingRequest, settings: ScrapeSettings, output: TextIO
) -> EventKind | None:
    from ycscrape.orchestrator import run_scrape

    terminal_kind: EventKind | None = None
    async for event in run_scrape(listing, settings):
        output.write(event.to_json() + "\n")
        output.flush()
        if event.is_terminal:
            terminal_kind = event.kind
    return terminal_kind


@cli.command()
@click.option(
    "--host",
    default="127.0.0.1",
    show_default=True,
    help="Host to bind the server to.",
)
@click.option(
    "--port",
    default=8000,
    show_default=True,
    type=int,
    help="Port to bind the server to.",
)
@click.option("--headed", is_flag=True, help="Show browser windows.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def serve(host: str, port: int, headed: bool, verbose: bool) -> None:
    """Start the scrape HTTP service."""
    import uvicorn

    from ycscrape.web.app import create_app

    _configure_logging(verbose)

    settings = ScrapeSettings().with_overrides(headless=not headed)
    app = create_app(settings=settings)

    click.echo(f"Starting web server at http://{host}:{port}")
    click.echo(
        "Endpoints: POST /api/scrape, /api/scrape-qa "
        "(add /buffered for a single JSON response)"
    )

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info" if verbose else "warning",
    )


@cli.command("selectors")
def show_selectors() -> None:
    """Print the selectors used for discovery and extraction as JSON."""
    from ycscrape import extraction
    from ycscrape.discovery import EXCLUDED_SUBPATHS, PROFILE_LINK_SELECTOR

    click.echo(
        json.dumps(
            {
                "profile_links": PROFILE_LINK_SELECTOR,
                "excluded_subpaths": list(EXCLUDED_SUBPATHS),
                "content_marker": extraction.CONTENT_MARKER_SELECTOR,
                "name": [s.selector for s in extraction.NAME_STRATEGIES],
                "tagline": [s.selector for s in extraction.TAGLINE_STRATEGIES],
                "description": [
                    s.selector
                    for s in extraction.DESCRIPTION_STRATEGIES
                    + extraction.DESCRIPTION_FALLBACK_STRATEGIES
                ],
                "qa_name": [s.selector for s in extraction.QA_NAME_STRATEGIES],
                "qa_block": extraction.QA_BLOCK_SELECTOR,
                "qa_question": extraction.QA_QUESTION_SELECTOR,
                "qa_answer": extraction.QA_ANSWER_SELECTOR,
            },
            indent=2,
        )
    )


def main() -> None:
    """Entry point for the ``ycscrape`` console script."""
    cli()
