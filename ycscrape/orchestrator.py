"""Batch orchestration of one scrape request.

The orchestrator owns the browser session for the lifetime of a request:

    INIT -> SESSION_OPEN -> DISCOVERING -> DISCOVERY_FAILED
                                        -> ITEM_LOOP -> COMPLETE
    (any state) -> FAILED on an unrecoverable error

Profile pages are visited strictly one after another on the single page of
the session. Failures of one profile are turned into a ``record_error``
event and the loop moves on; only session-level failures end the request.
The terminal event is emitted after the session has been released.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ycscrape.common.exceptions import (
    DiscoveryFailedException,
    ItemException,
    SessionException,
)
from ycscrape.data_types import (
    CompanyRecord,
    ExtractedProfile,
    ExtractedQA,
    ExtractionMode,
    FailedItem,
    ItemOutcome,
    ListingRequest,
    ProfileRecord,
    QARecord,
    ScrapedItem,
)
from ycscrape.discovery import LinkDiscovery
from ycscrape.events import EventChannel, ScrapeEvent, stream_events
from ycscrape.extraction import FieldExtractor
from ycscrape.session import PlaywrightSession
from ycscrape.settings import ScrapeSettings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ycscrape.session import PageSession, SessionFactory

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    """Lifecycle of one scrape request."""

    INIT = "init"
    SESSION_OPEN = "session_open"
    DISCOVERING = "discovering"
    DISCOVERY_FAILED = "discovery_failed"
    ITEM_LOOP = "item_loop"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class ModeMessages:
    """User-facing message templates for one extraction mode."""

    starting: str
    scraping: str
    empty: str
    error: str
    complete: str
    fatal: str


MESSAGES = {
    ExtractionMode.FLAT: ModeMessages(
        starting="Found {total} companies. Starting to scrape...",
        scraping="Scraping company {index}/{total}",
        empty="Failed to extract data for company: {url}",
        error="Error scraping company: {error}",
        complete="Successfully scraped {count} companies",
        fatal="Failed to scrape companies",
    ),
    ExtractionMode.QA: ModeMessages(
        starting="Found {total} companies. Starting to scrape Q&A...",
        scraping="Scraping Q&A {index}/{total}",
        empty="No Q&A data found for company: {url}",
        error="Error scraping company Q&A: {error}",
        complete="Successfully scraped Q&A for {count} companies",
        fatal="Failed to scrape company Q&A data",
    ),
}


def build_record(
    extracted: ExtractedProfile | ExtractedQA, url: str
) -> CompanyRecord | None:
    """Turn extraction output into a record, or None if it is unusable.

    Flat records need a name. QA records need a name and at least one
    question/answer pair.
    """
    if isinstance(extracted, ExtractedQA):
        if extracted.name and extracted.qa_list:
            return QARecord(
                name=extracted.name, url=url, qa_list=extracted.qa_list
            )
        return None

    if extracted.name:
        return ProfileRecord(
            name=extracted.name,
            title=extracted.title,
            description=extracted.description,
            url=url,
        )
    return None


class BatchOrchestrator:
    """Drives one scrape request from listing page to terminal event.

    Args:
        request: The validated request.
        settings: Timeouts, pauses and browser options.
        session_factory: Opens a page session as an async context manager.
            Defaults to a Playwright browser session.

    Attributes:
        state: Current lifecycle state.
        links: Profile URLs found by discovery.
        scraped: Records emitted so far, in emission order.
        failed: Items that produced a ``record_error``.

    Example:
        orchestrator = BatchOrchestrator(request)
        async for event in orchestrator.events():
            print(event.to_json())
    """

    def __init__(
        self,
        request: ListingRequest,
        settings: ScrapeSettings | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.request = request
        self.settings = settings or ScrapeSettings()
        self.session_factory = session_factory or PlaywrightSession.open
        self.discovery = LinkDiscovery(self.settings)
        self.extractor = FieldExtractor(request.mode)
        self.messages = MESSAGES[request.mode]

        self.state = OrchestratorState.INIT
        self.links: list[str] = []
        self.scraped: list[CompanyRecord] = []
        self.failed: list[FailedItem] = []

    def events(self) -> AsyncIterator[ScrapeEvent]:
        """Run the request and yield its events as they are emitted."""
        return stream_events(self.run)

    async def run(self, channel: EventChannel) -> None:
        """Run the request, emitting every event into channel.

        Emits exactly one terminal event. The session is released before
        the terminal event is emitted, on every path.
        """
        logger.info(f"Starting to scrape: {self.request.url}")
        try:
            async with self.session_factory(self.settings) as session:
                self._transition(OrchestratorState.SESSION_OPEN)
                await self._open_listing(session)

                self._transition(OrchestratorState.DISCOVERING)
                self.links = await self.discovery.discover(session)
                if not self.links:
                    raise DiscoveryFailedException(
                        self.request.url,
                        page_title=await session.title(),
                        page_url=session.url,
                    )

                self._transition(OrchestratorState.ITEM_LOOP)
                await self._scrape_items(session, channel)

        except DiscoveryFailedException as e:
            self._transition(OrchestratorState.DISCOVERY_FAILED)
            logger.warning(str(e))
            terminal = ScrapeEvent.fatal_error(
                e.message,
                debug={"pageTitle": e.page_title, "pageUrl": e.page_url},
            )

        except Exception as e:
            self._transition(OrchestratorState.FAILED)
            logger.error(f"Scraping error: {e}", exc_info=True)
            terminal = ScrapeEvent.fatal_error(self.messages.fatal, str(e))

        else:
            self._transition(OrchestratorState.COMPLETE)
            count = len(self.scraped)
            logger.info(
                f"Successfully scraped {count} of {len(self.links)} companies"
            )
            terminal = ScrapeEvent.complete(
                self.messages.complete.format(count=count),
                total_scraped=count,
                total_found=len(self.links),
            )

        await channel.emit(terminal)

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug(f"Orchestrator state {self.state.value} -> {state.value}")
        self.state = state

    async def _open_listing(self, session: PageSession) -> None:
        logger.info("Visiting listing page...")
        try:
            await session.goto(
                self.request.url,
                timeout_ms=self.settings.listing_timeout_ms,
                wait_until=self.settings.wait_until,
            )
        except PlaywrightError as e:
            raise SessionException(
                f"Failed to load listing page: {e}", self.request.url
            ) from e
        await session.pause(self.settings.listing_settle_ms)

    async def _scrape_items(
        self, session: PageSession, channel: EventChannel
    ) -> None:
        total = len(self.links)
        await channel.emit(
            ScrapeEvent.progress(
                self.messages.starting.format(total=total), 0, total
            )
        )

        for index, url in enumerate(self.links, start=1):
            await channel.emit(
                ScrapeEvent.progress(
                    self.messages.scraping.format(index=index, total=total),
                    index,
                    total,
                    current_url=url,
                )
            )
            logger.info(f"Scraping company {index}/{total}: {url}")

            outcome = await self._process_item(session, url)
            if isinstance(outcome, ScrapedItem):
                self.scraped.append(outcome.record)
                await channel.emit(ScrapeEvent.for_record(outcome.record))
            else:
                self.failed.append(outcome)
                await channel.emit(
                    ScrapeEvent.record_error(outcome.message, outcome.url)
                )

            await asyncio.sleep(self.settings.item_delay_ms / 1000.0)

    async def _process_item(
        self, session: PageSession, url: str
    ) -> ItemOutcome:
        """Visit one profile and classify the result.

        Never raises for failures of this item; they become FailedItem.
        """
        try:
            extracted = await self._visit(session, url)
        except Exception as e:
            logger.warning(f"Error scraping company {url}: {e}")
            return FailedItem(url, self.messages.error.format(error=e))

        record = build_record(extracted, url)
        if record is None:
            logger.warning(f"No usable data extracted for: {url}")
            return FailedItem(url, self.messages.empty.format(url=url))

        logger.info(f"Successfully scraped: {record.name}")
        return ScrapedItem(url, record)

    async def _visit(
        self, session: PageSession, url: str
    ) -> ExtractedProfile | ExtractedQA:
        try:
            await session.goto(
                url,
                timeout_ms=self.settings.profile_timeout_ms,
                wait_until=self.settings.wait_until,
            )
        except PlaywrightTimeoutError as e:
            raise ItemException(f"Navigation timed out: {e}", url) from e

        await session.pause(self.settings.profile_settle_ms)

        marker_found = await session.wait_for_selector(
            self.extractor.content_marker, self.settings.marker_timeout_ms
        )
        if not marker_found:
            await session.pause(self.settings.marker_fallback_ms)

        return self.extractor.extract(await session.content(), url)


def run_scrape(
    request: ListingRequest,
    settings: ScrapeSettings | None = None,
    session_factory: SessionFactory | None = None,
) -> AsyncIterator[ScrapeEvent]:
    """Run one scrape and yield its events as they happen."""
    return BatchOrchestrator(request, settings, session_factory).events()
