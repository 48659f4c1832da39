"""Test utilities for scrape pipeline tests.

This module provides an in-memory PageSession, a session factory that
counts acquisitions and releases, and builders for listing and profile
HTML shaped like the real site.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from ycscrape.events import ScrapeEvent
from ycscrape.settings import ScrapeSettings


LISTING_URL = "https://www.ycombinator.com/companies?batch=W24"
BASE = "https://www.ycombinator.com/companies"


def company_url(slug: str) -> str:
    return f"{BASE}/{slug}"


def fast_settings(**overrides: Any) -> ScrapeSettings:
    """ScrapeSettings with every pause and delay set to zero."""
    values: dict[str, Any] = {
        "listing_settle_ms": 0,
        "profile_settle_ms": 0,
        "marker_fallback_ms": 0,
        "item_delay_ms": 0,
        "scroll_settle_ms": 0,
    }
    values.update(overrides)
    return ScrapeSettings(**values)


def growing_listing(
    batches: list[list[str]],
) -> Callable[[int], list[str]]:
    """Listing that reveals one more batch of hrefs per scroll.

    Before any scroll only the first batch is visible. Once every batch is
    shown, further scrolls reveal nothing new.
    """

    def hrefs(scrolls: int) -> list[str]:
        visible: list[str] = []
        for batch in batches[: scrolls + 1]:
            visible.extend(batch)
        return visible

    return hrefs


def endless_listing(per_scroll: int = 5) -> Callable[[int], list[str]]:
    """Listing that keeps injecting new companies on every scroll."""

    def hrefs(scrolls: int) -> list[str]:
        return [
            company_url(f"company-{i}")
            for i in range((scrolls + 1) * per_scroll)
        ]

    return hrefs


class FakePageSession:
    """In-memory PageSession.

    Args:
        listing: Maps the number of scrolls so far to the hrefs on the page.
        pages: Maps a URL to its HTML, or to an exception raised by goto().
        title: Value returned by title().
        marker_present: Whether wait_for_selector() finds its selector.
    """

    def __init__(
        self,
        listing: Callable[[int], list[str]] | None = None,
        pages: dict[str, str | BaseException] | None = None,
        title: str = "Y Combinator Startup Directory",
        marker_present: bool = True,
    ) -> None:
        self.listing = listing or (lambda scrolls: [])
        self.pages = pages or {}
        self._title = title
        self.marker_present = marker_present

        self.scrolls = 0
        self.gotos: list[tuple[str, int, str]] = []
        self.pauses: list[int] = []
        self.selector_waits: list[tuple[str, int]] = []
        self.content_reads = 0
        self._url = ""
        self._content = ""

    @property
    def url(self) -> str:
        return self._url

    @property
    def visited(self) -> list[str]:
        return [url for url, _, _ in self.gotos]

    async def goto(self, url: str, timeout_ms: int, wait_until: str) -> None:
        self.gotos.append((url, timeout_ms, wait_until))
        page = self.pages.get(url, "")
        if isinstance(page, BaseException):
            raise page
        self._url = url
        self._content = page

    async def pause(self, ms: int) -> None:
        self.pauses.append(ms)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        self.selector_waits.append((selector, timeout_ms))
        return self.marker_present

    async def scroll_to_bottom(self) -> None:
        self.scrolls += 1

    async def link_hrefs(self, selector: str) -> list[str]:
        return list(self.listing(self.scrolls))

    async def content(self) -> str:
        self.content_reads += 1
        return self._content

    async def title(self) -> str:
        return self._title


class FakeSessionFactory:
    """Session factory that counts how often the session is opened and closed.

    Args:
        session: The session to hand out.
        open_error: If set, raised instead of opening the session.
    """

    def __init__(
        self,
        session: FakePageSession | None = None,
        open_error: BaseException | None = None,
    ) -> None:
        self.session = session or FakePageSession()
        self.open_error = open_error
        self.opened = 0
        self.closed = 0
        self.settings: ScrapeSettings | None = None

    @asynccontextmanager
    async def __call__(
        self, settings: ScrapeSettings
    ) -> AsyncIterator[FakePageSession]:
        self.settings = settings
        if self.open_error is not None:
            raise self.open_error
        self.opened += 1
        try:
            yield self.session
        finally:
            self.closed += 1


async def collect_events(
    events: AsyncIterator[ScrapeEvent],
) -> list[ScrapeEvent]:
    """Drain an event stream into a list."""
    return [event async for event in events]


def profile_html(
    name: str = "Acme Rockets",
    tagline: str = "Rockets for everyone",
    description: str = (
        "Acme Rockets builds reusable launch vehicles for small satellite "
        "operators."
    ),
) -> str:
    """Profile page HTML in the shape of the real site."""
    name_html = (
        f'<h1 class="text-3xl font-bold">{name}</h1>' if name else ""
    )
    tagline_html = f'<div class="text-xl">{tagline}</div>' if tagline else ""
    description_html = (
        '<div class="prose max-w-full whitespace-pre-line">'
        f"{description}</div>"
        if description
        else ""
    )
    return f"""<!DOCTYPE html>
<html>
<head><title>{name} | Y Combinator</title></head>
<body>
  <section class="header">
    {name_html}
    {tagline_html}
  </section>
  <section class="about">
    {description_html}
  </section>
</body>
</html>"""


def qa_html(
    name: str = "Acme Rockets",
    pairs: list[tuple[str, list[str] | str]] | None = None,
) -> str:
    """Profile page HTML with application question/answer blocks.

    Each answer is either a list of paragraphs or a bare string rendered
    without paragraph tags.
    """
    if pairs is None:
        pairs = [
            (
                "What is your company going to make?",
                ["Rockets.", "Cheap ones."],
            ),
            (
                "Why did you pick this idea?",
                "We grew up near a launch site.",
            ),
        ]

    blocks = []
    for question, answer in pairs:
        if isinstance(answer, list):
            answer_html = "".join(f"<p>{p}</p>" for p in answer)
        else:
            answer_html = answer
        blocks.append(
            '<div class="mb-8">'
            f'<h4 class="font-bold text-black">{question}</h4>'
            f"<div>{answer_html}</div>"
            "</div>"
        )

    name_html = (
        f'<h1 class="text-3xl font-bold">{name}</h1>' if name else ""
    )
    return f"""<!DOCTYPE html>
<html>
<body>
  {name_html}
  <section class="application">
    <h3>Selected answers from {name}'s original YC application</h3>
    {"".join(blocks)}
  </section>
</body>
</html>"""
