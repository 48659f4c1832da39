"""Profile link discovery on lazily-loaded listing pages.

The listing page only renders more companies when scrolled. Discovery
scrolls, waits, and recounts profile links until the count stops growing
or a hard attempt cap is reached, then collects the final link set.

Links are matched by URL pattern rather than by CSS class, since the
listing's class names are generated build artifacts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ycscrape.data_types import DEFAULT_REQUIRED_SEGMENT

if TYPE_CHECKING:
    from ycscrape.session import PageSession
    from ycscrape.settings import ScrapeSettings

logger = logging.getLogger(__name__)

PROFILE_LINK_SELECTOR = 'a[href*="/companies/"]'

# Sub-paths of the listing that are index pages, not company profiles.
EXCLUDED_SUBPATHS = (
    "/companies/founders",
    "/companies/industry/",
    "/companies/location/",
    "/companies/batch/",
)


class LinkPolicy:
    """Decides which hrefs point at individual company profiles.

    Attributes:
        required_segment: Host/path fragment every profile URL contains,
            e.g. ``"ycombinator.com/companies"``.
    """

    def __init__(self, required_segment: str = DEFAULT_REQUIRED_SEGMENT) -> None:
        self.required_segment = required_segment.rstrip("/")

    def is_profile_url(self, href: str | None) -> bool:
        """Return True if href is a single company's profile page.

        Rejects the bare listing URL, filtered listing URLs, founder,
        industry, location and batch index pages, in-page anchors and job
        postings.
        """
        if not href or f"{self.required_segment}/" not in href:
            return False
        if href.endswith("/companies") or href.endswith("/companies/"):
            return False
        if "/companies?" in href:
            return False
        if any(subpath in href for subpath in EXCLUDED_SUBPATHS):
            return False
        return "#" not in href and "/jobs" not in href

    def select(self, hrefs: Iterable[str | None]) -> list[str]:
        """Filter hrefs to profile URLs and deduplicate them."""
        return dedupe_links(
            href for href in hrefs if href and self.is_profile_url(href)
        )


def dedupe_links(hrefs: Iterable[str]) -> list[str]:
    """Remove exact duplicates, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for href in hrefs:
        if href not in seen:
            seen.add(href)
            unique.append(href)
    return unique


class StopReason(str, Enum):
    """Why the scroll loop ended."""

    STALLED = "stalled"
    EXHAUSTED = "exhausted"


@dataclass
class ScrollState:
    """Bounded state of the scroll-until-stable loop.

    Both termination predicates are evaluated after every attempt: the
    loop ends when the link count did not grow (stalled) or when the
    attempt counter reached the cap (exhausted), whichever comes first.

    Attributes:
        max_attempts: Hard cap on scroll attempts.
        attempts: Number of attempts made so far. Only ever increases.
        previous_count: Link count before the latest attempt.
        current_count: Link count after the latest attempt.
    """

    max_attempts: int
    attempts: int = 0
    previous_count: int = 0
    current_count: int = 0

    def record(self, count: int) -> None:
        """Record the link count observed after one scroll attempt."""
        self.previous_count = self.current_count
        self.current_count = count
        self.attempts += 1

    @property
    def stalled(self) -> bool:
        return self.attempts > 0 and self.current_count <= self.previous_count

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    @property
    def finished(self) -> bool:
        return self.stalled or self.exhausted

    @property
    def stop_reason(self) -> StopReason | None:
        if self.exhausted:
            return StopReason.EXHAUSTED
        if self.stalled:
            return StopReason.STALLED
        return None


class LinkDiscovery:
    """Produces the ordered, deduplicated profile URLs of a listing page.

    The session must already be positioned on the listing page.

    Example:
        discovery = LinkDiscovery(settings)
        links = await discovery.discover(session)
    """

    def __init__(
        self, settings: ScrapeSettings, policy: LinkPolicy | None = None
    ) -> None:
        self.settings = settings
        self.policy = policy or LinkPolicy(settings.required_segment)
        self.last_state: ScrollState | None = None

    async def discover(self, session: PageSession) -> list[str]:
        """Scroll until the listing stops growing, then collect links.

        Args:
            session: Page session showing the listing page.

        Returns:
            Profile URLs in first-seen order. May be empty.
        """
        state = ScrollState(max_attempts=self.settings.max_scroll_attempts)
        self.last_state = state

        while not state.finished:
            await session.scroll_to_bottom()
            await session.pause(self.settings.scroll_settle_ms)
            state.record(await self._count_links(session))
            logger.info(
                f"Scroll attempt {state.attempts}: found {state.current_count} "
                f"companies (was {state.previous_count})"
            )

        if state.stop_reason is StopReason.EXHAUSTED:
            logger.info(
                "Max scroll attempts reached, proceeding with current companies"
            )

        links = await self._collect_links(session)
        logger.info(f"Found {len(links)} company links")
        return links

    async def _collect_links(self, session: PageSession) -> list[str]:
        hrefs = await session.link_hrefs(PROFILE_LINK_SELECTOR)
        return self.policy.select(hrefs)

    async def _count_links(self, session: PageSession) -> int:
        return len(await self._collect_links(session))
