"""Tunable timeouts, pauses and browser options for a scrape."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from ycscrape.data_types import DEFAULT_REQUIRED_SEGMENT

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass(frozen=True)
class ScrapeSettings:
    """Settings shared by every stage of one scrape request.

    All durations are in milliseconds, matching Playwright's own units.

    Attributes:
        listing_timeout_ms: Navigation timeout for the listing page.
        listing_settle_ms: Pause after the listing page DOM has loaded.
        profile_timeout_ms: Navigation timeout for each profile page.
        profile_settle_ms: Pause after each profile page DOM has loaded.
        marker_timeout_ms: How long to wait for the profile content marker.
        marker_fallback_ms: Extra pause when the content marker never shows.
        item_delay_ms: Fixed delay between profile pages.
        scroll_settle_ms: Pause after each scroll during discovery.
        max_scroll_attempts: Hard cap on discovery scroll attempts.
        wait_until: Playwright load state used for every navigation.
        browser_type: "chromium", "firefox" or "webkit".
        headless: Run the browser without a window.
        user_agent: User agent for the browser context.
        viewport: Browser viewport size.
        locale: Browser locale.
        required_segment: Host/path fragment every listing and profile URL
            must contain.
    """

    listing_timeout_ms: int = 30000
    listing_settle_ms: int = 3000
    profile_timeout_ms: int = 15000
    profile_settle_ms: int = 2000
    marker_timeout_ms: int = 5000
    marker_fallback_ms: int = 1000
    item_delay_ms: int = 500
    scroll_settle_ms: int = 2000
    max_scroll_attempts: int = 20
    wait_until: str = "domcontentloaded"
    browser_type: str = "chromium"
    headless: bool = True
    user_agent: str | None = DEFAULT_USER_AGENT
    viewport: dict[str, int] = field(
        default_factory=lambda: {"width": 1280, "height": 720}
    )
    locale: str = "en-US"
    required_segment: str = DEFAULT_REQUIRED_SEGMENT

    def __post_init__(self) -> None:
        if self.max_scroll_attempts < 1:
            raise ValueError("max_scroll_attempts must be at least 1")
        if self.browser_type not in ("chromium", "firefox", "webkit"):
            raise ValueError(f"Unknown browser type: {self.browser_type}")

    def with_overrides(self, **overrides: Any) -> ScrapeSettings:
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
