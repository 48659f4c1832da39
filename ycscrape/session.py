"""Navigable page session backed by Playwright.

A session is one browser process, one browser context and one page, owned
exclusively by a single scrape request. The orchestrator only talks to the
PageSession protocol so tests can substitute an in-memory page.

PlaywrightSession.open() acquires every layer in order and releases them in
reverse order on every exit path, including failures part way through
startup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any, Protocol

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    async_playwright,
)
from playwright.async_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from ycscrape.common.exceptions import SessionException
from ycscrape.settings import ScrapeSettings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
_HREFS_JS = "elements => elements.map(element => element.href)"


class PageSession(Protocol):
    """The operations a scrape needs from a rendered page."""

    @property
    def url(self) -> str: ...

    async def goto(
        self, url: str, timeout_ms: int, wait_until: str
    ) -> None: ...

    async def pause(self, ms: int) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool: ...

    async def scroll_to_bottom(self) -> None: ...

    async def link_hrefs(self, selector: str) -> list[str]: ...

    async def content(self) -> str: ...

    async def title(self) -> str: ...


SessionFactory = Callable[
    [ScrapeSettings], AbstractAsyncContextManager[PageSession]
]


class PlaywrightSession:
    """PageSession implementation driving a single Playwright page.

    Use PlaywrightSession.open() rather than constructing directly.

    Example:
        async with PlaywrightSession.open(settings) as session:
            await session.goto(url, timeout_ms=30000, wait_until="domcontentloaded")
            html = await session.content()
    """

    def __init__(self, page: Page) -> None:
        self._page = page

    @classmethod
    @asynccontextmanager
    async def open(
        cls, settings: ScrapeSettings
    ) -> AsyncIterator[PlaywrightSession]:
        """Open a browser session as an async context manager.

        Args:
            settings: Browser type, headless flag and context options.

        Yields:
            A session with one open page.

        Raises:
            SessionException: If Playwright or the browser cannot start.
        """
        try:
            playwright = await async_playwright().start()
        except PlaywrightError as e:
            raise SessionException(
                f"Failed to start Playwright: {e}"
            ) from e

        try:
            browser_launcher = getattr(playwright, settings.browser_type)
            try:
                browser: Browser = await browser_launcher.launch(
                    headless=settings.headless
                )
            except PlaywrightError as e:
                raise SessionException(
                    f"Failed to launch {settings.browser_type}: {e}",
                    context={"browser_type": settings.browser_type},
                ) from e

            try:
                context_kwargs: dict[str, Any] = {
                    "viewport": settings.viewport,
                    "locale": settings.locale,
                }
                if settings.user_agent:
                    context_kwargs["user_agent"] = settings.user_agent

                context: BrowserContext = await browser.new_context(
                    **context_kwargs
                )

                try:
                    page = await context.new_page()
                    logger.debug(
                        f"Opened {settings.browser_type} session "
                        f"(headless={settings.headless})"
                    )
                    try:
                        yield cls(page)
                    finally:
                        await page.close()

                finally:
                    await context.close()

            finally:
                await browser.close()
                logger.debug("Browser closed")

        finally:
            await playwright.stop()

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout_ms: int, wait_until: str) -> None:
        await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def pause(self, ms: int) -> None:
        if ms > 0:
            await self._page.wait_for_timeout(ms)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait for a selector, returning False instead of raising on timeout."""
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug(f"Selector {selector!r} not found within {timeout_ms}ms")
            return False
        return True

    async def scroll_to_bottom(self) -> None:
        await self._page.evaluate(_SCROLL_TO_BOTTOM_JS)

    async def link_hrefs(self, selector: str) -> list[str]:
        """Absolute hrefs of every element matching selector."""
        return await self._page.eval_on_selector_all(selector, _HREFS_JS)

    async def content(self) -> str:
        return await self._page.content()

    async def title(self) -> str:
        return await self._page.title()
