"""Read-only element wrapper over a rendered DOM snapshot.

Extraction never touches the live browser. The session serializes the
rendered DOM to HTML, and extraction code queries that snapshot through
PageElement, which wraps an lxml element and its cssselect support.
"""

from __future__ import annotations

import logging

from lxml import html
from lxml.cssselect import SelectorError

logger = logging.getLogger(__name__)


class PageElement:
    """An element of a parsed DOM snapshot.

    Attributes:
        url: The page URL the snapshot was taken from.
    """

    def __init__(self, element: html.HtmlElement, url: str = "") -> None:
        self._element = element
        self.url = url

    @classmethod
    def from_html(cls, content: str, url: str = "") -> PageElement:
        """Parse an HTML snapshot into its document root element.

        Args:
            content: Serialized HTML, typically ``page.content()``.
            url: The URL the snapshot was taken from.

        Returns:
            PageElement wrapping the ``<html>`` root.
        """
        if not content or not content.strip():
            content = "<html><body></body></html>"
        return cls(html.document_fromstring(content), url)

    def query_css(self, selector: str) -> list[PageElement]:
        """Query descendants by CSS selector, in document order.

        Like the DOM's querySelectorAll(), the element itself never matches.
        An unparseable selector matches nothing rather than raising; the
        selectors are best-effort guesses at a third-party page layout.

        Args:
            selector: CSS selector expression.

        Returns:
            Matching elements, possibly empty.
        """
        try:
            results = self._element.cssselect(selector)
        except SelectorError as e:
            logger.warning(f"Invalid CSS selector {selector!r}: {e}")
            return []
        # lxml selects descendant-or-self
        return [
            PageElement(elem, self.url)
            for elem in results
            if elem is not self._element
        ]

    def first(self, selector: str) -> PageElement | None:
        """Return the first match for a selector, like querySelector()."""
        matches = self.query_css(selector)
        return matches[0] if matches else None

    def first_text(self, selector: str) -> str:
        """Return the trimmed text of the first match, or "" if none."""
        element = self.first(selector)
        return element.text() if element is not None else ""

    def text_content(self) -> str:
        """Raw text content of the element and its descendants."""
        return self._element.text_content()

    def text(self) -> str:
        """Trimmed text content."""
        return self.text_content().strip()

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def tag_name(self) -> str:
        return self._element.tag.lower()
