"""Exception types for scrape failures.

The hierarchy mirrors the three failure scopes of a scrape request:

- Request validation: the caller's input is rejected before any browser
  resource is acquired.
- Request-level failures: discovery found nothing, or the browser session
  itself could not be used. These end the request.
- Item-level failures: one profile page could not be loaded or parsed.
  These are converted into data by the orchestrator and never end the
  request.
"""

from typing import Any


class ScrapeException(Exception):
    """Base class for scrape errors.

    Carries a human-readable message, the URL that was being processed, and
    an optional context dict that is rendered into ``str(exc)`` to make log
    lines self-describing.
    """

    def __init__(
        self,
        message: str,
        request_url: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the failure.
            request_url: The URL being processed when the failure occurred.
            context: Optional dict of additional context.
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context.

        Returns:
            Formatted error message string.
        """
        parts = [self.message]
        if self.request_url:
            parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class RequestValidationException(ScrapeException):
    """Raised when an incoming scrape request is malformed.

    Always raised before a browser session is opened.
    """

    def __init__(self, message: str, request_url: str = "") -> None:
        super().__init__(message, request_url)


class DiscoveryFailedException(ScrapeException):
    """Raised when a listing page yields zero profile links.

    The listing may have loaded fine; an empty result can also mean the
    exclusion rules are too strict or the site changed its structure, so the
    page title and resolved URL are kept for diagnosis.

    Attributes:
        page_title: Title of the listing page after discovery.
        page_url: URL the browser ended up on.
    """

    def __init__(
        self,
        request_url: str,
        page_title: str = "",
        page_url: str = "",
    ) -> None:
        self.page_title = page_title
        self.page_url = page_url
        super().__init__(
            "No company links found. The page might not have loaded "
            "properly or the structure has changed.",
            request_url,
            {"page_title": page_title, "page_url": page_url},
        )


class SessionException(ScrapeException):
    """Raised when the browser session cannot be started or used.

    This is an unrecoverable failure for the whole request, for example a
    missing browser binary or a listing page that never loads.
    """


class ItemException(ScrapeException):
    """Raised when a single profile page fails to load or parse.

    The orchestrator catches this at the item boundary and reports it as a
    ``record_error`` event; the batch continues.
    """

    def __init__(self, message: str, url: str) -> None:
        self.url = url
        super().__init__(message)


class ChannelClosedError(RuntimeError):
    """Raised when an event is emitted after the terminal event."""
