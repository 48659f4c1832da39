"""Core data types for listing scrapes.

This module defines the immutable values that flow through a scrape:

- ListingRequest: one validated scrape invocation
- ProfileRecord / QARecord: one scraped company, per extraction mode
- ExtractedProfile / ExtractedQA: best-effort extraction output
- ScrapedItem / FailedItem: the typed outcome of visiting one profile
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ycscrape.common.exceptions import RequestValidationException

DEFAULT_REQUIRED_SEGMENT = "ycombinator.com/companies"


class ExtractionMode(str, Enum):
    """Which fields are extracted from each profile page.

    FLAT: name, tagline and long description.
    QA: name and the question/answer pairs of the company's application.
    """

    FLAT = "flat"
    QA = "qa"


@dataclass(frozen=True)
class ListingRequest:
    """A single validated scrape invocation.

    Attributes:
        url: The listing page URL to start from.
        mode: Extraction mode applied to every discovered profile.
    """

    url: str
    mode: ExtractionMode = ExtractionMode.FLAT

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        mode: ExtractionMode = ExtractionMode.FLAT,
        required_segment: str = DEFAULT_REQUIRED_SEGMENT,
    ) -> ListingRequest:
        """Build a request from a decoded JSON body.

        Args:
            payload: The decoded request body, expected to be ``{"url": ...}``.
            mode: Extraction mode for this request.
            required_segment: Host/path fragment the URL must contain.

        Returns:
            The validated request.

        Raises:
            RequestValidationException: If the URL is missing or does not
                point at the listing site.
        """
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url or not isinstance(url, str):
            raise RequestValidationException("URL is required")

        url = url.strip()
        if required_segment not in url:
            raise RequestValidationException(
                "Please provide a valid Y Combinator companies URL",
                request_url=url,
            )
        return cls(url=url, mode=mode)


@dataclass(frozen=True)
class ProfileRecord:
    """One company scraped in flat mode.

    Attributes:
        name: Company name. Never empty.
        title: One-line tagline shown under the name.
        description: Long-form company description.
        url: Profile page URL.
    """

    name: str
    title: str
    description: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "url": self.url,
        }


@dataclass(frozen=True)
class QAPair:
    """A question from a company's application and its answer."""

    question: str
    answer: str

    def to_dict(self) -> dict[str, str]:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class QARecord:
    """One company scraped in QA mode.

    Attributes:
        name: Company name. Never empty.
        url: Profile page URL.
        qa_list: Question/answer pairs in page order. Never empty.
    """

    name: str
    url: str
    qa_list: tuple[QAPair, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "qaList": [pair.to_dict() for pair in self.qa_list],
        }


CompanyRecord = Union[ProfileRecord, QARecord]


@dataclass(frozen=True)
class ExtractedProfile:
    """Flat-mode extraction output. Missing fields are empty strings."""

    name: str = ""
    title: str = ""
    description: str = ""


@dataclass(frozen=True)
class ExtractedQA:
    """QA-mode extraction output. Missing fields are empty."""

    name: str = ""
    qa_list: tuple[QAPair, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ScrapedItem:
    """A profile page that produced a record."""

    url: str
    record: CompanyRecord


@dataclass(frozen=True)
class FailedItem:
    """A profile page that did not produce a record.

    Attributes:
        url: The profile page URL.
        message: Why the item failed, as reported to the caller.
    """

    url: str
    message: str


ItemOutcome = Union[ScrapedItem, FailedItem]
