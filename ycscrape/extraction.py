"""Field extraction from company profile snapshots.

Each field is described by an ordered list of SelectorStrategy candidates;
the first candidate that yields acceptable text wins. Extraction is
best-effort: a missing field comes back empty and it is up to the caller to
decide whether that makes the item a failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ycscrape.common.page_element import PageElement
from ycscrape.data_types import (
    ExtractedProfile,
    ExtractedQA,
    ExtractionMode,
    QAPair,
)

# Appears once the client-side app has rendered the profile header.
CONTENT_MARKER_SELECTOR = "h1.text-3xl"

MIN_FALLBACK_DESCRIPTION_LENGTH = 50


@dataclass(frozen=True)
class SelectorStrategy:
    """One candidate location for a field.

    Attributes:
        selector: CSS selector; only the first match is used.
        min_length: Text must be strictly longer than this to be accepted.
    """

    selector: str
    min_length: int = 0

    def extract(
        self, page: PageElement, exclude: Sequence[str] = ()
    ) -> str | None:
        """Return the candidate's text, or None if it is not acceptable.

        Args:
            page: The snapshot to query.
            exclude: Values the text must differ from.
        """
        text = page.first_text(self.selector)
        if not text:
            return None
        if self.min_length and len(text) <= self.min_length:
            return None
        if text in exclude:
            return None
        return text


def first_match(
    page: PageElement,
    strategies: Sequence[SelectorStrategy],
    exclude: Sequence[str] = (),
) -> str:
    """Evaluate strategies in order and return the first non-empty text."""
    for strategy in strategies:
        text = strategy.extract(page, exclude)
        if text:
            return text
    return ""


NAME_STRATEGIES = (SelectorStrategy("h1.text-3xl.font-bold"),)

TAGLINE_STRATEGIES = (SelectorStrategy("div.text-xl"),)

DESCRIPTION_STRATEGIES = (
    SelectorStrategy("div.prose.max-w-full.whitespace-pre-line"),
)

DESCRIPTION_FALLBACK_STRATEGIES = (
    SelectorStrategy(".prose.max-w-full", MIN_FALLBACK_DESCRIPTION_LENGTH),
    SelectorStrategy("section .prose", MIN_FALLBACK_DESCRIPTION_LENGTH),
    SelectorStrategy('div[class*="prose"]', MIN_FALLBACK_DESCRIPTION_LENGTH),
)

QA_NAME_STRATEGIES = (
    SelectorStrategy("h1.text-3xl.font-bold"),
    SelectorStrategy("h1"),
    SelectorStrategy('[class*="name"]'),
    SelectorStrategy(".text-2xl"),
    SelectorStrategy(".text-3xl"),
    SelectorStrategy(".text-xl"),
)

QA_BLOCK_SELECTOR = "div.mb-8"
QA_QUESTION_SELECTOR = "h4.font-bold.text-black"
QA_ANSWER_SELECTOR = "div:last-child"


def extract_profile(page: PageElement) -> ExtractedProfile:
    """Extract name, tagline and description from a profile snapshot.

    When the primary description location is empty, the fallbacks only
    accept text longer than 50 characters that is neither the name nor the
    tagline, so header text is not mistaken for the body.
    """
    name = first_match(page, NAME_STRATEGIES)
    title = first_match(page, TAGLINE_STRATEGIES)
    description = first_match(page, DESCRIPTION_STRATEGIES)
    if not description:
        description = first_match(
            page, DESCRIPTION_FALLBACK_STRATEGIES, exclude=(name, title)
        )
    return ExtractedProfile(name=name, title=title, description=description)


def extract_answer(block: PageElement) -> str:
    """Extract the answer text of one question block.

    Paragraphs are trimmed, empty ones dropped and the rest joined with a
    blank line. Without paragraphs the answer region's own text is used.
    """
    answer_region = block.first(QA_ANSWER_SELECTOR)
    if answer_region is None:
        return ""

    paragraphs = answer_region.query_css("p")
    if paragraphs:
        texts = (p.text() for p in paragraphs)
        return "\n\n".join(text for text in texts if text)
    return answer_region.text()


def extract_qa_pairs(page: PageElement) -> tuple[QAPair, ...]:
    """Extract question/answer pairs in page order.

    A block contributes only if both its question and answer are non-empty.
    """
    pairs: list[QAPair] = []
    for block in page.query_css(QA_BLOCK_SELECTOR):
        question_element = block.first(QA_QUESTION_SELECTOR)
        if question_element is None:
            continue
        question = question_element.text()
        answer = extract_answer(block)
        if question and answer:
            pairs.append(QAPair(question=question, answer=answer))
    return tuple(pairs)


def extract_qa(page: PageElement) -> ExtractedQA:
    """Extract the company name and its question/answer pairs."""
    return ExtractedQA(
        name=first_match(page, QA_NAME_STRATEGIES),
        qa_list=extract_qa_pairs(page),
    )


class FieldExtractor:
    """Mode-specific extraction of one profile snapshot.

    Attributes:
        mode: Which set of fields to extract.
        content_marker: Selector signalling the profile has rendered.
    """

    content_marker = CONTENT_MARKER_SELECTOR

    def __init__(self, mode: ExtractionMode) -> None:
        self.mode = mode

    def extract(
        self, content: str, url: str = ""
    ) -> ExtractedProfile | ExtractedQA:
        """Parse a serialized DOM snapshot and extract the mode's fields."""
        page = PageElement.from_html(content, url)
        if self.mode is ExtractionMode.QA:
            return extract_qa(page)
        return extract_profile(page)
