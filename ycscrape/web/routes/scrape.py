"""Scrape endpoints.

This module provides endpoints for:
- Streaming scrapes: newline-delimited JSON events as they happen
- Buffered scrapes: one JSON document once the batch has finished
- A health check

Streaming routes can only report failures as events once the response has
started; request validation happens before that and uses HTTP status codes.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ycscrape.data_types import ExtractionMode, ListingRequest
from ycscrape.events import EventKind, ScrapeEvent, to_ndjson
from ycscrape.orchestrator import BatchOrchestrator, OrchestratorState
from ycscrape.session import SessionFactory
from ycscrape.settings import ScrapeSettings
from ycscrape.web.app import get_session_factory, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scrape"])

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class BufferedScrapeResponse(BaseModel):
    """Response model for a finished buffered scrape."""

    success: bool
    count: int
    companies: list[dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


async def _parse_listing_request(
    request: Request, mode: ExtractionMode, settings: ScrapeSettings
) -> ListingRequest | JSONResponse:
    """Decode and validate the request body.

    Returns:
        The validated ListingRequest, or an error response if the body is
        not JSON.

    Raises:
        RequestValidationException: If the URL is missing or invalid.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        logger.error(f"Request parsing error: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to parse request", "details": str(e)},
        )
    return ListingRequest.from_payload(payload, mode, settings.required_segment)


async def _stream_scrape(
    request: Request,
    mode: ExtractionMode,
    settings: ScrapeSettings,
    session_factory: SessionFactory,
) -> StreamingResponse | JSONResponse:
    listing = await _parse_listing_request(request, mode, settings)
    if isinstance(listing, JSONResponse):
        return listing

    orchestrator = BatchOrchestrator(listing, settings, session_factory)
    return StreamingResponse(
        to_ndjson(orchestrator.events()),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


async def _buffered_scrape(
    request: Request,
    mode: ExtractionMode,
    settings: ScrapeSettings,
    session_factory: SessionFactory,
) -> BufferedScrapeResponse | JSONResponse:
    listing = await _parse_listing_request(request, mode, settings)
    if isinstance(listing, JSONResponse):
        return listing

    orchestrator = BatchOrchestrator(listing, settings, session_factory)
    terminal: ScrapeEvent | None = None
    async for event in orchestrator.events():
        if event.is_terminal:
            terminal = event

    if terminal is not None and terminal.kind is EventKind.COMPLETE:
        companies = [record.to_dict() for record in orchestrator.scraped]
        return BufferedScrapeResponse(
            success=True, count=len(companies), companies=companies
        )

    payload = terminal.payload if terminal is not None else {}
    if orchestrator.state is OrchestratorState.DISCOVERY_FAILED:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": payload.get("message"),
                "details": "Discovery finished without any profile links",
                "debug": payload.get("debug"),
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": payload.get("message", "Failed to scrape companies"),
            "details": payload.get("details"),
        },
    )


@router.post("/scrape", response_model=None)
async def scrape_companies(
    request: Request,
    settings: Annotated[ScrapeSettings, Depends(get_settings)],
    session_factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> StreamingResponse | JSONResponse:
    """Stream name, tagline and description of every listed company."""
    return await _stream_scrape(
        request, ExtractionMode.FLAT, settings, session_factory
    )


@router.post("/scrape-qa", response_model=None)
async def scrape_company_qas(
    request: Request,
    settings: Annotated[ScrapeSettings, Depends(get_settings)],
    session_factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> StreamingResponse | JSONResponse:
    """Stream the application question/answer pairs of every listed company."""
    return await _stream_scrape(
        request, ExtractionMode.QA, settings, session_factory
    )


@router.post("/scrape/buffered", response_model=None)
async def scrape_companies_buffered(
    request: Request,
    settings: Annotated[ScrapeSettings, Depends(get_settings)],
    session_factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> BufferedScrapeResponse | JSONResponse:
    """Scrape every listed company and return them in one response."""
    return await _buffered_scrape(
        request, ExtractionMode.FLAT, settings, session_factory
    )


@router.post("/scrape-qa/buffered", response_model=None)
async def scrape_company_qas_buffered(
    request: Request,
    settings: Annotated[ScrapeSettings, Depends(get_settings)],
    session_factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> BufferedScrapeResponse | JSONResponse:
    """Scrape every listed company's Q&A and return them in one response."""
    return await _buffered_scrape(
        request, ExtractionMode.QA, settings, session_factory
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")
