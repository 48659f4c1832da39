"""FastAPI application serving scrape requests.

Settings and the session factory live on ``app.state`` so tests and the
CLI can swap them without touching the routes.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ycscrape.common.exceptions import RequestValidationException
from ycscrape.session import PlaywrightSession, SessionFactory
from ycscrape.settings import ScrapeSettings

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> ScrapeSettings:
    """Dependency returning the app's scrape settings."""
    return request.app.state.settings


def get_session_factory(request: Request) -> SessionFactory:
    """Dependency returning the app's session factory."""
    return request.app.state.session_factory


async def _validation_error_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    assert isinstance(exc, RequestValidationException)
    logger.info(f"Rejected scrape request: {exc.message}")
    return JSONResponse(status_code=400, content={"error": exc.message})


def create_app(
    settings: ScrapeSettings | None = None,
    session_factory: SessionFactory | None = None,
) -> FastAPI:
    """Create a new FastAPI application.

    Args:
        settings: Scrape settings. Defaults to ScrapeSettings().
        session_factory: Opens a page session per request. Defaults to a
            Playwright browser session.

    Returns:
        Configured FastAPI application.
    """
    from ycscrape.web.routes import scrape_router

    app = FastAPI(
        title="ycscrape",
        description="Streams company profiles scraped from listing pages",
        version="0.1.0",
    )

    app.state.settings = settings or ScrapeSettings()
    app.state.session_factory = session_factory or PlaywrightSession.open

    app.add_exception_handler(
        RequestValidationException, _validation_error_handler
    )
    app.include_router(scrape_router)

    return app


# Default app instance
app = create_app()
