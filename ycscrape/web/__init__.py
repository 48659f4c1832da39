"""Web interface for running scrapes over HTTP.

This package provides a FastAPI application that streams scrape progress
as newline-delimited JSON.
"""

from ycscrape.web.app import (
    app,
    create_app,
    get_session_factory,
    get_settings,
)

__all__ = [
    "app",
    "create_app",
    "get_session_factory",
    "get_settings",
]
