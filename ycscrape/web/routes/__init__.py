"""Route modules for the scrape web service.

This package contains all API route modules:
- scrape: Streaming and buffered scrape endpoints, health check
"""

from ycscrape.web.routes.scrape import (
    router as scrape_router,
)

__all__ = ["scrape_router"]
