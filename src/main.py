"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.exceptions import DashboardAPIError
from src.handlers.exception_handler import (
    dashboard_api_exception_handler,
    generic_exception_handler,
    pydantic_validation_exception_handler,
    validation_exception_handler,
)
from src.logging.config import configure_logging
from src.middleware.cors import CORSHeadersMiddleware
from src.middleware.logging import LoggingMiddleware
from src.routes import bitly, mailchimp, status, ticket_tailor

# Configure logging before creating the app
configure_logging()

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
## Marketing Dashboard Proxy

Server-side proxy between the marketing dashboard and its vendor APIs.
Credentials stay on the server; the browser only sees aggregated results.

### Integrations

- **Bitly** (`/bitly`): recruitment link clicks, referrers, countries and trends
- **Mailchimp** (`/mailchimp`): lead and applicant counts, weekly growth, campaigns
- **Ticket Tailor** (`/ticket-tailor`): events, issued tickets, sales velocity

Each route takes a JSON body with an `action` naming the pipeline to run.

### Partial results

Listings stop at a page ceiling (`truncated: true`) and the whole pipeline
runs under a deadline. A failing per-item metric degrades to zero for that
item only; a deadline cut-off is reported as `partial: true`.
""",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Last added is outermost; preflights are answered before logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CORSHeadersMiddleware)

# Register exception handlers
app.add_exception_handler(DashboardAPIError, dashboard_api_exception_handler)
app.add_exception_handler(PydanticValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register routers
app.include_router(bitly.router)
app.include_router(mailchimp.router)
app.include_router(ticket_tailor.router)
app.include_router(status.router)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        Dict with welcome message and docs link
    """
    return {
        "message": f"Welcome to {settings.api_title}",
        "version": settings.api_version,
        "docs": "/docs",
        "health": "/status",
    }
