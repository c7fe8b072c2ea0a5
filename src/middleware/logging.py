"""Request logging middleware with correlation ID support."""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.logging.config import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Request-ID"


def _correlation_id(request: Request) -> str:
    """Correlation ID from the request header, or a new UUID."""
    return request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())


def _request_context(request: Request) -> dict:
    """Fields logged with every message about a request."""
    return {
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else None,
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every dashboard request with a correlation ID.

    The ID comes from the X-Request-ID header when the caller sends one.
    It is stored on ``request.state`` for error responses, attached to
    every log line of the request and echoed in the response header.
    Request bodies and upstream credentials are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and add logging.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The response from the handler
        """
        correlation_id = _correlation_id(request)
        request.state.correlation_id = correlation_id
        context = _request_context(request)

        logger.info(
            "Request started",
            extra={"correlation_id": correlation_id, "context": context},
        )
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                exc_info=exc,
                extra={
                    "correlation_id": correlation_id,
                    "context": {
                        **context,
                        "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
                    },
                },
            )
            raise

        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "context": {
                    **context,
                    "status_code": response.status_code,
                    "response_time_ms": elapsed_ms,
                },
            },
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
