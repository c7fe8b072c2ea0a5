"""Global exception handlers for consistent error responses."""

from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.exceptions import DashboardAPIError, UpstreamError
from src.logging.config import get_logger
from src.middleware.cors import CORS_HEADERS

logger = get_logger(__name__)


def create_error_response(
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> JSONResponse:
    """
    Create standardized error response.

    The body is ``{"error": message, **details}``. CORS headers are set
    here because the catch-all handler runs outside the middleware stack.

    Args:
        message: Human-readable error message
        status_code: HTTP status code
        details: Extra fields merged into the body
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with error information
    """
    content: dict[str, Any] = {"error": message, **(details or {})}

    if correlation_id:
        content["correlationId"] = correlation_id

    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def _format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    formatted = []
    for error in errors:
        # Skip the 'body' prefix FastAPI adds for cleaner field paths
        field_parts = [str(loc) for loc in error.get("loc", ()) if loc != "body"]
        formatted.append(
            {
                "field": ".".join(field_parts) if field_parts else "request",
                "message": "Field is required" if error["type"] == "missing" else error["msg"],
                "type": error["type"],
            }
        )
    return formatted


async def dashboard_api_exception_handler(
    request: Request, exc: DashboardAPIError
) -> JSONResponse:
    """
    Handle DashboardAPIError and its subclasses.

    Args:
        request: FastAPI request
        exc: DashboardAPIError instance

    Returns:
        JSONResponse with the exception's status and body
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    context: dict[str, Any] = {
        "error_code": exc.error_code,
        "status_code": exc.status_code,
        "path": request.url.path,
    }
    if isinstance(exc, UpstreamError):
        context["upstream_status"] = exc.upstream_status
        context["service"] = exc.service

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        exc.message,
        extra={"correlation_id": correlation_id, "context": context},
    )

    return create_error_response(
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        correlation_id=correlation_id,
    )


async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """
    Handle out-of-range or mistyped fields in an action request body.

    Args:
        request: FastAPI request
        exc: ValidationError raised while validating the body

    Returns:
        400 JSONResponse listing each invalid field
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    validation_errors = _format_validation_errors(exc.errors())

    summary = f"{validation_errors[0]['field']}: {validation_errors[0]['message']}"
    if len(validation_errors) > 1:
        summary += f" (and {len(validation_errors) - 1} more errors)"

    return create_error_response(
        message=f"Invalid request: {summary}",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"validationErrors": validation_errors},
        correlation_id=correlation_id,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle FastAPI request validation errors.

    Args:
        request: FastAPI request
        exc: RequestValidationError from FastAPI

    Returns:
        400 JSONResponse listing each invalid field
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    validation_errors = _format_validation_errors(list(exc.errors()))

    return create_error_response(
        message="Invalid request data",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"validationErrors": validation_errors},
        correlation_id=correlation_id,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs full traceback and returns generic error to client.

    Args:
        request: FastAPI request
        exc: Any unhandled exception

    Returns:
        JSONResponse with generic error message
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "context": {
                "exception_type": type(exc).__name__,
                "method": request.method,
                "path": request.url.path,
            },
        },
    )

    return create_error_response(
        message="An internal error occurred. Please contact support with the correlation ID.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        correlation_id=correlation_id,
    )
