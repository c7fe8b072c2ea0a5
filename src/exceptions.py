"""Custom exception classes for the Marketing Dashboard Proxy."""

from typing import Any


class DashboardAPIError(Exception):
    """Base exception for the dashboard proxy."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code
            details: Additional fields merged into the response body
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response body."""
        return {"error": self.message, **self.details}


class ConfigurationError(DashboardAPIError):
    """Raised when an integration's credentials are not configured (500)."""

    def __init__(self, service: str) -> None:
        """
        Initialize ConfigurationError.

        Args:
            service: Display name of the integration, e.g. "Bitly"
        """
        super().__init__(
            message=f"{service} not configured",
            status_code=500,
            error_code="NOT_CONFIGURED",
        )
        self.service = service


class InvalidActionError(DashboardAPIError):
    """Raised when the requested action is unknown (400)."""

    def __init__(self, action: str | None, valid_actions: list[str]) -> None:
        """
        Initialize InvalidActionError.

        Args:
            action: Action name from the request body (may be None)
            valid_actions: Actions the integration supports
        """
        super().__init__(
            message="Invalid action",
            status_code=400,
            error_code="INVALID_ACTION",
            details={"validActions": list(valid_actions)},
        )
        self.action = action


class MalformedRequestError(DashboardAPIError):
    """Raised when the request body is not a JSON object (400)."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="MALFORMED_REQUEST",
        )


class ValidationError(DashboardAPIError):
    """Raised when a required request field is missing or invalid (400)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details={"field": field} if field else None,
        )
        self.field = field


class ResourceNotFoundError(DashboardAPIError):
    """Raised when an upstream resource lookup fails."""

    def __init__(
        self,
        message: str,
        status_code: int = 404,
        detail: str | None = None,
    ) -> None:
        """
        Initialize ResourceNotFoundError.

        Args:
            message: Error message
            status_code: Upstream status code (usually 404)
            detail: Longer human-readable explanation
        """
        super().__init__(
            message=message,
            status_code=status_code,
            error_code="NOT_FOUND",
            details={"message": detail} if detail else None,
        )


class UpstreamError(DashboardAPIError):
    """Raised when an essential upstream call returns a non-200 status."""

    def __init__(
        self,
        service: str,
        status_code: int,
        message: str | None = None,
        body: Any = None,
    ) -> None:
        """
        Initialize UpstreamError.

        Args:
            service: Integration name
            status_code: Status code returned by the upstream
            message: Upstream error message, if it sent one
            body: Parsed upstream response body
        """
        super().__init__(
            message=message or f"Failed to fetch {service} data",
            # A 200 never reaches here; anything below 400 is still a failure
            status_code=status_code if status_code >= 400 else 502,
            error_code="UPSTREAM_ERROR",
            details={"details": body} if body else None,
        )
        self.service = service
        self.upstream_status = status_code


class UpstreamTransportError(DashboardAPIError):
    """Raised when the upstream cannot be reached (DNS, connect, timeout)."""

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(
            message=f"Could not reach {service}: {reason}",
            status_code=500,
            error_code="UPSTREAM_UNREACHABLE",
        )
        self.service = service
        self.reason = reason


class UpstreamParseError(DashboardAPIError):
    """Raised when an upstream response body is not valid JSON."""

    def __init__(self, service: str, status_code: int) -> None:
        super().__init__(
            message=f"Failed to parse {service} response",
            status_code=500,
            error_code="UPSTREAM_PARSE_ERROR",
        )
        self.service = service
        self.upstream_status = status_code
