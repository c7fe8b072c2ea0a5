"""Authenticated async HTTP client for upstream vendor APIs."""

import base64
from enum import Enum
from typing import Any

import httpx

from src.exceptions import UpstreamError, UpstreamParseError, UpstreamTransportError
from src.logging.config import get_logger, mask_secret
from src.models.upstream import FetchResult

logger = get_logger(__name__)

# Fields vendors use for a human-readable error, probed in this order
ERROR_MESSAGE_FIELDS = ("message", "detail", "error", "description", "title")


class AuthScheme(str, Enum):
    """How the credential is attached to each request."""

    BEARER = "bearer"
    BASIC = "basic"
    BASIC_PREENCODED = "basic_preencoded"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def upstream_error_message(body: Any) -> str | None:
    """
    Extract the upstream's error message from a response body.

    Args:
        body: Parsed response body

    Returns:
        First non-empty message field, or None
    """
    if not isinstance(body, dict):
        return None
    for field in ERROR_MESSAGE_FIELDS:
        value = body.get(field)
        if isinstance(value, str) and value:
            return value
    return None


class UpstreamClient:
    """
    Issues authenticated GET requests against one vendor host.

    Status codes are reported, not raised: a non-200 answer comes back as
    FetchResult(ok=False). Transport failures and unparseable bodies raise.
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        credential: str,
        auth_scheme: AuthScheme,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            service: Integration display name used in errors and logs
            base_url: Scheme, host and version prefix of the vendor API
            credential: API key or token
            auth_scheme: How to attach the credential
            timeout_seconds: Per-request timeout (httpx default when None)
            transport: Custom transport (tests use httpx.MockTransport)
        """
        self.service = service
        headers = {"Accept": "application/json"}
        auth: httpx.Auth | None = None

        if auth_scheme is AuthScheme.BEARER:
            headers["Authorization"] = f"Bearer {credential}"
        elif auth_scheme is AuthScheme.BASIC:
            auth = httpx.BasicAuth(username=credential, password="")
        else:
            token = base64.b64encode(f"{credential}:".encode()).decode("ascii")
            headers["Authorization"] = f"Basic {token}"

        client_kwargs: dict[str, Any] = {
            "base_url": base_url,
            "headers": headers,
            "auth": auth,
            "transport": transport,
        }
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds

        self._client = httpx.AsyncClient(**client_kwargs)

        logger.debug(
            "Upstream client created",
            extra={
                "context": {
                    "service": service,
                    "base_url": base_url,
                    "auth_scheme": auth_scheme.value,
                    "credential": mask_secret(credential),
                }
            },
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> FetchResult:
        """
        Perform one GET and parse the JSON body.

        Args:
            path: Path below the base URL, without scheme or host
            params: Query parameters; values are stringified

        Returns:
            FetchResult tagged ok only for status 200

        Raises:
            ValueError: If path is an absolute URL
            UpstreamTransportError: If the request could not be sent
            UpstreamParseError: If the body is not valid JSON
        """
        if "://" in path:
            raise ValueError(f"Upstream path must not include a host: {path}")

        query = {key: _stringify(value) for key, value in (params or {}).items()}

        try:
            response = await self._client.get(path, params=query or None)
        except httpx.HTTPError as exc:
            logger.warning(
                f"{self.service} request failed: {type(exc).__name__}",
                extra={"context": {"service": self.service, "path": path}},
            )
            raise UpstreamTransportError(self.service, str(exc) or type(exc).__name__) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamParseError(self.service, response.status_code) from exc

        return FetchResult(
            ok=response.status_code == 200,
            status=response.status_code,
            body=body,
        )

    async def get_required(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        what: str | None = None,
    ) -> Any:
        """
        GET a resource the pipeline cannot do without.

        Args:
            path: Path below the base URL
            params: Query parameters
            what: Short description used when the upstream gives no message

        Returns:
            Parsed body of the 200 response

        Raises:
            UpstreamError: If the upstream answers anything but 200
        """
        result = await self.get(path, params)
        if not result.ok:
            message = upstream_error_message(result.body)
            if message is None and what:
                message = f"Failed to fetch {what}"
            raise UpstreamError(
                self.service,
                result.status,
                message=message,
                body=result.body,
            )
        return result.body
