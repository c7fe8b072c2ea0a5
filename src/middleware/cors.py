"""Fixed CORS headers and preflight handling."""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Answers CORS preflights and stamps the CORS headers on every response.

    An OPTIONS request gets an empty 200 before any credential or action
    processing, on any path.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Short-circuit preflights, otherwise decorate the handler's response.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The preflight response or the handler's response
        """
        if request.method == "OPTIONS":
            return Response(
                status_code=200,
                headers={**CORS_HEADERS, "Content-Type": "application/json"},
            )

        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response
