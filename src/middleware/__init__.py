"""Middleware components for request processing."""

from src.middleware.cors import CORS_HEADERS, CORSHeadersMiddleware
from src.middleware.logging import LoggingMiddleware

__all__ = [
    "CORS_HEADERS",
    "CORSHeadersMiddleware",
    "LoggingMiddleware",
]
