"""Fixtures for exercising the app through its HTTP surface."""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from src.config import Settings, get_settings
from src.main import app
from src.routes.dispatch import get_upstream_transport


@pytest.fixture
def api_client() -> Callable:
    """
    Open an AsyncClient on the app with settings and upstream overridden.

    Usage: ``async with api_client(settings, upstream) as client: ...``
    """

    @asynccontextmanager
    async def open_client(
        settings: Settings, upstream=None, raise_app_exceptions: bool = True
    ) -> AsyncGenerator[AsyncClient, None]:
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_upstream_transport] = (
            lambda: upstream.transport if upstream is not None else None
        )
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()

    return open_client
