"""Shared fixtures: explicit settings and a scripted fake upstream."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from src.config import Settings

BITLY_BASE = "https://bitly.test/v4"
TICKET_TAILOR_BASE = "https://tickettailor.test/v1"


class FakeUpstream:
    """
    Scripted vendor API behind an httpx.MockTransport.

    Each path is answered from a queue of responses; the last one repeats.
    A response may be a JSON-serialisable body (sent with status 200), an
    httpx.Response, a callable taking the request, or an exception to raise.
    Unregistered paths answer 404.
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, *responses: Any) -> "FakeUpstream":
        self.routes[path] = list(responses)
        return self

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if self._path(request) == path]

    def _path(self, request: httpx.Request) -> str:
        path = request.url.path
        if self.prefix and path.startswith(self.prefix):
            path = path[len(self.prefix):]
        return path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(self._path(request))
        if not queue:
            return httpx.Response(404, json={"message": "NOT_FOUND"})

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with test credentials, ignoring the environment's .env."""

    def factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "bitly_access_token": "bitly-test-token",
            "bitly_base_url": BITLY_BASE,
            "mailchimp_api_key": "mc-test-key-us1",
            "mailchimp_server_prefix": "us1",
            "mailchimp_audience_id": "aud123",
            "ticket_tailor_api_key": "sk_test_tickets",
            "ticket_tailor_base_url": TICKET_TAILOR_BASE,
            "pipeline_deadline_seconds": 0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def bitly_upstream() -> FakeUpstream:
    return FakeUpstream(prefix="/v4")


@pytest.fixture
def mailchimp_upstream() -> FakeUpstream:
    return FakeUpstream(prefix="/3.0")


@pytest.fixture
def ticket_tailor_upstream() -> FakeUpstream:
    return FakeUpstream(prefix="/v1")


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()
