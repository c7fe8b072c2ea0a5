"""Action dispatch shared by the integration routes."""

import json
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.clients.base import UpstreamClient
from src.config import Settings
from src.core.deadline import Deadline
from src.exceptions import InvalidActionError, MalformedRequestError
from src.logging.config import get_logger, pipeline_context
from src.schemas.requests import ActionRequest

logger = get_logger(__name__)

ServiceT = TypeVar("ServiceT")
RequestT = TypeVar("RequestT", bound=ActionRequest)

ActionHandler = Callable[[ServiceT, RequestT], Awaitable[BaseModel]]


def get_upstream_transport() -> httpx.AsyncBaseTransport | None:
    """
    Transport handed to upstream clients.

    None selects httpx's network transport; tests override this
    dependency with an ``httpx.MockTransport``.
    """
    return None


async def read_json_body(request: Request) -> dict[str, Any]:
    """
    Parse the request body as a JSON object.

    An empty body is treated as ``{}``.

    Raises:
        MalformedRequestError: If the body is not valid JSON or not an object
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedRequestError(f"Invalid JSON body: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    return payload


def payload_response(model: BaseModel) -> JSONResponse:
    """Serialize a pipeline result with its camelCase field names."""
    return JSONResponse(status_code=200, content=model.model_dump(by_alias=True, mode="json"))


class ActionDispatcher(Generic[ServiceT, RequestT]):
    """
    Routes a request body's ``action`` to the pipeline that serves it.

    One dispatcher per integration. Order of checks: credentials, then
    the action name, then the rest of the body. A client is opened for
    the invocation and closed when the pipeline returns or fails.
    """

    def __init__(
        self,
        service_name: str,
        request_model: type[RequestT],
        client_factory: Callable[[Settings, httpx.AsyncBaseTransport | None], UpstreamClient],
        service_factory: Callable[[UpstreamClient, Settings, Deadline], ServiceT],
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            service_name: Integration display name
            request_model: Schema of the request body
            client_factory: Builds the vendor client; raises
                ConfigurationError when credentials are missing
            service_factory: Builds the service around a client
        """
        self.service_name = service_name
        self.request_model = request_model
        self.client_factory = client_factory
        self.service_factory = service_factory
        self._handlers: dict[str, ActionHandler] = {}

    def action(self, name: str) -> Callable[[ActionHandler], ActionHandler]:
        """Register the decorated coroutine as the handler of ``name``."""

        def register(handler: ActionHandler) -> ActionHandler:
            self._handlers[name] = handler
            return handler

        return register

    @property
    def valid_actions(self) -> list[str]:
        return list(self._handlers)

    def resolve(self, action: Any) -> ActionHandler:
        """
        Look up the handler of an action.

        Raises:
            InvalidActionError: If the action is missing or unknown
        """
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            raise InvalidActionError(action, self.valid_actions)
        return handler

    async def run(
        self,
        settings: Settings,
        payload: dict[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> BaseModel:
        """
        Run the action named in ``payload`` against the vendor API.

        Args:
            settings: Settings resolved for this invocation
            payload: Parsed request body
            transport: Optional httpx transport for the vendor client

        Returns:
            The pipeline's response model

        Raises:
            ConfigurationError: If the integration has no credentials
            InvalidActionError: If the action is unknown
            pydantic.ValidationError: If a body field is out of range
        """
        async with self.client_factory(settings, transport) as client:
            handler = self.resolve(payload.get("action"))
            request = self.request_model.model_validate(payload)
            deadline = Deadline(settings.pipeline_deadline_seconds)

            with pipeline_context(self.service_name, request.action):
                logger.info(f"Running {self.service_name} action {request.action}")
                service = self.service_factory(client, settings, deadline)
                return await handler(service, request)
