"""Ticket Tailor integration route."""

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.clients.vendors import TICKET_TAILOR, build_ticket_tailor_client
from src.config import Settings, get_settings
from src.routes.dispatch import (
    ActionDispatcher,
    get_upstream_transport,
    payload_response,
    read_json_body,
)
from src.schemas.requests import TicketTailorActionRequest
from src.schemas.ticket_tailor import (
    EventDetailsResponse,
    EventsResponse,
    SalesVelocityResponse,
)
from src.services.ticket_tailor_service import TicketTailorService

router = APIRouter(tags=["Ticket Tailor"])

dispatcher: ActionDispatcher[TicketTailorService, TicketTailorActionRequest] = (
    ActionDispatcher(
        TICKET_TAILOR,
        TicketTailorActionRequest,
        build_ticket_tailor_client,
        TicketTailorService,
    )
)


@dispatcher.action("getEvents")
async def get_events(
    service: TicketTailorService, request: TicketTailorActionRequest
) -> EventsResponse:
    return await service.get_events(request.start_date)


@dispatcher.action("getEventDetails")
async def get_event_details(
    service: TicketTailorService, request: TicketTailorActionRequest
) -> EventDetailsResponse:
    return await service.get_event_details(request.event_id)


@dispatcher.action("getSalesVelocity")
async def get_sales_velocity(
    service: TicketTailorService, request: TicketTailorActionRequest
) -> SalesVelocityResponse:
    return await service.get_sales_velocity()


# The dashboard has used both spellings of the path
@router.api_route(
    "/ticket-tailor",
    methods=["GET", "POST"],
    responses={
        200: {"description": "Events, event details or sales velocity"},
        400: {"description": "Invalid action, missing eventId or bad body"},
        500: {"description": "Ticket Tailor not configured or unreachable"},
    },
)
@router.api_route("/tickettailor", methods=["GET", "POST"], include_in_schema=False)
async def ticket_tailor_action(
    request: Request,
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """
    Run a Ticket Tailor dashboard action.

    Body: ``{"action": "getEvents" | "getEventDetails" | "getSalesVelocity",
    "startDate": "...", "eventId": "..."}``
    """
    payload = await read_json_body(request)
    result = await dispatcher.run(settings, payload, transport)
    return payload_response(result)
