"""Mailchimp integration route."""

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.clients.vendors import MAILCHIMP, build_mailchimp_client
from src.config import Settings, get_settings
from src.routes.dispatch import (
    ActionDispatcher,
    get_upstream_transport,
    payload_response,
    read_json_body,
)
from src.schemas.mailchimp import CampaignsResponse, LeadStatsResponse
from src.schemas.requests import MailchimpActionRequest
from src.services.mailchimp_service import MailchimpService

router = APIRouter(tags=["Mailchimp"])

dispatcher: ActionDispatcher[MailchimpService, MailchimpActionRequest] = ActionDispatcher(
    MAILCHIMP, MailchimpActionRequest, build_mailchimp_client, MailchimpService
)


@dispatcher.action("getLeadStats")
async def get_lead_stats(
    service: MailchimpService, request: MailchimpActionRequest
) -> LeadStatsResponse:
    return await service.get_lead_stats(request.weeks)


@dispatcher.action("getCampaigns")
async def get_campaigns(
    service: MailchimpService, request: MailchimpActionRequest
) -> CampaignsResponse:
    return await service.get_campaigns(request.limit)


@router.api_route(
    "/mailchimp",
    methods=["GET", "POST"],
    responses={
        200: {"description": "Lead statistics or campaign metrics"},
        400: {"description": "Invalid action or request body"},
        500: {"description": "Mailchimp not configured or unreachable"},
    },
)
async def mailchimp_action(
    request: Request,
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """
    Run a Mailchimp dashboard action.

    Body: ``{"action": "getLeadStats" | "getCampaigns", "weeks": 12, "limit": 20}``
    """
    payload = await read_json_body(request)
    result = await dispatcher.run(settings, payload, transport)
    return payload_response(result)
