"""Bitly integration route."""

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.clients.vendors import BITLY, build_bitly_client
from src.config import Settings, get_settings
from src.routes.dispatch import (
    ActionDispatcher,
    get_upstream_transport,
    payload_response,
    read_json_body,
)
from src.schemas.bitly import LinkTrendsResponse, RecruitmentLinksResponse
from src.schemas.requests import BitlyActionRequest
from src.services.bitly_service import BitlyService

router = APIRouter(tags=["Bitly"])

dispatcher: ActionDispatcher[BitlyService, BitlyActionRequest] = ActionDispatcher(
    BITLY, BitlyActionRequest, build_bitly_client, BitlyService
)


@dispatcher.action("getRecruitmentLinks")
async def get_recruitment_links(
    service: BitlyService, request: BitlyActionRequest
) -> RecruitmentLinksResponse:
    return await service.get_recruitment_links(request.days)


@dispatcher.action("getLinkTrends")
async def get_link_trends(
    service: BitlyService, request: BitlyActionRequest
) -> LinkTrendsResponse:
    return await service.get_link_trends(request.days)


@router.api_route(
    "/bitly",
    methods=["GET", "POST"],
    responses={
        200: {"description": "Recruitment link metrics or click trends"},
        400: {"description": "Invalid action or request body"},
        500: {"description": "Bitly not configured or unreachable"},
    },
)
async def bitly_action(
    request: Request,
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """
    Run a Bitly dashboard action.

    Body: ``{"action": "getRecruitmentLinks" | "getLinkTrends", "days": 30}``
    """
    payload = await read_json_body(request)
    result = await dispatcher.run(settings, payload, transport)
    return payload_response(result)
