"""Health check and status endpoints."""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.config import Settings, get_settings

# Module-level variable to track application start time
_app_start_time = time.time()

# Create router
router = APIRouter(tags=["Health"])


@router.get("/status")
async def get_status(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """
    Health check endpoint for monitoring and load balancers.

    Reports which integrations have credentials configured, never the
    credential values. Makes no upstream calls.

    Returns:
        JSONResponse with status, version, uptime_seconds and integrations
    """
    uptime_seconds = int(time.time() - _app_start_time)

    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "version": settings.api_version,
            "uptime_seconds": uptime_seconds,
            "integrations": {
                "bitly": settings.bitly_configured,
                "mailchimp": settings.mailchimp_configured,
                "ticketTailor": settings.ticket_tailor_configured,
            },
        },
    )
