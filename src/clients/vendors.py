"""Per-vendor client construction and credential checks."""

import httpx

from src.clients.base import AuthScheme, UpstreamClient
from src.config import Settings
from src.exceptions import ConfigurationError

BITLY = "Bitly"
MAILCHIMP = "Mailchimp"
TICKET_TAILOR = "Ticket Tailor"


def build_bitly_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> UpstreamClient:
    """
    Create the Bitly client (bearer token).

    Raises:
        ConfigurationError: If BITLY_ACCESS_TOKEN is not set
    """
    if not settings.bitly_configured:
        raise ConfigurationError(BITLY)
    return UpstreamClient(
        BITLY,
        settings.bitly_base_url,
        settings.bitly_access_token,
        AuthScheme.BEARER,
        timeout_seconds=settings.upstream_timeout_seconds,
        transport=transport,
    )


def build_mailchimp_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> UpstreamClient:
    """
    Create the Mailchimp client (bearer API key, data-centre host).

    Raises:
        ConfigurationError: If the key, server prefix or audience id is missing
    """
    if not settings.mailchimp_configured:
        raise ConfigurationError(MAILCHIMP)
    return UpstreamClient(
        MAILCHIMP,
        settings.mailchimp_base_url,
        settings.mailchimp_api_key,
        AuthScheme.BEARER,
        timeout_seconds=settings.upstream_timeout_seconds,
        transport=transport,
    )


def build_ticket_tailor_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> UpstreamClient:
    """
    Create the Ticket Tailor client (basic auth with a pre-encoded "key:").

    Raises:
        ConfigurationError: If TICKET_TAILOR_API_KEY is not set
    """
    if not settings.ticket_tailor_configured:
        raise ConfigurationError(TICKET_TAILOR)
    return UpstreamClient(
        TICKET_TAILOR,
        settings.ticket_tailor_base_url,
        settings.ticket_tailor_api_key,
        AuthScheme.BASIC_PREENCODED,
        timeout_seconds=settings.upstream_timeout_seconds,
        transport=transport,
    )
