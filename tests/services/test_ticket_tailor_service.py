"""Tests for TicketTailorService."""

from datetime import UTC, datetime

import httpx
import pytest

from src.clients.vendors import build_ticket_tailor_client
from src.exceptions import ResourceNotFoundError, UpstreamError, ValidationError
from src.services.ticket_tailor_service import TicketTailorService

FIXED_NOW = datetime(2024, 5, 10, 15, 30, tzinfo=UTC)

OPEN_DAY = {
    "id": "ev_1",
    "name": "Open Day",
    "start": {"date": "2024-06-01", "iso": "2024-06-01T10:00:00+01:00"},
    "url": "https://tickets.example/ev_1",
    "venue": {"name": "Main Hall"},
    "status": "published",
    "total_tickets": 100,
}
WEBINAR = {
    "id": "ev_2",
    "name": "Webinar",
    "start": {"date": "2024-06-10"},
    "venue": None,
    "status": "published",
    "total_tickets": 10,
}

# 2024-05-01T00:00:00Z
MAY_FIRST = 1714521600


def _issued_tickets(request: httpx.Request) -> httpx.Response:
    event_id = request.url.params.get("event_id")
    if event_id == "ev_1":
        return httpx.Response(
            200,
            json={
                "data": [
                    {"ticket_type": {"name": "General"}, "created_at": MAY_FIRST + 3600},
                    {"ticket_type": {"name": "General"}, "created_at": "2024-05-01T12:00:00+01:00"},
                    {"description": "VIP", "created_at": MAY_FIRST - 3600},
                    {},
                ]
            },
        )
    return httpx.Response(500, json={"message": "Internal error"})


def _service(client, settings) -> TicketTailorService:
    return TicketTailorService(client, settings, clock=lambda: FIXED_NOW)


@pytest.fixture
def box_office(ticket_tailor_upstream):
    """Two published events; tickets for the second cannot be fetched."""
    ticket_tailor_upstream.add(
        "/events", {"data": [OPEN_DAY, WEBINAR], "links": {"next": None}}
    )
    ticket_tailor_upstream.add("/issued_tickets", _issued_tickets)
    return ticket_tailor_upstream


@pytest.mark.asyncio
async def test_events_with_ticket_counts(settings, box_office) -> None:
    """Each event reports issued, available and per-type counts."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_events()

    open_day, webinar = result.events
    assert open_day.event_id == "ev_1"
    assert open_day.event_date == "2024-06-01"
    assert open_day.venue == "Main Hall"
    assert open_day.total_tickets_issued == 4
    assert open_day.tickets_available == 96
    assert open_day.tickets_by_type == {"General": 2, "VIP": 1, "Unknown": 1}
    assert open_day.error is None

    assert webinar.venue == "TBA"
    assert webinar.total_tickets_issued == 0
    assert webinar.tickets_available == 10
    assert webinar.error == "Could not fetch ticket details"


@pytest.mark.asyncio
async def test_events_summary(settings, box_office) -> None:
    """The summary totals tickets over every returned event."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_events()

    assert result.total_events == 2
    assert result.summary.total_sold == 4
    assert result.summary.total_events == 2
    assert result.summary.tickets_by_type == {"General": 2, "VIP": 1, "Unknown": 1}
    assert result.timestamp == "2024-05-10T15:30:00.000Z"


@pytest.mark.asyncio
async def test_events_default_start_is_today(settings, box_office) -> None:
    """Without startDate the listing starts at today 00:00 UTC."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        await _service(client, settings).get_events()

    params = box_office.calls("/events")[0].url.params
    assert params["start"] == "2024-05-10T00:00:00.000Z"
    assert params["status"] == "published"
    assert params["limit"] == "100"


@pytest.mark.asyncio
async def test_events_explicit_start_date(settings, box_office) -> None:
    """startDate is passed through to the listing."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        await _service(client, settings).get_events("2024-09-01")

    assert box_office.calls("/events")[0].url.params["start"] == "2024-09-01"


@pytest.mark.asyncio
async def test_availability_never_negative(settings, ticket_tailor_upstream) -> None:
    """More issued tickets than released still reports zero available."""
    ticket_tailor_upstream.add("/events", {"data": [{"id": "ev_9", "total_tickets": 1}]})
    ticket_tailor_upstream.add(
        "/issued_tickets", {"data": [{"id": f"it_{n}"} for n in range(3)]}
    )

    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        result = await _service(client, settings).get_events()

    assert result.events[0].total_tickets_issued == 3
    assert result.events[0].tickets_available == 0
    assert result.events[0].total_tickets_released == 1


@pytest.mark.asyncio
async def test_max_events_truncates(make_settings, box_office) -> None:
    """Only the configured number of events is enriched."""
    settings = make_settings(ticket_tailor_max_events=1)

    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_events()

    assert [event.event_id for event in result.events] == ["ev_1"]
    assert result.truncated is True
    assert len(box_office.calls("/issued_tickets")) == 1


@pytest.mark.asyncio
async def test_event_listing_follows_next_links(settings, ticket_tailor_upstream) -> None:
    """Pages continue after the last event id while a next link exists."""
    full_page = [{"id": f"ev_{n}"} for n in range(100)]
    ticket_tailor_upstream.add(
        "/events",
        {"data": full_page, "links": {"next": "/v1/events?starting_after=ev_99"}},
        {"data": [{"id": "ev_100"}], "links": {"next": None}},
    )

    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        listing = await _service(client, settings).list_published_events()

    assert len(listing.items) == 101
    second = ticket_tailor_upstream.calls("/events")[1]
    assert second.url.params["starting_after"] == "ev_99"


@pytest.mark.asyncio
async def test_event_listing_failure_propagates(settings, ticket_tailor_upstream) -> None:
    """The event listing is essential."""
    ticket_tailor_upstream.add("/events", httpx.Response(401, json={"message": "Unauthorized"}))

    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await _service(client, settings).get_events()

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_event_details_requires_id(settings, box_office) -> None:
    """A missing event id is a validation error before any call."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        with pytest.raises(ValidationError) as exc_info:
            await _service(client, settings).get_event_details(None)

    assert exc_info.value.message == "Event ID is required"
    assert exc_info.value.details == {"field": "eventId"}
    assert box_office.requests == []


@pytest.mark.asyncio
async def test_event_details_not_found(settings, ticket_tailor_upstream) -> None:
    """A failed event lookup carries the upstream status."""
    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await _service(client, settings).get_event_details("ev_404")

    exc = exc_info.value
    assert exc.status_code == 404
    assert exc.message == "Event not found"
    assert "ev_404" in exc.details["message"]


@pytest.mark.asyncio
async def test_event_details_other_failures_keep_upstream_message(
    settings, ticket_tailor_upstream
) -> None:
    """Only a 404 means the event is missing; other failures pass through."""
    ticket_tailor_upstream.add(
        "/events/ev_1", httpx.Response(401, json={"message": "Invalid API key"})
    )

    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await _service(client, settings).get_event_details("ev_1")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid API key"
    assert not isinstance(exc_info.value, ResourceNotFoundError)


@pytest.mark.asyncio
async def test_event_details_id_is_one_path_segment(settings, ticket_tailor_upstream) -> None:
    """Reserved characters in the event id are percent-encoded."""
    async with build_ticket_tailor_client(settings, ticket_tailor_upstream.transport) as client:
        with pytest.raises(ResourceNotFoundError):
            await _service(client, settings).get_event_details("ev/1?x=https://evil")

    request = ticket_tailor_upstream.requests[0]
    assert request.url.raw_path.startswith(b"/v1/events/ev%2F1%3Fx")
    assert request.url.query == b""
    assert request.url.host == "tickettailor.test"


@pytest.mark.asyncio
async def test_event_details_include_tickets(settings, box_office) -> None:
    """The upstream record is returned with its issued tickets."""
    box_office.add("/events/ev_1", OPEN_DAY)

    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_event_details("ev_1")

    assert result.event["name"] == "Open Day"
    assert result.event["ticketsIssued"] == 4
    assert len(result.event["tickets"]) == 4


@pytest.mark.asyncio
async def test_event_details_without_tickets(settings, box_office) -> None:
    """Tickets are optional on the details view."""
    box_office.add("/events/ev_2", WEBINAR)

    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_event_details("ev_2")

    assert result.event["ticketsIssued"] == 0
    assert result.event["tickets"] == []


@pytest.mark.asyncio
async def test_sales_velocity_groups_by_day(settings, box_office) -> None:
    """Tickets are counted per UTC creation date in ascending order."""
    async with build_ticket_tailor_client(settings, box_office.transport) as client:
        result = await _service(client, settings).get_sales_velocity()

    open_day = result.sales_velocity[0]
    assert [(day.date, day.count) for day in open_day.daily_sales] == [
        ("2024-04-30", 1),
        ("2024-05-01", 2),
        ("Unknown", 1),
    ]

    webinar = result.sales_velocity[1]
    assert webinar.daily_sales == []
    assert webinar.error == "Could not fetch ticket details"
    assert "start" not in box_office.calls("/events")[0].url.params


def _paged_tickets(request: httpx.Request) -> httpx.Response:
    """100 tickets with a next link, then 50 more after it_99."""
    if request.url.params.get("starting_after") == "it_99":
        tickets = [{"id": f"it_{n}", "created_at": MAY_FIRST} for n in range(100, 150)]
        return httpx.Response(200, json={"data": tickets, "links": {"next": None}})
    tickets = [{"id": f"it_{n}", "created_at": MAY_FIRST} for n in range(100)]
    return httpx.Response(
        200,
        json={"data": tickets, "links": {"next": "/v1/issued_tickets?starting_after=it_99"}},
    )


@pytest.fixture
def busy_event(ticket_tailor_upstream):
    """One event with 150 issued tickets spread over two pages."""
    big_night = {**OPEN_DAY, "total_tickets": 500}
    ticket_tailor_upstream.add("/events", {"data": [big_night]})
    ticket_tailor_upstream.add("/events/ev_1", big_night)
    ticket_tailor_upstream.add("/issued_tickets", _paged_tickets)
    return ticket_tailor_upstream


@pytest.mark.asyncio
async def test_events_count_tickets_across_pages(settings, busy_event) -> None:
    """Issued tickets are counted over every page, not just the first."""
    async with build_ticket_tailor_client(settings, busy_event.transport) as client:
        result = await _service(client, settings).get_events()

    event = result.events[0]
    assert event.total_tickets_issued == 150
    assert event.tickets_available == 350
    assert result.summary.total_sold == 150
    assert result.truncated is False
    assert result.partial is False

    calls = busy_event.calls("/issued_tickets")
    assert len(calls) == 2
    assert calls[1].url.params["event_id"] == "ev_1"
    assert calls[1].url.params["starting_after"] == "it_99"


@pytest.mark.asyncio
async def test_ticket_page_ceiling_is_reported(make_settings, busy_event) -> None:
    """Stopping at the page ceiling flags the counts as lower bounds."""
    settings = make_settings(max_pages=1)

    async with build_ticket_tailor_client(settings, busy_event.transport) as client:
        result = await _service(client, settings).get_events()

    assert result.events[0].total_tickets_issued == 100
    assert result.truncated is True


@pytest.mark.asyncio
async def test_sales_velocity_counts_every_page(settings, busy_event) -> None:
    """Daily sales include tickets from later pages."""
    async with build_ticket_tailor_client(settings, busy_event.transport) as client:
        result = await _service(client, settings).get_sales_velocity()

    assert [(day.date, day.count) for day in result.sales_velocity[0].daily_sales] == [
        ("2024-05-01", 150)
    ]


@pytest.mark.asyncio
async def test_event_details_count_every_page(settings, busy_event) -> None:
    """The details view lists every issued ticket."""
    async with build_ticket_tailor_client(settings, busy_event.transport) as client:
        result = await _service(client, settings).get_event_details("ev_1")

    assert result.event["ticketsIssued"] == 150
    assert result.truncated is False
