"""Ticket Tailor service layer: events, ticket counts and sales velocity."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from urllib.parse import quote

from src.clients.base import UpstreamClient, upstream_error_message
from src.config import Settings
from src.core.aggregation import grouped_sum
from src.core.deadline import Deadline
from src.core.enrichment import Enricher, SecondaryResource, fetch_resource
from src.core.pagination import LastIdCursor, Paginator
from src.core.shapes import TICKET_LIST_SHAPES, listing_shapes
from src.exceptions import ResourceNotFoundError, UpstreamError, ValidationError
from src.logging.config import get_logger
from src.models.upstream import EnrichmentBatch, PaginationResult
from src.schemas.ticket_tailor import (
    DailySales,
    EventDetailsResponse,
    EventsResponse,
    EventsSummary,
    EventTickets,
    SalesVelocity,
    SalesVelocityResponse,
)
from src.utils.timestamps import isoformat_z, to_iso_date, utc_now

logger = get_logger(__name__)

EVENTS_PAGE_SIZE = 100
TICKETS_PAGE_SIZE = 100
TICKETS_UNAVAILABLE = "Could not fetch ticket details"


def _ticket_type(ticket: dict[str, Any]) -> str | None:
    ticket_type = ticket.get("ticket_type")
    if isinstance(ticket_type, dict):
        return ticket_type.get("name")
    return ticket.get("description")


def _event_date(event: dict[str, Any]) -> Any:
    start = event.get("start")
    if isinstance(start, dict):
        return start.get("date")
    return start


def _venue(event: dict[str, Any]) -> str:
    venue = event.get("venue")
    if isinstance(venue, dict) and venue.get("name"):
        return venue["name"]
    return "TBA"


class TicketTailorService:
    """
    Event and ticket statistics for the box office.

    The event listing and single-event lookups are essential; each
    event's issued tickets degrade to an empty list on failure, and the
    event is still reported.
    """

    def __init__(
        self,
        client: UpstreamClient,
        settings: Settings,
        deadline: Deadline | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize TicketTailorService.

        Args:
            client: Ticket Tailor client
            settings: Invocation settings
            deadline: Pipeline deadline
            clock: Source of the current time
        """
        self.client = client
        self.settings = settings
        self.deadline = deadline
        self.clock = clock
        self.tickets_resource = SecondaryResource(
            "tickets",
            "/issued_tickets",
            TICKET_LIST_SHAPES,
            list,
            item_param="event_id",
            cursor=LastIdCursor(),
            page_size=TICKETS_PAGE_SIZE,
            max_pages=settings.max_pages,
        )

    async def list_published_events(
        self, start: str | None = None
    ) -> PaginationResult:
        """
        All published events, optionally starting from ``start``.

        Args:
            start: ISO 8601 lower bound on the event start

        Returns:
            PaginationResult of raw event records
        """
        params: dict[str, Any] = {"status": "published"}
        if start:
            params["start"] = start

        listing = await Paginator(
            self.client,
            "/events",
            items_shapes=listing_shapes("data"),
            cursor=LastIdCursor(),
            page_size=EVENTS_PAGE_SIZE,
            max_pages=self.settings.max_pages,
            failure_policy=self.settings.ticket_tailor_pagination_policy,
            base_params=params,
            deadline=self.deadline,
        ).collect()
        logger.info(
            f"Fetched {len(listing.items)} events from Ticket Tailor",
            extra={"context": {"pages_fetched": listing.pages_fetched}},
        )
        return listing

    async def _enrich_with_tickets(
        self, events: list[dict[str, Any]]
    ) -> EnrichmentBatch:
        return await Enricher(
            self.client,
            [self.tickets_resource],
            deadline=self.deadline,
            max_concurrency=self.settings.enrichment_concurrency,
        ).enrich(events)

    async def get_events(self, start_date: str | None = None) -> EventsResponse:
        """
        Published upcoming events with issued, available and per-type counts.

        Args:
            start_date: Earliest event start; defaults to today 00:00 UTC

        Returns:
            EventsResponse
        """
        today = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        listing = await self.list_published_events(start_date or isoformat_z(today))

        max_events = self.settings.ticket_tailor_max_events
        events = listing.items[:max_events]
        batch = await self._enrich_with_tickets(events)

        results = []
        for entry in batch.items:
            event = entry.item
            tickets = entry.value("tickets")
            released = event.get("total_tickets") or 0
            issued = len(tickets)
            results.append(
                EventTickets(
                    event_id=str(event["id"]),
                    event_name=event.get("name"),
                    event_date=_event_date(event),
                    event_url=event.get("url"),
                    venue=_venue(event),
                    status=event.get("status"),
                    total_tickets_released=released,
                    total_tickets_issued=issued,
                    tickets_available=max(0, released - issued),
                    tickets_by_type=grouped_sum(
                        tickets, key=_ticket_type, value=lambda _: 1, default_key="Unknown"
                    ),
                    error=TICKETS_UNAVAILABLE if entry.degraded_resources else None,
                )
            )

        total_sold = sum(event.total_tickets_issued for event in results)
        tickets_by_type: dict[str, int] = {}
        for event in results:
            for ticket_type, count in event.tickets_by_type.items():
                tickets_by_type[ticket_type] = tickets_by_type.get(ticket_type, 0) + count

        logger.info(
            f"Returning {len(results)} events with {total_sold} total tickets sold",
            extra={"context": {"events_listed": len(listing.items)}},
        )

        return EventsResponse(
            events=results,
            total_events=len(results),
            summary=EventsSummary(
                total_sold=total_sold,
                total_events=len(results),
                tickets_by_type=tickets_by_type,
            ),
            truncated=(
                listing.truncated or len(listing.items) > max_events or batch.truncated
            ),
            partial=listing.partial or batch.partial,
            timestamp=isoformat_z(self.clock()),
        )

    async def get_event_details(self, event_id: str | None) -> EventDetailsResponse:
        """
        One event's upstream record with its issued tickets.

        Args:
            event_id: Ticket Tailor event id

        Returns:
            EventDetailsResponse

        Raises:
            ValidationError: If event_id is missing
            ResourceNotFoundError: If the event does not exist (404)
            UpstreamError: If the event lookup fails for any other reason
        """
        if not event_id:
            raise ValidationError("Event ID is required", field="eventId")

        result = await self.client.get(f"/events/{quote(event_id, safe='')}")
        if result.status == 404:
            raise ResourceNotFoundError(
                "Event not found",
                status_code=result.status,
                detail=f"Event {event_id} may have been deleted or is no longer accessible",
            )
        if not result.ok:
            raise UpstreamError(
                self.client.service,
                result.status,
                message=upstream_error_message(result.body),
                body=result.body,
            )

        tickets = await fetch_resource(
            self.client, self.tickets_resource, event_id, self.deadline
        )
        if tickets.degraded:
            logger.warning(
                f"Tickets unavailable for event {event_id}: {tickets.reason}",
                extra={"context": {"status": tickets.status}},
            )

        event = dict(result.body) if isinstance(result.body, dict) else {}
        event["ticketsIssued"] = len(tickets.value)
        event["tickets"] = tickets.value
        return EventDetailsResponse(
            event=event,
            truncated=not tickets.degraded and tickets.truncated,
            timestamp=isoformat_z(self.clock()),
        )

    async def get_sales_velocity(self) -> SalesVelocityResponse:
        """
        Tickets issued per day for every published event.

        Returns:
            SalesVelocityResponse with daily sales in date order
        """
        listing = await self.list_published_events()
        batch = await self._enrich_with_tickets(listing.items)

        velocity = []
        for entry in batch.items:
            per_day = grouped_sum(
                entry.value("tickets"),
                key=lambda ticket: to_iso_date(ticket.get("created_at")),
                value=lambda _: 1,
                default_key="Unknown",
            )
            velocity.append(
                SalesVelocity(
                    event_id=str(entry.item["id"]),
                    event_name=entry.item.get("name"),
                    daily_sales=[
                        DailySales(date=day, count=count)
                        for day, count in sorted(per_day.items())
                    ],
                    error=TICKETS_UNAVAILABLE if entry.degraded_resources else None,
                )
            )

        return SalesVelocityResponse(
            sales_velocity=velocity,
            truncated=listing.truncated or batch.truncated,
            partial=listing.partial or batch.partial,
            timestamp=isoformat_z(self.clock()),
        )
