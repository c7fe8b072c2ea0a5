"""Response schemas for the Ticket Tailor integration."""

from typing import Any

from pydantic import BaseModel, Field

from src.schemas.base import CamelModel, PipelineFlags


class EventTickets(CamelModel):
    """
    An event with its issued-ticket counts.

    Attributes:
        error: Set when the tickets could not be fetched; counts are zero
    """

    event_id: str
    event_name: str | None = None
    event_date: Any = None
    event_url: str | None = None
    venue: str = "TBA"
    status: str | None = None
    total_tickets_released: int = 0
    total_tickets_issued: int = 0
    tickets_available: int = 0
    tickets_by_type: dict[str, int] = Field(default_factory=dict)
    error: str | None = None


class EventsSummary(CamelModel):
    """Totals across all returned events."""

    total_sold: int
    total_events: int
    tickets_by_type: dict[str, int] = Field(default_factory=dict)


class EventsResponse(PipelineFlags):
    """Payload of getEvents."""

    events: list[EventTickets]
    total_events: int
    summary: EventsSummary
    timestamp: str


class EventDetailsResponse(PipelineFlags):
    """Payload of getEventDetails; ``event`` is the upstream record plus tickets."""

    event: dict[str, Any]
    timestamp: str


class DailySales(BaseModel):
    """Tickets issued on one day."""

    date: str
    count: int


class SalesVelocity(CamelModel):
    """Daily ticket sales for one event."""

    event_id: str
    event_name: str | None = None
    daily_sales: list[DailySales] = Field(default_factory=list)
    error: str | None = None


class SalesVelocityResponse(PipelineFlags):
    """Payload of getSalesVelocity."""

    sales_velocity: list[SalesVelocity]
    timestamp: str
