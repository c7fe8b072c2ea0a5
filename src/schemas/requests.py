"""Pydantic schemas for inbound action requests."""

from pydantic import BaseModel, ConfigDict, Field


class ActionRequest(BaseModel):
    """
    Common shape of every dispatcher request body.

    Attributes:
        action: Pipeline to run; unknown or missing values are rejected by
            the dispatcher, not by validation
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    action: str | None = Field(None, description="Pipeline to run")


class BitlyActionRequest(ActionRequest):
    """Request body for the Bitly integration."""

    days: int = Field(30, ge=1, le=365, description="Metrics window in days")

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={"example": {"action": "getRecruitmentLinks", "days": 30}},
    )


class MailchimpActionRequest(ActionRequest):
    """Request body for the Mailchimp integration."""

    weeks: int = Field(12, ge=1, le=52, description="Weekly buckets in lead stats")
    limit: int = Field(20, ge=1, le=100, description="Campaigns to return")

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={"example": {"action": "getLeadStats", "weeks": 12}},
    )


class TicketTailorActionRequest(ActionRequest):
    """Request body for the Ticket Tailor integration."""

    start_date: str | None = Field(
        None, alias="startDate", description="Earliest event start (ISO 8601)"
    )
    event_id: str | None = Field(
        None, alias="eventId", description="Event for getEventDetails"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={"example": {"action": "getEventDetails", "eventId": "ev_123"}},
    )
