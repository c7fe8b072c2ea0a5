"""Response schemas for the Mailchimp integration."""

from pydantic import BaseModel

from src.schemas.base import CamelModel, PipelineFlags


class WeeklyGrowth(BaseModel):
    """Estimated subscriptions for one week."""

    date: str
    subscribed: int
    unsubscribed: int
    net: int


class LeadStatsResponse(PipelineFlags):
    """Payload of getLeadStats."""

    leads: int
    applicants: int
    conversion_rate: float
    this_week_subscribed: int
    weekly_change: float
    weekly_data: list[WeeklyGrowth]
    last_updated: str


class CampaignSummary(BaseModel):
    """
    Key metrics of one sent campaign.

    Field names stay snake_case; the dashboard reads them as-is.
    """

    id: str
    title: str
    subject: str
    send_time: str
    emails_sent: int
    opens: int
    open_rate: float
    clicks: int
    click_rate: float
    unique_opens: int
    unique_clicks: int


class CampaignsResponse(CamelModel):
    """Payload of getCampaigns."""

    campaigns: list[CampaignSummary]
    total: int
    last_updated: str
