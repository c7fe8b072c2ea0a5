"""Mailchimp service layer: audience lead stats and campaign metrics."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from src.clients.base import UpstreamClient
from src.config import Settings
from src.core.aggregation import TagFilter, percentage, round_half_up
from src.core.deadline import Deadline
from src.core.enrichment import fetch_optional
from src.core.pagination import OffsetCursor, Paginator
from src.core.shapes import list_field, listing_shapes
from src.logging.config import get_logger
from src.schemas.mailchimp import (
    CampaignsResponse,
    CampaignSummary,
    LeadStatsResponse,
    WeeklyGrowth,
)
from src.utils.timestamps import isoformat_z, utc_now

logger = get_logger(__name__)

MEMBERS_PAGE_SIZE = 1000
CAMPAIGNS_FETCHED = 100
# Growth history is monthly; a week gets this share of its month
WEEKS_PER_MONTH = 4


class MailchimpService:
    """
    Lead and campaign statistics for one Mailchimp audience.

    Audience stats and the campaign listing are essential. The member
    listing follows the configured pagination policy and growth history
    is optional.
    """

    def __init__(
        self,
        client: UpstreamClient,
        settings: Settings,
        deadline: Deadline | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize MailchimpService.

        Args:
            client: Mailchimp client
            settings: Invocation settings (audience id, policies)
            deadline: Pipeline deadline
            clock: Source of the current time
        """
        self.client = client
        self.settings = settings
        self.audience_id = settings.mailchimp_audience_id
        self.deadline = deadline
        self.clock = clock
        self.applicant_filter = TagFilter(settings.applicant_tag_terms)

    async def get_lead_stats(self, weeks: int = 12) -> LeadStatsResponse:
        """
        Leads, applicants, conversion rate and weekly growth.

        Args:
            weeks: Number of weekly buckets to report

        Returns:
            LeadStatsResponse
        """
        audience = await self.client.get_required(
            f"/lists/{self.audience_id}", what="members"
        )
        total_leads = int((audience.get("stats") or {}).get("member_count") or 0)

        members = await Paginator(
            self.client,
            f"/lists/{self.audience_id}/members",
            items_shapes=listing_shapes("members"),
            cursor=OffsetCursor(),
            page_size=MEMBERS_PAGE_SIZE,
            max_pages=self.settings.max_pages,
            failure_policy=self.settings.mailchimp_pagination_policy,
            base_params={"status": "subscribed"},
            deadline=self.deadline,
        ).collect()

        applicants = sum(
            1 for member in members.items if self.applicant_filter.matches_any(member.get("tags"))
        )

        history = await fetch_optional(
            self.client,
            f"/lists/{self.audience_id}/growth-history",
            None,
            (list_field("history"),),
            list,
        )
        if history.degraded:
            logger.warning(
                f"Growth history unavailable: {history.reason}",
                extra={"context": {"status": history.status}},
            )

        weekly_data = self.weekly_growth(history.value, weeks)

        this_week = weekly_data[-1] if weekly_data else None
        last_week = weekly_data[-2] if len(weekly_data) >= 2 else None
        this_week_net = this_week.net if this_week else 0
        last_week_net = last_week.net if last_week else 0
        weekly_change = (
            round_half_up((this_week_net - last_week_net) / abs(last_week_net) * 100, 1)
            if last_week_net != 0
            else 0
        )

        return LeadStatsResponse(
            leads=total_leads,
            applicants=applicants,
            conversion_rate=percentage(applicants, total_leads, 1),
            this_week_subscribed=this_week.subscribed if this_week else 0,
            weekly_change=weekly_change,
            weekly_data=weekly_data,
            truncated=members.truncated,
            partial=members.partial,
            last_updated=isoformat_z(self.clock()),
        )

    def weekly_growth(
        self, history: list[dict[str, Any]], weeks: int
    ) -> list[WeeklyGrowth]:
        """
        Spread monthly growth history over the last ``weeks`` weeks.

        Each week takes a quarter of the subscribe/unsubscribe totals of
        the month it starts in; weeks without a monthly record are zero.

        Args:
            history: Monthly records with "month" (YYYY-MM), "subscribed"
                and "unsubscribed"
            weeks: Number of weeks, oldest first in the result

        Returns:
            One WeeklyGrowth per week
        """
        by_month: dict[str, dict[str, Any]] = {}
        for record in history:
            month = str(record.get("month") or "")[:7]
            if month and month not in by_month:
                by_month[month] = record

        today = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        weekly = []
        for i in range(weeks - 1, -1, -1):
            week_start = today - timedelta(days=i * 7 + 7)
            record = by_month.get(week_start.strftime("%Y-%m"))
            subscribed = (
                int(round_half_up((record.get("subscribed") or 0) / WEEKS_PER_MONTH))
                if record
                else 0
            )
            unsubscribed = (
                int(round_half_up((record.get("unsubscribed") or 0) / WEEKS_PER_MONTH))
                if record
                else 0
            )
            weekly.append(
                WeeklyGrowth(
                    date=isoformat_z(week_start),
                    subscribed=subscribed,
                    unsubscribed=unsubscribed,
                    net=subscribed - unsubscribed,
                )
            )
        return weekly

    async def get_campaigns(self, limit: int = 20) -> CampaignsResponse:
        """
        Most recent sent campaigns for the audience with open/click rates.

        Args:
            limit: Maximum number of campaigns to return

        Returns:
            CampaignsResponse
        """
        body = await self.client.get_required(
            "/campaigns",
            {
                "count": CAMPAIGNS_FETCHED,
                "status": "sent",
                "list_id": self.audience_id,
                "sort_field": "send_time",
                "sort_dir": "DESC",
            },
            what="campaigns",
        )
        raw_campaigns = body.get("campaigns") or []

        campaigns = [
            self._summarize(campaign)
            for campaign in raw_campaigns
            if campaign.get("status") == "sent" and campaign.get("send_time")
        ][:limit]

        return CampaignsResponse(
            campaigns=campaigns,
            total=len(campaigns),
            last_updated=isoformat_z(self.clock()),
        )

    @staticmethod
    def _summarize(campaign: dict[str, Any]) -> CampaignSummary:
        report = campaign.get("report_summary") or {}
        settings = campaign.get("settings") or {}
        emails_sent = report.get("emails_sent") or 0
        opens = report.get("opens") or 0
        clicks = report.get("clicks") or 0

        return CampaignSummary(
            id=campaign["id"],
            title=settings.get("title") or "Untitled Campaign",
            subject=settings.get("subject_line") or "",
            send_time=campaign["send_time"],
            emails_sent=emails_sent,
            opens=opens,
            open_rate=percentage(opens, emails_sent, 1),
            clicks=clicks,
            click_rate=percentage(clicks, emails_sent, 1),
            unique_opens=report.get("unique_opens") or 0,
            unique_clicks=report.get("subscriber_clicks") or 0,
        )
