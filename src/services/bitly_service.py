"""Bitly service layer: recruitment link metrics and click trends."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from src.clients.base import UpstreamClient
from src.config import Settings
from src.core.aggregation import TagFilter, first_present, grouped_sum, percentage, top_n
from src.core.deadline import Deadline
from src.core.enrichment import Enricher, SecondaryResource
from src.core.pagination import Paginator, SearchAfterCursor
from src.core.shapes import (
    CLICK_SERIES_SHAPES,
    CLICK_TOTAL_SHAPES,
    METRIC_LIST_SHAPES,
    listing_shapes,
)
from src.exceptions import UpstreamError
from src.logging.config import get_logger
from src.models.upstream import PaginationResult
from src.schemas.bitly import (
    CountryCount,
    LinkTrend,
    LinkTrendsResponse,
    RecruitmentLink,
    RecruitmentLinksResponse,
    ReferrerCount,
)
from src.utils.timestamps import isoformat_z, utc_now

logger = get_logger(__name__)

LINKS_PAGE_SIZE = 100
TREND_LINK_COUNT = 5


class BitlyService:
    """
    Aggregates click metrics for recruitment-tagged Bitlinks.

    The group lookup and the link listing are essential; per-link metric
    calls degrade to zero values on failure.
    """

    def __init__(
        self,
        client: UpstreamClient,
        settings: Settings,
        deadline: Deadline | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize BitlyService.

        Args:
            client: Bitly client
            settings: Invocation settings
            deadline: Pipeline deadline
            clock: Source of the current time
        """
        self.client = client
        self.settings = settings
        self.deadline = deadline
        self.clock = clock
        self.tag_filter = TagFilter(settings.recruitment_tag_terms)

    async def resolve_group_guid(self) -> str:
        """
        Return the guid of the account's first group.

        Raises:
            UpstreamError: If the lookup fails or the account has no groups
        """
        body = await self.client.get_required("/groups", what="Bitly groups")
        groups = body.get("groups") if isinstance(body, dict) else None
        if not groups:
            raise UpstreamError(self.client.service, 404, message="No Bitly groups found")
        return groups[0]["guid"]

    async def list_recruitment_links(self) -> tuple[list[dict[str, Any]], PaginationResult]:
        """
        List the group's bitlinks and keep the recruitment-tagged ones.

        Returns:
            Matching links in upstream order and the pagination result
        """
        group_guid = await self.resolve_group_guid()
        listing = await Paginator(
            self.client,
            f"/groups/{group_guid}/bitlinks",
            items_shapes=listing_shapes("links"),
            cursor=SearchAfterCursor(),
            page_size=LINKS_PAGE_SIZE,
            max_pages=self.settings.max_pages,
            failure_policy=self.settings.bitly_pagination_policy,
            deadline=self.deadline,
        ).collect()

        links = [
            link for link in listing.items if self.tag_filter.matches_any(link.get("tags"))
        ]
        logger.info(
            f"Found {len(links)} recruitment links",
            extra={
                "context": {
                    "links_scanned": len(listing.items),
                    "pages_fetched": listing.pages_fetched,
                }
            },
        )
        return links, listing

    def _enricher(self, resources: list[SecondaryResource]) -> Enricher:
        return Enricher(
            self.client,
            resources,
            deadline=self.deadline,
            max_concurrency=self.settings.enrichment_concurrency,
        )

    async def get_recruitment_links(self, days: int) -> RecruitmentLinksResponse:
        """
        Recruitment links with clicks, referrers, countries and rankings.

        Args:
            days: Metrics window in days

        Returns:
            RecruitmentLinksResponse
        """
        links, listing = await self.list_recruitment_links()
        window = {"unit": "day", "units": days}

        batch = await self._enricher(
            [
                SecondaryResource(
                    "clicks", "/bitlinks/{id}/clicks/summary", CLICK_TOTAL_SHAPES, int, window
                ),
                SecondaryResource(
                    "referrers", "/bitlinks/{id}/referrers", METRIC_LIST_SHAPES, list, window
                ),
                SecondaryResource(
                    "countries", "/bitlinks/{id}/countries", METRIC_LIST_SHAPES, list, window
                ),
            ]
        ).enrich(links)

        enriched_links = [
            RecruitmentLink(
                id=entry.item["id"],
                short_url=f"https://{entry.item['id']}",
                long_url=entry.item.get("long_url"),
                title=entry.item.get("title") or entry.item.get("long_url"),
                tags=entry.item.get("tags") or [],
                created=entry.item.get("created_at"),
                clicks=int(entry.value("clicks")),
                referrers=entry.value("referrers"),
                countries=entry.value("countries"),
                degraded=entry.degraded_resources,
            )
            for entry in batch.items
        ]

        total_clicks = sum(link.clicks for link in enriched_links)
        logger.info(
            f"Total clicks across all links: {total_clicks}",
            extra={"context": {"links": len(enriched_links)}},
        )

        referrer_totals = grouped_sum(
            (ref for link in enriched_links for ref in link.referrers),
            key=lambda ref: first_present(ref, ("referrer", "value")),
            value=lambda ref: ref.get("clicks"),
            default_key="direct",
        )
        country_totals = grouped_sum(
            (country for link in enriched_links for country in link.countries),
            key=lambda country: first_present(country, ("value", "country")),
            value=lambda country: country.get("clicks"),
            default_key="Unknown",
        )

        return RecruitmentLinksResponse(
            links=sorted(enriched_links, key=lambda link: link.clicks, reverse=True),
            total_clicks=total_clicks,
            total_links=len(enriched_links),
            top_referrers=[
                ReferrerCount(referrer=referrer, clicks=clicks)
                for referrer, clicks in top_n(referrer_totals, self.settings.top_n)
            ],
            top_countries=[
                CountryCount(
                    country=country,
                    clicks=clicks,
                    percentage=percentage(clicks, total_clicks, 2),
                )
                for country, clicks in top_n(country_totals, self.settings.top_n)
            ],
            truncated=listing.truncated,
            partial=listing.partial or batch.partial,
            last_updated=isoformat_z(self.clock()),
        )

    async def get_link_trends(self, days: int) -> LinkTrendsResponse:
        """
        Daily click series for the first recruitment links.

        Args:
            days: Series length in days

        Returns:
            LinkTrendsResponse
        """
        links, listing = await self.list_recruitment_links()
        batch = await self._enricher(
            [
                SecondaryResource(
                    "series",
                    "/bitlinks/{id}/clicks",
                    CLICK_SERIES_SHAPES,
                    list,
                    {"unit": "day", "units": days},
                )
            ]
        ).enrich(links[:TREND_LINK_COUNT])

        return LinkTrendsResponse(
            link_trends=[
                LinkTrend(
                    id=entry.item["id"],
                    title=entry.item.get("title") or entry.item["id"],
                    data=entry.value("series"),
                    degraded=entry.degraded_resources,
                )
                for entry in batch.items
            ],
            truncated=listing.truncated,
            partial=listing.partial or batch.partial,
            last_updated=isoformat_z(self.clock()),
        )
