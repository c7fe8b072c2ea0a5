"""Response schemas for the Bitly integration."""

from typing import Any

from pydantic import BaseModel, Field

from src.schemas.base import CamelModel, PipelineFlags


class ReferrerCount(BaseModel):
    """Clicks attributed to one referrer across all links."""

    referrer: str
    clicks: int


class CountryCount(BaseModel):
    """Clicks from one country and its share of all clicks."""

    country: str
    clicks: int
    percentage: float


class RecruitmentLink(CamelModel):
    """
    A recruitment-tagged Bitlink with its metrics.

    Attributes:
        degraded: Metric resources that could not be fetched and were
            replaced by zero values
    """

    id: str
    short_url: str
    long_url: str | None = None
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    created: str | None = None
    clicks: int = 0
    referrers: list[dict[str, Any]] = Field(default_factory=list)
    countries: list[dict[str, Any]] = Field(default_factory=list)
    degraded: list[str] = Field(default_factory=list)


class RecruitmentLinksResponse(PipelineFlags):
    """Payload of getRecruitmentLinks."""

    links: list[RecruitmentLink]
    total_clicks: int
    total_links: int
    top_referrers: list[ReferrerCount]
    top_countries: list[CountryCount]
    last_updated: str


class LinkTrend(CamelModel):
    """Daily click series for one link."""

    id: str
    title: str
    data: list[Any] = Field(default_factory=list)
    degraded: list[str] = Field(default_factory=list)


class LinkTrendsResponse(PipelineFlags):
    """Payload of getLinkTrends."""

    link_trends: list[LinkTrend]
    last_updated: str
