"""Request-scoped models for upstream data."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class FetchResult(BaseModel):
    """
    Outcome of one authenticated GET.

    Attributes:
        ok: True only when the upstream answered exactly 200
        status: HTTP status code returned by the upstream
        body: Parsed JSON body
    """

    ok: bool
    status: int
    body: Any = None


class ListingPage(BaseModel):
    """
    One page of a listing endpoint.

    Attributes:
        items: Raw item records in upstream order
        next_params: Query parameters for the following page, None when
            the upstream gave no continuation token
        count: Number of items the upstream returned on this page
    """

    items: list[Any] = Field(default_factory=list)
    next_params: dict[str, Any] | None = None
    count: int = 0


class PaginationResult(BaseModel):
    """
    Deduplicated items accumulated across pages.

    Attributes:
        items: Distinct items in first-seen order
        pages_fetched: Number of page requests issued
        truncated: Page ceiling reached while more pages were available
        partial: Stopped early (best-effort failure or deadline)
        error: Reason for a best-effort stop
    """

    items: list[Any] = Field(default_factory=list)
    pages_fetched: int = 0
    truncated: bool = False
    partial: bool = False
    error: str | None = None


class Fetched(BaseModel):
    """
    Secondary resource fetched and normalised.

    Attributes:
        truncated: A listing resource hit its page ceiling
    """

    value: Any
    truncated: bool = False
    degraded: Literal[False] = False


class Degraded(BaseModel):
    """Secondary resource unavailable; value is the zero default."""

    value: Any
    reason: str
    status: int | None = None
    degraded: Literal[True] = True


Enrichment = Fetched | Degraded


class EnrichedItem(BaseModel):
    """
    An item record plus its independently fetched metrics.

    Attributes:
        item: Raw item record
        metrics: One result per secondary resource name
    """

    item: dict[str, Any]
    metrics: dict[str, Enrichment] = Field(default_factory=dict)

    def value(self, resource: str) -> Any:
        """Normalised value for a resource (zero default when degraded)."""
        return self.metrics[resource].value

    @property
    def degraded_resources(self) -> list[str]:
        return [name for name, result in self.metrics.items() if result.degraded]

    @property
    def truncated_resources(self) -> list[str]:
        return [
            name
            for name, result in self.metrics.items()
            if not result.degraded and result.truncated
        ]


class EnrichmentBatch(BaseModel):
    """
    Enrichment output for a whole collection.

    Attributes:
        items: One EnrichedItem per input item, same order
        partial: Deadline expired before every call finished
    """

    items: list[EnrichedItem] = Field(default_factory=list)
    partial: bool = False

    @property
    def truncated(self) -> bool:
        """Some item's listing resource hit its page ceiling."""
        return any(item.truncated_resources for item in self.items)
