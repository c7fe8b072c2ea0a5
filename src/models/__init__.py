"""Data models for upstream fetch, pagination and enrichment results."""

from src.models.upstream import (
    Degraded,
    EnrichedItem,
    EnrichmentBatch,
    Fetched,
    FetchResult,
    ListingPage,
    PaginationResult,
)

__all__ = [
    "FetchResult",
    "ListingPage",
    "PaginationResult",
    "Fetched",
    "Degraded",
    "EnrichedItem",
    "EnrichmentBatch",
]
