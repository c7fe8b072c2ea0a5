"""Per-item enrichment with concurrent secondary fetches."""

import asyncio
import contextlib
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from src.clients.base import UpstreamClient
from src.config import FailurePolicy
from src.core.deadline import Deadline
from src.core.pagination import CursorStyle, Paginator
from src.core.shapes import ShapeProbe, extract
from src.exceptions import UpstreamError, UpstreamParseError, UpstreamTransportError
from src.logging.config import get_logger
from src.models.upstream import (
    Degraded,
    EnrichedItem,
    Enrichment,
    EnrichmentBatch,
    Fetched,
)

logger = get_logger(__name__)

DEADLINE_REASON = "deadline exceeded"


@dataclass(frozen=True)
class SecondaryResource:
    """
    Descriptor of a sub-resource fetched once per item.

    Attributes:
        name: Key of the result on the EnrichedItem
        path_template: Path with an ``{id}`` placeholder (percent-encoded)
        shapes: Ordered probes normalising the response body
        default: Factory for the zero value used on failure
        params: Query parameters sent with every call
        item_param: Also send the item id as this query parameter
        cursor: When set, the resource is a listing walked page by page
        page_size: Items requested per page of a listing resource
        max_pages: Page ceiling of a listing resource
    """

    name: str
    path_template: str
    shapes: tuple[ShapeProbe, ...]
    default: Callable[[], Any]
    params: dict[str, Any] = field(default_factory=dict)
    item_param: str | None = None
    cursor: CursorStyle | None = None
    page_size: int = 100
    max_pages: int = 20

    def path_for(self, item_id: str) -> str:
        return self.path_template.format(id=quote(str(item_id), safe=""))

    def params_for(self, item_id: str) -> dict[str, Any]:
        if self.item_param is None:
            return dict(self.params)
        return {**self.params, self.item_param: item_id}


async def fetch_optional(
    client: UpstreamClient,
    path: str,
    params: dict[str, Any] | None,
    shapes: Sequence[ShapeProbe],
    default: Callable[[], Any],
) -> Enrichment:
    """
    Fetch a non-essential resource, degrading to a zero value on failure.

    Args:
        client: Authenticated upstream client
        path: Resource path
        params: Query parameters
        shapes: Ordered probes normalising the body
        default: Factory for the zero value

    Returns:
        Fetched with the normalised value, or Degraded with the default
    """
    try:
        result = await client.get(path, params)
    except (UpstreamTransportError, UpstreamParseError) as exc:
        return Degraded(value=default(), reason=exc.message)

    if not result.ok:
        return Degraded(
            value=default(),
            reason=f"upstream returned {result.status}",
            status=result.status,
        )

    try:
        value = extract(result.body, shapes)
    except (TypeError, ValueError, AttributeError, KeyError):
        value = None
    if value is None:
        return Degraded(
            value=default(),
            reason="unrecognised response shape",
            status=result.status,
        )
    return Fetched(value=value)


async def fetch_optional_listing(
    client: UpstreamClient,
    resource: SecondaryResource,
    item_id: str,
    deadline: Deadline | None = None,
) -> Enrichment:
    """
    Walk every page of a non-essential listing for one item.

    A failure on any page degrades the whole listing, so a partial count
    is never reported as a complete one. Hitting the page ceiling keeps
    the items and marks the result truncated.

    Args:
        client: Authenticated upstream client
        resource: Listing resource with a cursor
        item_id: Item the listing belongs to
        deadline: Pipeline deadline checked before each page

    Returns:
        Fetched with every item, or Degraded with the default
    """
    try:
        listing = await Paginator(
            client,
            resource.path_for(item_id),
            items_shapes=resource.shapes,
            cursor=resource.cursor,
            page_size=resource.page_size,
            max_pages=resource.max_pages,
            failure_policy=FailurePolicy.STRICT,
            base_params=resource.params_for(item_id),
            deadline=deadline,
        ).collect()
    except UpstreamError as exc:
        return Degraded(
            value=resource.default(), reason=exc.message, status=exc.upstream_status
        )
    except (UpstreamTransportError, UpstreamParseError) as exc:
        return Degraded(value=resource.default(), reason=exc.message)

    if listing.partial:
        return Degraded(value=resource.default(), reason=listing.error or DEADLINE_REASON)
    return Fetched(value=listing.items, truncated=listing.truncated)


async def fetch_resource(
    client: UpstreamClient,
    resource: SecondaryResource,
    item_id: str,
    deadline: Deadline | None = None,
) -> Enrichment:
    """Fetch one item's secondary resource, paging through listings."""
    if resource.cursor is not None:
        return await fetch_optional_listing(client, resource, item_id, deadline)
    return await fetch_optional(
        client,
        resource.path_for(item_id),
        resource.params_for(item_id),
        resource.shapes,
        resource.default,
    )


class Enricher:
    """
    Fans out secondary fetches for every item and resource, then fans in.

    Results are matched to items by position, never by response content.
    A failing call degrades only that item's value for that resource.
    """

    def __init__(
        self,
        client: UpstreamClient,
        resources: Sequence[SecondaryResource],
        *,
        deadline: Deadline | None = None,
        max_concurrency: int = 0,
        id_field: str = "id",
    ) -> None:
        """
        Initialize enricher.

        Args:
            client: Authenticated upstream client
            resources: Secondary resources fetched for each item
            deadline: Outstanding calls are cancelled when it expires
            max_concurrency: Cap on in-flight calls, 0 for unbounded
            id_field: Item field substituted into resource paths
        """
        self.client = client
        self.resources = tuple(resources)
        self.deadline = deadline
        self.id_field = id_field
        self._semaphore = (
            asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        )

    async def _fetch(self, item_id: str, resource: SecondaryResource) -> Enrichment:
        async with self._semaphore or contextlib.nullcontext():
            outcome = await fetch_resource(
                self.client, resource, item_id, self.deadline
            )

        if outcome.degraded:
            logger.warning(
                f"Error fetching {resource.name} for {item_id}: {outcome.reason}",
                extra={
                    "context": {
                        "service": self.client.service,
                        "resource": resource.name,
                        "status": outcome.status,
                    }
                },
            )
        return outcome

    async def enrich(self, items: Sequence[dict[str, Any]]) -> EnrichmentBatch:
        """
        Enrich every item with every resource.

        Args:
            items: Item records in display order

        Returns:
            EnrichmentBatch with one EnrichedItem per input item
        """
        if not items or not self.resources:
            return EnrichmentBatch(
                items=[EnrichedItem(item=item) for item in items]
            )

        tasks: list[list[asyncio.Task]] = [
            [
                asyncio.create_task(self._fetch(str(item.get(self.id_field)), resource))
                for resource in self.resources
            ]
            for item in items
        ]
        all_tasks = [task for row in tasks for task in row]

        timeout = self.deadline.remaining() if self.deadline is not None else None
        _, pending = await asyncio.wait(all_tasks, timeout=timeout)

        if pending:
            logger.warning(
                f"Deadline reached with {len(pending)} enrichment calls outstanding",
                extra={"context": {"service": self.client.service}},
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        enriched = []
        for item, row in zip(items, tasks):
            metrics: dict[str, Enrichment] = {}
            for resource, task in zip(self.resources, row):
                if task in pending:
                    metrics[resource.name] = Degraded(
                        value=resource.default(), reason=DEADLINE_REASON
                    )
                else:
                    metrics[resource.name] = task.result()
            enriched.append(EnrichedItem(item=item, metrics=metrics))

        return EnrichmentBatch(items=enriched, partial=bool(pending))
