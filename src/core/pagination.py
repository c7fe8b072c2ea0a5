"""Cursor-driven pagination with deduplication and a page ceiling."""

from collections.abc import Sequence
from typing import Any, Protocol

from src.clients.base import UpstreamClient, upstream_error_message
from src.config import FailurePolicy
from src.core.deadline import Deadline
from src.core.shapes import ShapeProbe, extract
from src.exceptions import UpstreamError, UpstreamParseError, UpstreamTransportError
from src.logging.config import get_logger
from src.models.upstream import ListingPage, PaginationResult
from src.utils.deduplication import SeenIds

logger = get_logger(__name__)


def _dig(body: Any, path: Sequence[str]) -> Any:
    for key in path:
        if not isinstance(body, dict):
            return None
        body = body.get(key)
    return body


class CursorStyle(Protocol):
    """How a listing endpoint expresses page size and continuation."""

    def first_params(self, page_size: int) -> dict[str, Any]:
        ...

    def next_params(
        self, body: Any, items: list[Any], params: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Parameters for the next page, None when no continuation token."""
        ...


class SearchAfterCursor:
    """Opaque token returned in the body and echoed back (Bitly)."""

    def __init__(
        self,
        size_param: str = "size",
        token_path: Sequence[str] = ("pagination", "search_after"),
        cursor_param: str = "search_after",
    ) -> None:
        self.size_param = size_param
        self.token_path = tuple(token_path)
        self.cursor_param = cursor_param

    def first_params(self, page_size: int) -> dict[str, Any]:
        return {self.size_param: page_size}

    def next_params(
        self, body: Any, items: list[Any], params: dict[str, Any]
    ) -> dict[str, Any] | None:
        token = _dig(body, self.token_path)
        if not token:
            return None
        return {**params, self.cursor_param: token}


class OffsetCursor:
    """Count/offset paging bounded by a reported total (Mailchimp)."""

    def __init__(
        self,
        count_param: str = "count",
        offset_param: str = "offset",
        total_field: str = "total_items",
    ) -> None:
        self.count_param = count_param
        self.offset_param = offset_param
        self.total_field = total_field

    def first_params(self, page_size: int) -> dict[str, Any]:
        return {self.count_param: page_size, self.offset_param: 0}

    def next_params(
        self, body: Any, items: list[Any], params: dict[str, Any]
    ) -> dict[str, Any] | None:
        next_offset = int(params.get(self.offset_param, 0)) + len(items)
        total = _dig(body, (self.total_field,))
        if isinstance(total, int) and next_offset >= total:
            return None
        return {**params, self.offset_param: next_offset}


class LastIdCursor:
    """Continue after the last item id while a next link exists (Ticket Tailor)."""

    def __init__(
        self,
        limit_param: str = "limit",
        next_link_path: Sequence[str] = ("links", "next"),
        cursor_param: str = "starting_after",
        id_field: str = "id",
    ) -> None:
        self.limit_param = limit_param
        self.next_link_path = tuple(next_link_path)
        self.cursor_param = cursor_param
        self.id_field = id_field

    def first_params(self, page_size: int) -> dict[str, Any]:
        return {self.limit_param: page_size}

    def next_params(
        self, body: Any, items: list[Any], params: dict[str, Any]
    ) -> dict[str, Any] | None:
        if not _dig(body, self.next_link_path) or not items:
            return None
        last = items[-1]
        last_id = last.get(self.id_field) if isinstance(last, dict) else None
        if last_id is None:
            return None
        return {**params, self.cursor_param: last_id}


class Paginator:
    """
    Collects every item of a listing endpoint.

    Pages are fetched strictly in sequence. Termination, in priority order:
    a short page, no continuation token, a page made only of already-seen
    items, and finally the page ceiling (reported as truncated).
    """

    def __init__(
        self,
        client: UpstreamClient,
        path: str,
        *,
        items_shapes: Sequence[ShapeProbe],
        cursor: CursorStyle,
        page_size: int,
        max_pages: int,
        failure_policy: FailurePolicy = FailurePolicy.STRICT,
        base_params: dict[str, Any] | None = None,
        deadline: Deadline | None = None,
        id_field: str = "id",
    ) -> None:
        """
        Initialize paginator.

        Args:
            client: Authenticated upstream client
            path: Listing path below the client's base URL
            items_shapes: Probes locating the item list in a page body
            cursor: Continuation style of the endpoint
            page_size: Items requested per page
            max_pages: Hard ceiling on page requests
            failure_policy: STRICT raises on a failed page, BEST_EFFORT
                stops and returns what was accumulated
            base_params: Filters sent with every page
            deadline: Invocation deadline checked before each page
            id_field: Identifier field used for deduplication
        """
        self.client = client
        self.path = path
        self.items_shapes = tuple(items_shapes)
        self.cursor = cursor
        self.page_size = page_size
        self.max_pages = max_pages
        self.failure_policy = failure_policy
        self.base_params = dict(base_params or {})
        self.deadline = deadline
        self.id_field = id_field

    async def fetch_page(self, params: dict[str, Any]) -> ListingPage:
        """
        Fetch one page.

        Raises:
            UpstreamError: If the upstream answers anything but 200
        """
        result = await self.client.get(self.path, params)
        if not result.ok:
            raise UpstreamError(
                self.client.service,
                result.status,
                message=upstream_error_message(result.body),
                body=result.body,
            )
        items = extract(result.body, self.items_shapes) or []
        return ListingPage(
            items=items,
            next_params=self.cursor.next_params(result.body, items, params),
            count=len(items),
        )

    async def collect(self) -> PaginationResult:
        """
        Walk the listing until a termination condition fires.

        Returns:
            PaginationResult with distinct items in first-seen order

        Raises:
            UpstreamError, UpstreamTransportError, UpstreamParseError:
                Under the STRICT policy when a page request fails
        """
        params = {**self.base_params, **self.cursor.first_params(self.page_size)}
        seen = SeenIds(self.id_field)
        result = PaginationResult()

        while True:
            if self.deadline is not None and self.deadline.expired:
                logger.warning(
                    f"Deadline reached while paginating {self.path}",
                    extra={"context": {"pages_fetched": result.pages_fetched}},
                )
                result.partial = True
                result.error = "deadline exceeded"
                break

            try:
                page = await self.fetch_page(params)
            except (UpstreamError, UpstreamTransportError, UpstreamParseError) as exc:
                result.pages_fetched += 1
                if self.failure_policy is FailurePolicy.STRICT:
                    raise
                logger.warning(
                    f"Stopping pagination of {self.path} after failure: {exc.message}",
                    extra={
                        "context": {
                            "service": self.client.service,
                            "pages_fetched": result.pages_fetched,
                            "items_so_far": len(result.items),
                        }
                    },
                )
                result.partial = True
                result.error = exc.message
                break

            result.pages_fetched += 1
            new_items = [item for item in page.items if seen.check_and_add(item)]
            result.items.extend(new_items)

            if page.count < self.page_size:
                break
            if page.next_params is None:
                break
            if not new_items:
                logger.warning(
                    f"Page of {self.path} repeated already-seen items; stopping",
                    extra={"context": {"pages_fetched": result.pages_fetched}},
                )
                break
            if result.pages_fetched >= self.max_pages:
                logger.warning(
                    f"Page ceiling reached for {self.path}; results truncated",
                    extra={"context": {"max_pages": self.max_pages}},
                )
                result.truncated = True
                break

            params = page.next_params

        return result
