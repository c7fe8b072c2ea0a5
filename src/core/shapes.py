"""
Response-shape probing for upstream bodies.

Vendors have moved the same data between fields across API versions. Each
kind of data has one ordered tuple of probes below; extraction tries them
in order and takes the first that matches. These tuples are the only place
the priority order is defined.

    metric breakdown   referrers -> metrics -> top-level list
    click total        total_clicks -> sum of link_clicks[].clicks
    click series       link_clicks -> metrics -> top-level list
    issued tickets     data -> issued_tickets -> top-level list
    listing items      vendor key -> top-level list
"""

from collections.abc import Callable, Sequence
from typing import Any

# A probe returns the extracted value, or None when the shape does not match
ShapeProbe = Callable[[Any], Any | None]


def list_field(name: str) -> ShapeProbe:
    """Match a list stored under ``name``."""

    def probe(body: Any) -> list[Any] | None:
        if isinstance(body, dict) and isinstance(body.get(name), list):
            return body[name]
        return None

    probe.__name__ = f"list_field[{name}]"
    return probe


def number_field(name: str) -> ShapeProbe:
    """Match a numeric value stored under ``name``."""

    def probe(body: Any) -> int | float | None:
        if not isinstance(body, dict):
            return None
        value = body.get(name)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return value

    probe.__name__ = f"number_field[{name}]"
    return probe


def summed_list(name: str, value_field: str) -> ShapeProbe:
    """Match a list under ``name`` and sum ``value_field`` across entries."""

    def probe(body: Any) -> int | float | None:
        entries = list_field(name)(body)
        if entries is None:
            return None
        return sum(
            entry.get(value_field) or 0 for entry in entries if isinstance(entry, dict)
        )

    probe.__name__ = f"summed_list[{name}.{value_field}]"
    return probe


def top_level_list(body: Any) -> list[Any] | None:
    """Match a body that is itself the list."""
    return body if isinstance(body, list) else None


METRIC_LIST_SHAPES: tuple[ShapeProbe, ...] = (
    list_field("referrers"),
    list_field("metrics"),
    top_level_list,
)

CLICK_TOTAL_SHAPES: tuple[ShapeProbe, ...] = (
    number_field("total_clicks"),
    summed_list("link_clicks", "clicks"),
)

CLICK_SERIES_SHAPES: tuple[ShapeProbe, ...] = (
    list_field("link_clicks"),
    list_field("metrics"),
    top_level_list,
)

TICKET_LIST_SHAPES: tuple[ShapeProbe, ...] = (
    list_field("data"),
    list_field("issued_tickets"),
    top_level_list,
)


def listing_shapes(vendor_key: str) -> tuple[ShapeProbe, ...]:
    """Probes for a listing endpoint whose items live under ``vendor_key``."""
    return (list_field(vendor_key), top_level_list)


def extract(body: Any, probes: Sequence[ShapeProbe]) -> Any | None:
    """
    Apply probes in order and return the first match.

    Args:
        body: Parsed response body
        probes: Ordered shape probes

    Returns:
        Extracted value, or None when no probe matched
    """
    for probe in probes:
        value = probe(body)
        if value is not None:
            return value
    return None
