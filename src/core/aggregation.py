"""Folding enriched items into dashboard summary statistics."""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

T = TypeVar("T")

_TAG_SEPARATORS = re.compile(r"[\s\-_]+")


def normalize_tag(tag: str) -> str:
    """Lower-case a tag and drop whitespace, hyphens and underscores."""
    return _TAG_SEPARATORS.sub("", tag.lower())


class TagFilter:
    """
    Matches tags that contain every required term.

    Terms and tags are normalised the same way, and each term only has to
    appear somewhere in the tag: "recruitment of students" matches
    ("student", "recruitment") just like "Student-Recruitment" does.
    """

    def __init__(self, required_terms: Sequence[str]) -> None:
        self.required_terms = tuple(
            normalize_tag(term) for term in required_terms if term.strip()
        )

    def matches(self, tag: Any) -> bool:
        if isinstance(tag, dict):
            # Mailchimp tags are objects with a name
            tag = tag.get("name")
        if not isinstance(tag, str) or not self.required_terms:
            return False
        normalized = normalize_tag(tag)
        return all(term in normalized for term in self.required_terms)

    def matches_any(self, tags: Iterable[Any] | None) -> bool:
        return any(self.matches(tag) for tag in tags or ())


def grouped_sum(
    records: Iterable[T],
    key: Callable[[T], Any],
    value: Callable[[T], Any],
    default_key: str,
) -> dict[str, int | float]:
    """
    Sum a quantity per group, keeping first-encountered group order.

    Records whose key is missing or empty go to ``default_key``, so every
    unit is attributed to exactly one group.

    Args:
        records: Records to fold
        key: Extracts the group key
        value: Extracts the measured quantity (None counts as 0)
        default_key: Sentinel group for records without a key

    Returns:
        Insertion-ordered mapping of group key to total
    """
    groups: dict[str, int | float] = {}
    for record in records:
        group = key(record)
        group = str(group) if group not in (None, "") else default_key
        amount = value(record) or 0
        groups[group] = groups.get(group, 0) + amount
    return groups


def top_n(groups: Mapping[str, int | float], n: int) -> list[tuple[str, int | float]]:
    """
    Rank groups by total, highest first.

    Ties keep insertion order (the sort is stable).

    Args:
        groups: Insertion-ordered totals
        n: Number of entries to keep

    Returns:
        Up to n (key, total) pairs
    """
    ranked = sorted(groups.items(), key=lambda entry: entry[1], reverse=True)
    return ranked[:n]


def round_half_up(value: int | float, places: int = 0) -> float:
    """
    Round to ``places`` decimals with exact halves going away from zero.

    Works on the shortest decimal repr of the float, so 6.25 becomes 6.3
    where the built-in round gives 6.2.

    Args:
        value: Number to round
        places: Decimal places

    Returns:
        Rounded value
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: int | float, total: int | float, places: int = 2) -> float:
    """
    part / total * 100 rounded to ``places``; 0 when total is 0.

    Args:
        part: Group count
        total: Overall count
        places: Decimal places

    Returns:
        Rounded percentage
    """
    if not total:
        return 0
    return round_half_up(part / total * 100, places)


def first_present(record: Mapping[str, Any], fields: Sequence[str]) -> Any:
    """Value of the first field in ``fields`` that is set on ``record``."""
    for field in fields:
        value = record.get(field)
        if value not in (None, ""):
            return value
    return None
