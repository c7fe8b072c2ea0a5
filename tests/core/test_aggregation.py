"""Tests for aggregation helpers."""

import pytest

from src.core.aggregation import (
    TagFilter,
    first_present,
    grouped_sum,
    normalize_tag,
    percentage,
    round_half_up,
    top_n,
)

RECRUITMENT = TagFilter(["student", "recruitment"])


@pytest.mark.parametrize(
    "tag",
    [
        "Student-Recruitment",
        "student recruitment",
        "STUDENTRECRUITMENT",
        "student_recruitment_2024",
        "recruitment of students",
    ],
)
def test_recruitment_tags_match(tag: str) -> None:
    """Both terms present anywhere in the tag is a match."""
    assert RECRUITMENT.matches(tag)


@pytest.mark.parametrize("tag", ["student", "recruitment", "staff-recruitment", ""])
def test_partial_tags_do_not_match(tag: str) -> None:
    """A tag with only one of the terms is not a match."""
    assert not RECRUITMENT.matches(tag)


def test_matches_any_checks_each_tag_separately() -> None:
    """The terms must appear within one tag, not spread across tags."""
    assert not RECRUITMENT.matches_any(["student", "recruitment"])
    assert RECRUITMENT.matches_any(["newsletter", "Student Recruitment"])


def test_matches_any_handles_missing_tags() -> None:
    """None or an empty list never matches."""
    assert not RECRUITMENT.matches_any(None)
    assert not RECRUITMENT.matches_any([])


def test_tag_objects_match_by_name() -> None:
    """Mailchimp-style tag objects are matched on their name."""
    applicants = TagFilter(["applicant"])
    assert applicants.matches_any([{"id": 1, "name": "2024 Applicant"}])
    assert not applicants.matches_any([{"id": 2, "name": "Lead"}])


def test_empty_terms_match_nothing() -> None:
    """A filter with no terms does not select everything."""
    assert not TagFilter([]).matches("anything")


def test_normalize_tag() -> None:
    """Case, whitespace, hyphens and underscores are ignored."""
    assert normalize_tag(" Student - Recruitment_Fair ") == "studentrecruitmentfair"


class TestGroupedSum:
    """Tests for grouped_sum."""

    def test_missing_keys_go_to_sentinel(self) -> None:
        """Records without a key are attributed to the default group."""
        records = [
            {"referrer": "t.co", "clicks": 3},
            {"referrer": None, "clicks": 2},
            {"clicks": 1},
            {"referrer": "", "clicks": 4},
        ]
        totals = grouped_sum(
            records,
            key=lambda r: r.get("referrer"),
            value=lambda r: r.get("clicks"),
            default_key="direct",
        )
        assert totals == {"t.co": 3, "direct": 7}

    def test_no_units_lost_or_double_counted(self) -> None:
        """The sum over groups equals the sum over records."""
        records = [{"k": k, "v": v} for k, v in [("a", 1), ("b", 2), ("a", 3), (None, 4)]]
        totals = grouped_sum(
            records, key=lambda r: r["k"], value=lambda r: r["v"], default_key="Unknown"
        )
        assert sum(totals.values()) == 10

    def test_missing_values_count_as_zero(self) -> None:
        """A record without a value still creates its group."""
        totals = grouped_sum(
            [{"k": "a"}], key=lambda r: r["k"], value=lambda r: r.get("v"), default_key="x"
        )
        assert totals == {"a": 0}

    def test_insertion_order_is_kept(self) -> None:
        """Groups appear in first-encountered order."""
        totals = grouped_sum(
            ["b", "a", "b", "c"], key=lambda r: r, value=lambda r: 1, default_key="x"
        )
        assert list(totals) == ["b", "a", "c"]


def test_top_n_ties_keep_insertion_order() -> None:
    """Equal counts rank in the order they were first seen."""
    assert top_n({"A": 10, "B": 10, "C": 5}, 3) == [("A", 10), ("B", 10), ("C", 5)]
    assert top_n({"B": 10, "A": 10, "C": 5}, 2) == [("B", 10), ("A", 10)]


def test_top_n_limits_results() -> None:
    """Only the first n entries are returned."""
    groups = {str(n): n for n in range(20)}
    ranked = top_n(groups, 10)
    assert len(ranked) == 10
    assert ranked[0] == ("19", 19)


def test_percentage_of_zero_total_is_zero() -> None:
    """A zero total gives 0, not an error."""
    assert percentage(5, 0) == 0
    assert percentage(0, 0, 1) == 0


def test_percentage_rounding() -> None:
    """Percentages are rounded to the requested places."""
    assert percentage(1, 3) == 33.33
    assert percentage(1, 3, 1) == 33.3
    assert percentage(3, 3) == 100


def test_percentage_ties_round_away_from_zero() -> None:
    """Exact halves round up rather than to the nearest even digit."""
    assert percentage(1, 16, 1) == 6.3
    assert percentage(1, 800, 2) == 0.13
    assert percentage(1, 8, 1) == 12.5


@pytest.mark.parametrize(
    ("value", "places", "expected"),
    [
        (2.5, 0, 3),
        (0.5, 0, 1),
        (6.25, 1, 6.3),
        (-6.25, 1, -6.3),
        (33.333, 2, 33.33),
    ],
)
def test_round_half_up(value, places, expected) -> None:
    assert round_half_up(value, places) == expected


def test_first_present() -> None:
    """The first non-empty field wins."""
    assert first_present({"referrer": "", "value": "t.co"}, ("referrer", "value")) == "t.co"
    assert first_present({}, ("referrer", "value")) is None
