"""Tests for settings loading."""

import pytest

from src.config import FailurePolicy, Settings, get_settings


def test_blank_credentials_are_missing(make_settings) -> None:
    """Empty or whitespace credentials count as not configured."""
    settings = make_settings(bitly_access_token="  ", ticket_tailor_api_key="")

    assert settings.bitly_access_token is None
    assert settings.bitly_configured is False
    assert settings.ticket_tailor_configured is False


def test_mailchimp_needs_all_three_values(make_settings) -> None:
    """Key, server prefix and audience id are all required."""
    assert make_settings().mailchimp_configured is True
    assert make_settings(mailchimp_server_prefix=None).mailchimp_configured is False


def test_mailchimp_base_url_uses_server_prefix(make_settings) -> None:
    assert make_settings(mailchimp_server_prefix="us21").mailchimp_base_url == (
        "https://us21.api.mailchimp.com/3.0"
    )


def test_default_failure_policies() -> None:
    """Listings are strict except Mailchimp members."""
    settings = Settings(_env_file=None)

    assert settings.bitly_pagination_policy is FailurePolicy.STRICT
    assert settings.ticket_tailor_pagination_policy is FailurePolicy.STRICT
    assert settings.mailchimp_pagination_policy is FailurePolicy.BEST_EFFORT


def test_policy_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BITLY_PAGINATION_POLICY", "best_effort")

    assert Settings(_env_file=None).bitly_pagination_policy is FailurePolicy.BEST_EFFORT


def test_get_settings_rereads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Rotated credentials are picked up on the next call."""
    monkeypatch.setenv("TICKET_TAILOR_API_KEY", "sk_first")
    first = get_settings()
    monkeypatch.setenv("TICKET_TAILOR_API_KEY", "sk_second")

    assert first.ticket_tailor_api_key == "sk_first"
    assert get_settings().ticket_tailor_api_key == "sk_second"
