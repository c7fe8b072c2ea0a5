"""Tests for the /mailchimp route."""

import pytest


@pytest.fixture
def mailchimp_api(mailchimp_upstream):
    mailchimp_upstream.add("/lists/aud123", {"stats": {"member_count": 50}})
    mailchimp_upstream.add(
        "/lists/aud123/members",
        {"members": [{"id": "m1", "tags": [{"name": "applicant"}]}], "total_items": 1},
    )
    mailchimp_upstream.add("/lists/aud123/growth-history", {"history": []})
    mailchimp_upstream.add(
        "/campaigns",
        {
            "campaigns": [
                {
                    "id": "c1",
                    "status": "sent",
                    "send_time": "2024-05-01T10:00:00+00:00",
                    "settings": {"title": "May", "subject_line": "Hi"},
                    "report_summary": {"emails_sent": 10, "opens": 5, "clicks": 1},
                }
            ]
        },
    )
    return mailchimp_upstream


@pytest.mark.asyncio
async def test_get_lead_stats(api_client, settings, mailchimp_api) -> None:
    """Lead stats come back in camelCase with the requested weeks."""
    async with api_client(settings, mailchimp_api) as client:
        response = await client.post("/mailchimp", json={"action": "getLeadStats", "weeks": 4})

    assert response.status_code == 200
    data = response.json()
    assert data["leads"] == 50
    assert data["applicants"] == 1
    assert data["conversionRate"] == 2.0
    assert len(data["weeklyData"]) == 4
    assert set(data["weeklyData"][0]) == {"date", "subscribed", "unsubscribed", "net"}


@pytest.mark.asyncio
async def test_get_campaigns(api_client, settings, mailchimp_api) -> None:
    """Campaign entries carry their rates."""
    async with api_client(settings, mailchimp_api) as client:
        response = await client.post("/mailchimp", json={"action": "getCampaigns"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["campaigns"][0]["open_rate"] == 50.0
    assert data["campaigns"][0]["click_rate"] == 10.0


@pytest.mark.asyncio
async def test_not_configured_without_audience(api_client, make_settings) -> None:
    """An unset audience id counts as missing configuration."""
    async with api_client(make_settings(mailchimp_audience_id="")) as client:
        response = await client.post("/mailchimp", json={"action": "getLeadStats"})

    assert response.status_code == 500
    assert response.json()["error"] == "Mailchimp not configured"
    assert "validActions" not in response.json()


@pytest.mark.asyncio
async def test_invalid_action(api_client, settings, mailchimp_api) -> None:
    """Unknown actions list the Mailchimp actions."""
    async with api_client(settings, mailchimp_api) as client:
        response = await client.post("/mailchimp", json={"action": "getRecruitmentLinks"})

    assert response.status_code == 400
    assert response.json()["validActions"] == ["getLeadStats", "getCampaigns"]


@pytest.mark.asyncio
async def test_weeks_out_of_range(api_client, settings, mailchimp_api) -> None:
    """weeks above 52 is rejected."""
    async with api_client(settings, mailchimp_api) as client:
        response = await client.post("/mailchimp", json={"action": "getLeadStats", "weeks": 60})

    assert response.status_code == 400
    assert response.json()["validationErrors"][0]["field"] == "weeks"
