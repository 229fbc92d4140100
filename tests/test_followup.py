from datetime import datetime, timedelta, timezone

import pytest

from funnel_builder.db.enums import EngagementLevelEnum, ProspectSegmentEnum
from funnel_builder.db.models import FollowupProspect
from funnel_builder.services.followup import (
    calculate_combined_score,
    calculate_intent_score,
    determine_engagement_level,
    determine_segment,
    response_speed_hours,
    response_speed_points,
    score_factors,
)


@pytest.mark.parametrize(
    "hours,points",
    [(0.5, 15), (1, 15), (6, 12), (24, 8), (48, 4), (49, 0), (999, 0)],
)
def test_response_speed_points(hours, points):
    assert response_speed_points(hours) == points


def test_score_factors_are_capped():
    factors = score_factors(
        watch_percentage=100,
        replay_count=4,
        offer_clicks=3,
        email_opens=2,
        email_clicks=1,
        response_speed_hours=0.5,
    )

    assert factors.watch_percentage_contribution == 40
    assert factors.replay_count_contribution == 10
    assert factors.cta_clicks_contribution == 20
    assert factors.email_engagement_contribution == 15
    assert factors.response_speed_contribution == 15
    assert calculate_intent_score(factors) == 100


def test_combined_score_rounds_half_up():
    assert calculate_combined_score(100) == 85
    assert calculate_combined_score(25) == 33
    assert calculate_combined_score(0, 0) == 0


@pytest.mark.parametrize(
    "watch,segment",
    [
        (0, ProspectSegmentEnum.no_show),
        (1, ProspectSegmentEnum.skimmer),
        (24, ProspectSegmentEnum.skimmer),
        (25, ProspectSegmentEnum.sampler),
        (49, ProspectSegmentEnum.sampler),
        (50, ProspectSegmentEnum.engaged),
        (89, ProspectSegmentEnum.engaged),
        (90, ProspectSegmentEnum.hot),
        (100, ProspectSegmentEnum.hot),
    ],
)
def test_segments_follow_watch_percentage(watch, segment):
    assert determine_segment(watch) == segment


def test_engagement_levels():
    assert determine_engagement_level(70) == EngagementLevelEnum.hot
    assert determine_engagement_level(69) == EngagementLevelEnum.warm
    assert determine_engagement_level(40) == EngagementLevelEnum.warm
    assert determine_engagement_level(39) == EngagementLevelEnum.cold


def test_response_speed_hours_defaults_without_reply():
    touched = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)
    assert response_speed_hours(FollowupProspect(first_touch_at=touched, first_reply_at=None)) == 999
    assert response_speed_hours(FollowupProspect(first_touch_at=touched, first_reply_at=touched + timedelta(hours=5))) == 5


def _prospect(api_client, project, email="Lead@Example.com"):
    resp = api_client.post("/followup/prospects", json={"projectId": project["id"], "email": email, "firstName": "Lee"})
    assert resp.status_code == 201
    return resp.json()


def test_create_prospect_normalizes_email_and_rejects_duplicates(api_client, project):
    prospect = _prospect(api_client, project)

    assert prospect["email"] == "lead@example.com"
    assert prospect["segment"] == "no_show"
    assert prospect["engagement_level"] == "cold"
    assert prospect["consent_state"] == "implied"

    duplicate = api_client.post("/followup/prospects", json={"projectId": project["id"], "email": "lead@example.com "})
    assert duplicate.status_code == 409

    invalid = api_client.post("/followup/prospects", json={"projectId": project["id"], "email": "not-an-email"})
    assert invalid.status_code == 400


def test_watch_updates_rescore_and_keep_the_maximum(api_client, project):
    prospect = _prospect(api_client, project)

    watched = api_client.post(f"/followup/prospects/{prospect['id']}/watch", json={"watchPercentage": 50}).json()
    assert watched["watch_percentage"] == 50
    assert watched["segment"] == "engaged"
    assert watched["intent_score"] == 20
    assert watched["combined_score"] == 29
    assert watched["engagement_level"] == "cold"

    lower = api_client.post(
        f"/followup/prospects/{prospect['id']}/watch", json={"watchPercentage": 10, "isReplay": True}
    ).json()
    assert lower["watch_percentage"] == 50
    assert lower["replay_count"] == 1
    assert lower["intent_score"] == 25

    out_of_range = api_client.post(f"/followup/prospects/{prospect['id']}/watch", json={"watchPercentage": 101})
    assert out_of_range.status_code == 400
    assert out_of_range.json()["detail"] == "Watch percentage must be between 0 and 100"


def test_offer_clicks_move_engagement(api_client, project):
    prospect = _prospect(api_client, project)
    api_client.post(f"/followup/prospects/{prospect['id']}/watch", json={"watchPercentage": 100})
    api_client.post(f"/followup/prospects/{prospect['id']}/offer-click")
    clicked = api_client.post(f"/followup/prospects/{prospect['id']}/offer-click").json()

    assert clicked["offer_clicks"] == 2
    assert clicked["segment"] == "hot"
    assert clicked["intent_score"] == 60
    assert clicked["combined_score"] == 57
    assert clicked["engagement_level"] == "warm"

    history = api_client.get(f"/followup/prospects/{prospect['id']}/score-history").json()
    assert len(history) == 3
    assert {entry["change_reason"] for entry in history} == {"watch_update", "offer_click"}
    assert sorted(entry["change_delta"] for entry in history) == [7, 7, 43]


def test_prospect_list_filters_by_segment(api_client, project):
    hot = _prospect(api_client, project, "hot@example.com")
    _prospect(api_client, project, "cold@example.com")
    api_client.post(f"/followup/prospects/{hot['id']}/watch", json={"watchPercentage": 95})

    everyone = api_client.get("/followup/prospects", params={"projectId": project["id"]}).json()
    assert [item["email"] for item in everyone] == ["hot@example.com", "cold@example.com"]

    no_shows = api_client.get("/followup/prospects", params={"projectId": project["id"], "segment": "no_show"}).json()
    assert [item["email"] for item in no_shows] == ["cold@example.com"]


def test_opt_out_convert_and_notes(api_client, project):
    prospect = _prospect(api_client, project)

    noted = api_client.patch(
        f"/followup/prospects/{prospect['id']}/intake-notes",
        json={"challengeNotes": "No leads", "objectionHints": ["price"]},
    ).json()
    assert noted["challenge_notes"] == "No leads"
    assert noted["objection_hints"] == ["price"]
    assert noted["goal_notes"] is None

    opted_out = api_client.post(f"/followup/prospects/{prospect['id']}/opt-out", json={"reason": "Too many emails"}).json()
    assert opted_out["consent_state"] == "opted_out"
    assert opted_out["opt_out_reason"] == "Too many emails"
    assert opted_out["opted_out_at"] is not None

    converted = api_client.post(f"/followup/prospects/{prospect['id']}/convert", json={"conversionValue": "997"}).json()
    assert converted["converted"] is True
    assert converted["conversion_value"] == 997


def test_agent_config_defaults_and_activation(api_client, project):
    first = api_client.post(
        "/followup/agent-configs",
        json={"projectId": project["id"], "name": " Primary ", "voiceConfig": {"tone": "playful"}},
    )
    assert first.status_code == 201
    first = first.json()
    assert first["name"] == "Primary"
    assert first["voice_config"] == {"tone": "playful"}
    assert first["scoring_config"]["engagement_thresholds"] == {"hot": 70, "warm": 40, "cold": 0}
    assert first["segmentation_rules"]["hot"]["watch_pct"] == [90, 100]
    assert first["is_active"] is False

    second = api_client.post("/followup/agent-configs", json={"projectId": project["id"], "name": "Backup"}).json()

    api_client.post(f"/followup/agent-configs/{first['id']}/activate")
    activated = api_client.post(f"/followup/agent-configs/{second['id']}/activate").json()
    assert activated["is_active"] is True
    assert api_client.get(f"/followup/agent-configs/{first['id']}").json()["is_active"] is False

    renamed = api_client.patch(
        f"/followup/agent-configs/{second['id']}", json={"name": "Renamed", "automationEnabled": True}
    ).json()
    assert renamed["name"] == "Renamed"
    assert renamed["automation_enabled"] is True

    blank = api_client.patch(f"/followup/agent-configs/{second['id']}", json={"name": "  "})
    assert blank.status_code == 400

    missing_offer = api_client.post(
        "/followup/agent-configs",
        json={"projectId": project["id"], "name": "Offer bound", "offerId": "00000000-0000-0000-0000-000000000001"},
    )
    assert missing_offer.status_code == 404
