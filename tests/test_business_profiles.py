from funnel_builder.db.models import BusinessProfile
from funnel_builder.services.business_profiles import (
    build_completion_status,
    calculate_overall_completion,
    is_field_filled,
    profile_to_source_text,
)


def test_is_field_filled_by_kind():
    assert is_field_filled("  text ") is True
    assert is_field_filled("   ") is False
    assert is_field_filled([]) is False
    assert is_field_filled(["Which option fits you?"], "array") is True
    assert is_field_filled({"regular": None, "webinar": None}, "pricing") is False
    assert is_field_filled({"regular": 2000, "webinar": None}, "pricing") is True
    assert is_field_filled({"old": "", "new": ""}, "belief_shift") is False
    assert is_field_filled({"old": "Ads are a casino", "new": ""}, "belief_shift") is True


def test_completion_status_rounds_half_up():
    values = {"struggle_story": "x", "breakthrough_moment": "y", "life_now": None}
    status = build_completion_status(values)

    assert status["section1"] == 0
    assert status["section2"] == 40
    assert status["overall"] == 8
    assert calculate_overall_completion(
        {"section1": 100, "section2": 100, "section3": 50, "section4": 25, "section5": 0}
    ) == 55


def test_get_or_create_is_idempotent(api_client, project):
    first = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    second = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()

    assert first["id"] == second["id"]
    assert first["source"] == "wizard"
    assert first["completion_status"] == {
        "section1": 0,
        "section2": 0,
        "section3": 0,
        "section4": 0,
        "section5": 0,
        "overall": 0,
    }
    assert api_client.get("/business-profiles", params={"projectId": project["id"]}).json()["id"] == first["id"]


def test_update_section_merges_and_recomputes(api_client, project):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()

    first = api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section3",
        json={"data": {"offer_name": "Pipeline Accelerator", "pricing": {"regular": 2000, "webinar": 1500}}},
    ).json()
    assert first["completion_status"]["section3"] == 20
    assert first["completion_status"]["overall"] == 4

    second = api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section3",
        json={"data": {"guarantee": "Results or refund"}, "aiGeneratedFields": ["guarantee", "not_a_field"]},
    ).json()
    assert second["offer_name"] == "Pipeline Accelerator"
    assert second["completion_status"]["section3"] == 30
    assert second["ai_generated_fields"] == ["guarantee"]


def test_update_section_rejects_unknown_fields_and_sections(api_client, project):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()

    wrong_field = api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section1", json={"data": {"offer_name": "x"}}
    )
    assert wrong_field.status_code == 400

    wrong_section = api_client.patch(f"/business-profiles/{profile['id']}/sections/section9", json={"data": {}})
    assert wrong_section.status_code == 400
    assert wrong_section.json()["detail"] == "Unknown section section9"


def test_completing_a_section_advances_current_section(api_client, project):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    data = {
        "struggle_story": "Lost everything in 2019",
        "breakthrough_moment": "Found the webinar model",
        "life_now": "Two day work week",
        "credibility_experience": "300 clients served",
        "signature_method": "Signal-to-Sale",
    }

    updated = api_client.patch(f"/business-profiles/{profile['id']}/sections/section2", json={"data": data}).json()

    assert updated["completion_status"]["section2"] == 100
    assert updated["current_section"] == 3


def test_populate_from_intake_fills_only_empty_fields(api_client, project, transcript, fake_llm):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section1",
        json={"data": {"ideal_customer": "Hand-written customer"}},
    )
    fake_llm.json_replies = [
        {
            "ideal_customer": "AI customer",
            "transformation": "From referrals to a predictable pipeline",
            "poll_questions": ["Where do your leads come from?"],
            "top_objections": [{"objection": "Too expensive", "response": "Payback in one client"}],
        }
    ]

    resp = api_client.post(
        "/business-profiles/populate-from-intake",
        json={"projectId": project["id"], "intakeSessionId": transcript["id"]},
    )

    assert resp.status_code == 200
    populated = resp.json()["profile"]
    assert populated["ideal_customer"] == "Hand-written customer"
    assert populated["transformation"] == "From referrals to a predictable pipeline"
    assert populated["poll_questions"] == ["Where do your leads come from?"]
    assert populated["top_objections"][0]["objection"] == "Too expensive"
    assert "transformation" in populated["ai_generated_fields"]
    assert "ideal_customer" not in populated["ai_generated_fields"]
    assert populated["intake_session_id"] == transcript["id"]


def test_profile_sections_listing(api_client):
    sections = api_client.get("/business-profiles/sections").json()
    assert [section["id"] for section in sections] == ["section1", "section2", "section3", "section4", "section5"]
    assert sections[2]["fields"][6] == {"key": "pricing", "label": "Pricing", "type": "pricing"}


def test_update_section_rejects_malformed_nested_fields(api_client, project):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    url = f"/business-profiles/{profile['id']}/sections"

    belief_as_text = api_client.patch(f"{url}/section4", json={"data": {"vehicle_belief_shift": "Old -> new"}})
    assert belief_as_text.status_code == 400
    assert belief_as_text.json()["detail"] == "Field vehicle_belief_shift must be an object"

    price_as_text = api_client.patch(f"{url}/section3", json={"data": {"pricing": {"regular": "two grand"}}})
    assert price_as_text.status_code == 400

    objection_as_text = api_client.patch(f"{url}/section5", json={"data": {"top_objections": ["Too expensive"]}})
    assert objection_as_text.status_code == 400

    polls_as_text = api_client.patch(f"{url}/section4", json={"data": {"poll_questions": "Which one?"}})
    assert polls_as_text.status_code == 400

    untouched = api_client.get(f"/business-profiles/{profile['id']}").json()
    assert untouched["top_objections"] == []
    assert untouched["completion_status"]["overall"] == 0


def test_objections_are_stored_with_a_response(api_client, project):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()

    updated = api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section5",
        json={"data": {"top_objections": [{"objection": "No time"}]}},
    ).json()

    assert updated["top_objections"] == [{"objection": "No time", "response": ""}]


def test_populate_from_intake_coerces_loose_ai_shapes(api_client, project, transcript, fake_llm):
    fake_llm.json_replies = [
        {
            "top_objections": ["Too expensive", {"objection": "No time", "response": "Ten minutes a day"}, 42],
            "vehicle_belief_shift": "Ads are a casino",
            "internal_belief_shift": {"old_belief": "I am not techy", "new_belief": None},
            "pricing": "$2,000",
        }
    ]

    resp = api_client.post(
        "/business-profiles/populate-from-intake",
        json={"projectId": project["id"], "intakeSessionId": transcript["id"]},
    )

    assert resp.status_code == 200
    populated = resp.json()["profile"]
    assert populated["top_objections"] == [
        {"objection": "Too expensive", "response": ""},
        {"objection": "No time", "response": "Ten minutes a day"},
        {"objection": "42", "response": ""},
    ]
    assert populated["vehicle_belief_shift"] == {}
    assert populated["internal_belief_shift"] == {"old_belief": "I am not techy", "new_belief": None}
    assert populated["pricing"] == {"regular": 2000.0, "webinar": None}
    assert "vehicle_belief_shift" not in populated["ai_generated_fields"]


def test_profile_with_objections_can_seed_an_offer(api_client, project, fake_llm):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section5",
        json={"data": {"top_objections": [{"objection": "Too expensive", "response": "Pays back in one client"}]}},
    )
    fake_llm.json_replies = [{"name": "Pipeline Accelerator", "price": 997}]

    resp = api_client.post("/offers/generate", json={"projectId": project["id"], "businessProfileId": profile["id"]})

    assert resp.status_code == 200
    assert "1. Too expensive - Response: Pays back in one client" in fake_llm.prompts[0]


def test_source_text_tolerates_legacy_shapes():
    profile = BusinessProfile(
        top_objections=["Too expensive"],
        vehicle_belief_shift="Ads are a casino",
        pricing=None,
    )

    text, pricing = profile_to_source_text(profile)

    assert "  1. Too expensive" in text
    assert "Vehicle Belief Shift: Ads are a casino" in text
    assert pricing is None
