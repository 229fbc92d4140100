from decimal import Decimal

import pytest

from funnel_builder.db.enums import PurchasePathwayEnum
from funnel_builder.errors import ValidationError
from funnel_builder.services.offers import normalize_generated_offer, pathway_for_price


def _generated_offer(**overrides):
    offer = {
        "name": "Predictable Pipeline Accelerator",
        "tagline": "Replace referrals with a webinar that sells",
        "price": 997,
        "currency": "usd",
        "promise": "Book 20 qualified calls in 60 days.",
        "person": "Agency owners doing $20k-$80k per month.",
        "process": "The Signal-to-Sale method.",
        "purpose": "Freedom from feast-or-famine months.",
        "pathway": "direct_purchase",
        "features": [f"Feature {index}" for index in range(1, 9)],
        "bonuses": [f"Bonus {index}" for index in range(1, 8)],
        "guarantee": "Book 10 calls or we keep working for free.",
    }
    offer.update(overrides)
    return offer


def test_pathway_for_price_threshold():
    assert pathway_for_price(1999.99) == PurchasePathwayEnum.direct_purchase
    assert pathway_for_price(2000) == PurchasePathwayEnum.book_call
    assert pathway_for_price(None) == PurchasePathwayEnum.direct_purchase


def test_normalize_truncates_lists_and_coerces_price():
    normalized = normalize_generated_offer(_generated_offer(price="$2,497.00", pathway="BOOK_CALL"))

    assert normalized["price"] == Decimal("2497.0")
    assert normalized["currency"] == "USD"
    assert normalized["pathway"] == PurchasePathwayEnum.book_call
    assert normalized["features"] == [f"Feature {index}" for index in range(1, 7)]
    assert normalized["bonuses"] == [f"Bonus {index}" for index in range(1, 6)]


def test_normalize_derives_pathway_when_invalid():
    assert normalize_generated_offer(_generated_offer(price=5000, pathway="webinar"))["pathway"] == (
        PurchasePathwayEnum.book_call
    )
    assert normalize_generated_offer(_generated_offer(price=497, pathway=None))["pathway"] == (
        PurchasePathwayEnum.direct_purchase
    )


def test_normalize_requires_name():
    with pytest.raises(ValidationError):
        normalize_generated_offer(_generated_offer(name="  "))
    with pytest.raises(ValidationError):
        normalize_generated_offer(["not", "an", "object"])


def test_generate_offer_from_transcript(api_client, project, transcript, fake_llm):
    fake_llm.json_replies = [_generated_offer()]

    resp = api_client.post("/offers/generate", json={"projectId": project["id"], "transcriptId": transcript["id"]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    offer = body["offer"]
    assert offer["name"] == "Predictable Pipeline Accelerator"
    assert offer["price"] == 997.0
    assert offer["pathway"] == "direct_purchase"
    assert len(offer["features"]) == 6
    assert len(offer["bonuses"]) == 5
    assert offer["max_features"] == 6
    assert offer["max_bonuses"] == 5
    assert "EXTRACTED PRICING FROM SOURCE" in fake_llm.prompts[0]

    listed = api_client.get("/offers", params={"projectId": project["id"]}).json()
    assert [item["id"] for item in listed] == [offer["id"]]


def test_generate_offer_source_errors(api_client, project, fake_llm):
    missing_source = api_client.post("/offers/generate", json={"projectId": project["id"]})
    assert missing_source.status_code == 400
    assert missing_source.json()["detail"] == "Either transcriptId or businessProfileId is required"

    unknown_transcript = api_client.post(
        "/offers/generate",
        json={"projectId": project["id"], "transcriptId": "00000000-0000-0000-0000-000000000099"},
    )
    assert unknown_transcript.status_code == 400
    assert unknown_transcript.json()["detail"] == "Transcript not found"

    unknown_profile = api_client.post(
        "/offers/generate",
        json={"projectId": project["id"], "businessProfileId": "00000000-0000-0000-0000-000000000099"},
    )
    assert unknown_profile.json()["detail"] == "Business profile not found"


def test_generate_offer_provider_failure_returns_500(api_client, project, transcript, fake_llm):
    fake_llm.json_replies = [RuntimeError("upstream exploded")]

    resp = api_client.post("/offers/generate", json={"projectId": project["id"], "transcriptId": transcript["id"]})

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to generate offer"


def test_update_and_delete_offer(api_client, project, transcript, fake_llm):
    fake_llm.json_replies = [_generated_offer()]
    offer = api_client.post(
        "/offers/generate", json={"projectId": project["id"], "transcriptId": transcript["id"]}
    ).json()["offer"]

    updated = api_client.patch(f"/offers/{offer['id']}", json={"price": "1497.50", "metadata": {"edited": True}})
    assert updated.status_code == 200
    assert updated.json()["price"] == 1497.5
    assert updated.json()["metadata"] == {"edited": True}

    too_many = api_client.patch(f"/offers/{offer['id']}", json={"features": ["a"] * 7})
    assert too_many.status_code == 400

    assert api_client.delete(f"/offers/{offer['id']}").json() == {"success": True}
    assert api_client.get(f"/offers/{offer['id']}").status_code == 404
