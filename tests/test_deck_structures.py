import json

import pytest

from funnel_builder.config import settings
from funnel_builder.errors import ValidationError
from funnel_builder.llm.client import LLMClientConfigError
from funnel_builder.services import deck_structure as deck_service
from funnel_builder.services.deck_structure import (
    SlideChunk,
    extract_test_slides,
    generate_full_deck,
    load_framework,
    parse_chunk_slides,
    placeholder_slides,
    renumber_slides,
    split_framework_into_chunks,
)


def _slides_json(start: int, end: int) -> str:
    return json.dumps(
        [
            {"slideNumber": number, "title": f"Generated {number}", "description": "Body", "section": "hook"}
            for number in range(start, end + 1)
        ]
    )


def test_split_groups_slides_into_fixed_ranges():
    content = "Preamble\n## Slide 1: One\nbody\n## Slide 2: Two\n## Slide 3: Three\nlast line"
    chunks = split_framework_into_chunks(content, slides_per_chunk=2)

    assert [(chunk.start_slide, chunk.end_slide) for chunk in chunks] == [(1, 2), (3, 3)]
    assert chunks[0].lines[0] == "Preamble"
    assert chunks[1].content == "## Slide 3: Three\nlast line"


def test_packaged_framework_splits_into_six_chunks():
    chunks = split_framework_into_chunks(load_framework(), slides_per_chunk=10)

    assert [(chunk.start_slide, chunk.end_slide) for chunk in chunks] == [
        (1, 10),
        (11, 20),
        (21, 30),
        (31, 40),
        (41, 50),
        (51, 55),
    ]
    assert chunks[0].content.startswith("# Magnetic Masterclass Framework")


def test_extract_test_slides_stops_at_requested_header():
    chunk = extract_test_slides(load_framework(), count=5)

    assert (chunk.start_slide, chunk.end_slide) == (1, 5)
    assert chunk.lines[-1].startswith("## Slide 5:")
    assert "## Slide 6:" not in chunk.content


def test_placeholder_slides_cover_range():
    slides = placeholder_slides(11, 13)
    assert [slide["slideNumber"] for slide in slides] == [11, 12, 13]
    assert slides[0]["title"] == "Slide 11 - To Be Completed"
    assert {slide["section"] for slide in slides} == {"pending"}


def test_parse_chunk_slides_requires_array():
    assert parse_chunk_slides("```json\n" + _slides_json(1, 2) + "\n```")[1]["slideNumber"] == 2
    with pytest.raises(ValueError):
        parse_chunk_slides('{"slides": []}')


def test_load_framework_missing_file(tmp_path):
    with pytest.raises(ValidationError) as excinfo:
        load_framework(str(tmp_path / "missing.md"))
    assert "Framework template not found at" in excinfo.value.message


def test_full_deck_uses_placeholders_and_skips_delay_after_failure(fake_llm, monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr(settings, "DECK_CHUNK_DELAY_SECONDS", 0.5)
    monkeypatch.setattr(deck_service.time, "sleep", sleeps.append)
    chunks = [SlideChunk(start, start + 1, [f"## Slide {start}: x"]) for start in (1, 3, 5, 7)]
    fake_llm.text_replies = [_slides_json(1, 2), RuntimeError("rate limited"), _slides_json(5, 6), _slides_json(7, 8)]

    slides, failed = generate_full_deck(llm=fake_llm, transcript_text="transcript", chunks=chunks)

    assert [slide["slideNumber"] for slide in slides] == list(range(1, 9))
    assert slides[2]["title"] == "Slide 3 - To Be Completed"
    assert failed == ["3-4"]
    assert sleeps == [0.5, 0.5]


def test_generate_full_deck_endpoint(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [
        _slides_json(1, 10),
        RuntimeError("provider timeout"),
        _slides_json(21, 30),
        "I could not produce slides for this section.",
        _slides_json(41, 50),
        _slides_json(51, 55),
    ]

    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    deck = body["deckStructure"]
    assert deck["template_type"] == "55_slide_masterclass"
    assert deck["total_slides"] == 55
    assert deck["intake_session_id"] == transcript["id"]
    assert deck["metadata"]["failedChunks"] == ["11-20", "31-40"]
    assert deck["metadata"]["mode"] == "full"
    assert deck["metadata"]["title"].startswith("Magnetic Masterclass - ")
    assert deck["slides"][10]["title"] == "Slide 11 - To Be Completed"
    assert deck["slides"][20]["title"] == "Generated 21"
    assert "Create slides 1-10" in fake_llm.prompts[0]
    assert "Create slides 51-55" in fake_llm.prompts[5]


def test_generate_test_deck(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [_slides_json(1, 5)]

    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"], "slideCount": "5"},
    )

    deck = resp.json()["deckStructure"]
    assert deck["template_type"] == "5_slide_test"
    assert deck["total_slides"] == 5
    assert deck["metadata"]["title"].startswith("Test Deck - ")
    assert deck["metadata"]["failedChunks"] == []
    assert len(fake_llm.prompts) == 1


def test_test_deck_failure_is_not_masked(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [RuntimeError("provider down")]

    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"], "slideCount": "5"},
    )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to generate deck structure"


def test_full_deck_without_provider_key_is_unavailable(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [LLMClientConfigError("ANTHROPIC_API_KEY not configured")]

    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"]},
    )

    assert resp.status_code == 503
    assert resp.json()["detail"] == "ANTHROPIC_API_KEY not configured"
    assert len(fake_llm.prompts) == 1
    assert api_client.get("/deck-structures", params={"projectId": project["id"]}).json() == []


def test_generate_requires_a_source(api_client, project, fake_llm):
    resp = api_client.post("/deck-structures/generate", json={"projectId": project["id"]})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Either transcriptId or businessProfileId is required"


def test_generate_rejects_unknown_slide_count(api_client, project, transcript):
    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"], "slideCount": "12"},
    )
    assert resp.status_code == 422


def test_generate_reports_missing_framework(api_client, project, transcript, fake_llm, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DECK_FRAMEWORK_PATH", str(tmp_path / "gone.md"))
    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"]},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Framework template not found at")
    assert fake_llm.prompts == []


def test_generate_from_business_profile(api_client, project, fake_llm):
    profile = api_client.post("/business-profiles", json={"projectId": project["id"]}).json()
    api_client.patch(
        f"/business-profiles/{profile['id']}/sections/section1",
        json={"data": {"ideal_customer": "Agency owners stuck on referrals"}},
    )
    fake_llm.text_replies = [_slides_json(1, 5)]

    resp = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "businessProfileId": profile["id"], "slideCount": "5"},
    )

    deck = resp.json()["deckStructure"]
    assert deck["intake_session_id"] is None
    assert "Agency owners stuck on referrals" in fake_llm.prompts[0]


def test_update_slides_renumbers(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [_slides_json(1, 5)]
    deck = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"], "slideCount": "5"},
    ).json()["deckStructure"]

    reordered = list(reversed(deck["slides"]))[:3]
    resp = api_client.patch(f"/deck-structures/{deck['id']}/slides", json={"slides": reordered})

    body = resp.json()
    assert body["total_slides"] == 3
    assert [slide["slideNumber"] for slide in body["slides"]] == [1, 2, 3]
    assert body["slides"][0]["title"] == "Generated 5"


def test_renumber_slides_rejects_non_objects():
    with pytest.raises(ValidationError):
        renumber_slides([{"title": "ok"}, "bad"])


def test_presentation_from_deck(api_client, project, transcript, fake_llm):
    fake_llm.text_replies = [_slides_json(1, 5)]
    deck = api_client.post(
        "/deck-structures/generate",
        json={"projectId": project["id"], "transcriptId": transcript["id"], "slideCount": "5"},
    ).json()["deckStructure"]

    created = api_client.post("/presentations", json={"deckStructureId": deck["id"], "themeName": "Sleek"})
    assert created.status_code == 201
    presentation = created.json()
    assert presentation["generation_status"] == "pending"
    assert presentation["title"] == deck["metadata"]["title"]
    assert presentation["funnel_project_id"] == project["id"]

    updated = api_client.patch(
        f"/presentations/{presentation['id']}/status",
        json={"generationStatus": "completed", "deckUrl": "https://decks.example.com/abc"},
    )
    assert updated.json()["generation_status"] == "completed"
    assert updated.json()["deck_url"] == "https://decks.example.com/abc"

    missing = api_client.post("/presentations", json={"deckStructureId": project["id"]})
    assert missing.status_code == 404
