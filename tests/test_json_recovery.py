import pytest

from funnel_builder.llm.json_recovery import (
    JSONRecoveryError,
    coerce_to_number,
    coerce_to_string,
    coerce_to_string_list,
    parse_json_with_recovery,
    strip_code_fences,
)


def test_parses_clean_json():
    assert parse_json_with_recovery('{"name": "Offer", "price": 997}') == {"name": "Offer", "price": 997}


def test_strips_markdown_fences():
    fenced = '```json\n{"name": "Offer"}\n```'
    assert strip_code_fences(fenced) == '{"name": "Offer"}'
    assert parse_json_with_recovery(fenced) == {"name": "Offer"}


def test_fixes_trailing_commas_and_unquoted_keys():
    assert parse_json_with_recovery('{"features": ["a", "b",],}') == {"features": ["a", "b"]}
    assert parse_json_with_recovery('{name: "Offer", price: 997}') == {"name": "Offer", "price": 997}


def test_replaces_object_artifacts_with_null():
    assert parse_json_with_recovery('{"name": "Offer", "meta": [object Object]}') == {"name": "Offer", "meta": None}


def test_extracts_object_from_surrounding_prose():
    text = 'Here is the offer you asked for: {"name": "Offer"} Let me know if you want changes.'
    assert parse_json_with_recovery(text) == {"name": "Offer"}


def test_closes_truncated_output():
    assert parse_json_with_recovery('{"name": "Offer", "features": ["a", "b"') == {
        "name": "Offer",
        "features": ["a", "b"],
    }
    assert parse_json_with_recovery('{"name": "Offer", "tagline": "Stop chas') == {"name": "Offer", "tagline": None}


def test_unrecoverable_text_raises():
    with pytest.raises(JSONRecoveryError):
        parse_json_with_recovery("I could not produce an offer for this transcript")


def test_coerce_to_string():
    assert coerce_to_string("  Offer  ") == "Offer"
    assert coerce_to_string("[object Object]") is None
    assert coerce_to_string("null") is None
    assert coerce_to_string(["first", None, "second"]) == "first\n\nsecond"
    assert coerce_to_string({"text": "nested"}) == "nested"
    assert coerce_to_string(997) == "997"
    assert coerce_to_string(True) == "true"


def test_coerce_to_string_list():
    assert coerce_to_string_list("1. First win\n2. Second win") == ["First win", "Second win"]
    assert coerce_to_string_list('["a", "b"]') == ["a", "b"]
    assert coerce_to_string_list(["a", "", None, "b", "c"], max_items=2) == ["a", "b"]
    assert coerce_to_string_list("[object Object]") == []
    assert coerce_to_string_list(42) == []


def test_coerce_to_number():
    assert coerce_to_number("$2,500") == 2500.0
    assert coerce_to_number(997) == 997.0
    assert coerce_to_number("free") is None
    assert coerce_to_number("1.2.3") is None
    assert coerce_to_number(True) is None
