"""Tests for LLM JSON repair and validation."""
import json

import pytest

from kubera.llm.json_guard import (
    JSONGuardError,
    extract_json_text,
    load_schema,
    parse_json_response,
)


def test_strips_json_fence():
    """```json fences are removed."""
    assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_strips_plain_fence():
    """Bare ``` fences are removed."""
    assert extract_json_text('```\n[1, 2]\n```') == '[1, 2]'


@pytest.mark.parametrize("raw", [
    '{"product": "x", "results": [',
    '[{"a": 1}',
    '',
    '   ',
])
def test_rejects_truncated_or_empty(raw):
    """Output cut off mid-structure is rejected."""
    with pytest.raises(JSONGuardError):
        extract_json_text(raw)


def test_rejects_unbalanced_braces():
    """Brace counts must match."""
    with pytest.raises(JSONGuardError, match="Unbalanced braces"):
        extract_json_text('{"a": {"b": 1}')


def test_load_schema_missing():
    """Unknown schema names fail loudly."""
    with pytest.raises(FileNotFoundError):
        load_schema("does_not_exist")


def test_parse_valid_price_search(search_payload_factory):
    """A well-formed price search payload passes validation."""
    payload = search_payload_factory([10999, 11499])
    raw = "```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"

    data = parse_json_response(raw, "price_search")

    assert data["results"][0]["price"] == "₹10,999"


def test_parse_rejects_schema_violation():
    """Missing required fields raise JSONGuardError."""
    with pytest.raises(JSONGuardError):
        parse_json_response('{"product": "x"}', "price_search")


def test_parse_rejects_invalid_json():
    """Balanced but invalid JSON raises JSONGuardError."""
    with pytest.raises(JSONGuardError):
        parse_json_response("{product: x}", "price_search")


def test_parse_unwraps_single_key_array():
    """{"recommendations": [...]} validates against an array schema."""
    raw = json.dumps({"recommendations": [
        {"action": "Hold price", "reasoning": ["Stable market"], "expectedImpact": "Margin kept"},
    ]})

    data = parse_json_response(raw, "enhanced_recommendations", unwrap_arrays=True)

    assert isinstance(data, list)
    assert data[0]["action"] == "Hold price"


def test_parse_feedback_schema_rejects_bad_sentiment(feedback_payload):
    """Sentiment outside the vocabulary is rejected."""
    feedback_payload["marketAnalysis"]["generalOpinion"]["overallSentiment"] = "Great"
    with pytest.raises(JSONGuardError):
        parse_json_response(json.dumps(feedback_payload), "customer_feedback")


def test_unmatched_bracket_inside_string_is_valid(search_payload_factory):
    """Brackets and braces inside string values do not trip the balance checks."""
    payload = search_payload_factory([10999])
    payload["results"][0]["description"] = "Smartwatch [Black, 1.85 inch display {AMOLED"
    raw = json.dumps(payload, ensure_ascii=False)

    assert extract_json_text(raw) == raw
    data = parse_json_response(raw, "price_search")
    assert data["results"][0]["description"].startswith("Smartwatch [Black")


def test_invalid_json_with_balanced_braces_is_named():
    """Balanced but unparseable text reports the decoder error."""
    with pytest.raises(JSONGuardError, match="Invalid JSON"):
        extract_json_text('{"a": 1,}')
