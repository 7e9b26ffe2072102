"""Tests for the recommendation wording pass."""
import json

import pytest

from kubera.llm.client import LLMClient, LLMError
from kubera.market_analysis.enhancer import Enhanced, Fallback, enhance_recommendations, merge_wording
from kubera.market_analysis.price_analyzer import calculate_pricing_metrics, determine_pricing_zone
from kubera.market_analysis.strategic_analyzer import generate_rule_based_recommendations


@pytest.fixture
def analysis(feedback):
    metrics = calculate_pricing_metrics([10499, 10999, 10999, 10999, 11999], 14000)
    zone = determine_pricing_zone(metrics)
    raw = generate_rule_based_recommendations(metrics, zone, feedback)
    return metrics, zone, raw


def _reworded(raw):
    return {"recommendations": [
        {
            "priority": 99,
            "action": f"Reworded action {i}",
            "category": "Festival",
            "confidence": "Low",
            "reasoning": [f"Reworded reason {i}"],
            "expectedImpact": f"Reworded impact {i}",
        }
        for i, _ in enumerate(raw)
    ]}


@pytest.mark.asyncio
async def test_enhanced_wording_keeps_decisions(analysis, feedback, fake_llm_factory):
    """Only wording changes; priority, category, confidence and targets stay."""
    metrics, zone, raw = analysis
    llm = fake_llm_factory({"enhanced_recommendations": [_reworded(raw)]})

    outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=True)

    assert isinstance(outcome, Enhanced)
    assert len(outcome.recommendations) == len(raw)
    for before, after in zip(raw, outcome.recommendations):
        assert after.action.startswith("Reworded action")
        assert after.reasoning[0].startswith("Reworded reason")
        assert after.priority == before.priority
        assert after.category == before.category
        assert after.confidence == before.confidence
        assert after.rule == before.rule
        assert after.target_price_range == before.target_price_range
        assert after.psychological_price_suggestion == before.psychological_price_suggestion


@pytest.mark.asyncio
async def test_prompt_carries_raw_batch_and_context(analysis, feedback, fake_llm_factory):
    """The prompt includes the zone, the raw batch and the enhancement temperature."""
    metrics, zone, raw = analysis
    llm = fake_llm_factory({"enhanced_recommendations": [_reworded(raw)]})

    await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=True)

    call = llm.calls_for("enhanced_recommendations")[0]
    assert "Pricing Zone: Overpriced" in call["prompt"]
    assert raw[0].action in call["prompt"]
    assert call["temperature"] == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_length_mismatch_falls_back(analysis, feedback, fake_llm_factory):
    """A batch of a different length is rejected whole."""
    metrics, zone, raw = analysis
    short = _reworded(raw)
    short["recommendations"] = short["recommendations"][:-1]
    llm = fake_llm_factory({"enhanced_recommendations": [short]})

    outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=True)

    assert isinstance(outcome, Fallback)
    assert outcome.recommendations == raw
    assert "expected" in outcome.reason


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    "not json at all",
    '{"recommendations": [{"action": "x"',
    json.dumps({"recommendations": [{"action": "missing fields"}]}),
    LLMError("rate limited"),
])
async def test_bad_responses_fall_back(analysis, feedback, fake_llm_factory, response):
    """Unparseable, truncated, invalid or failed calls give the raw batch."""
    metrics, zone, raw = analysis
    llm = fake_llm_factory({"enhanced_recommendations": [response]})

    outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=True)

    assert isinstance(outcome, Fallback)
    assert outcome.recommendations == raw


@pytest.mark.asyncio
async def test_disabled_skips_llm(analysis, feedback, fake_llm_factory):
    """Disabled enhancement never calls the LLM."""
    metrics, zone, raw = analysis
    llm = fake_llm_factory()

    outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=False)

    assert isinstance(outcome, Fallback)
    assert llm.calls == []


@pytest.mark.asyncio
async def test_mock_provider_falls_back(analysis, feedback):
    """The mock provider has nothing to reword with."""
    metrics, zone, raw = analysis
    async with LLMClient(provider="mock") as llm:
        outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, enabled=True)

    assert isinstance(outcome, Fallback)
    assert outcome.reason == "mock LLM provider"


def test_merge_wording_strips_whitespace(analysis):
    """Merged wording is trimmed."""
    _, _, raw = analysis
    items = [
        {"action": "  Act  ", "reasoning": [" why "], "expectedImpact": " impact "}
        for _ in raw
    ]
    merged = merge_wording(raw, items)
    assert merged[0].action == "Act"
    assert merged[0].reasoning == ["why"]
    assert merged[0].expected_impact == "impact"
