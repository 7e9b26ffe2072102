"""Tests for rule-based recommendation generation."""
import pytest

from kubera.market_analysis.models import Category, Confidence, Severity, Zone
from kubera.market_analysis.price_analyzer import calculate_pricing_metrics, determine_pricing_zone
from kubera.market_analysis.strategic_analyzer import generate_rule_based_recommendations


MARKET = [10499, 10999, 10999, 10999, 11999]  # median 10999
WIDE_MARKET = [95000, 100000, 105000]  # median 100000


def _generate(prices, merchant_price, feedback):
    metrics = calculate_pricing_metrics(prices, merchant_price)
    zone = determine_pricing_zone(metrics)
    return metrics, zone, generate_rule_based_recommendations(metrics, zone, feedback)


def _by_rule(recommendations):
    return {r.rule: r for r in recommendations}


# =============================================================================
# SCENARIOS
# =============================================================================

def test_market_aligned_scenario(feedback):
    """Merchant at median: hold price and work on the listing."""
    metrics, zone, recs = _generate(MARKET, 11000, feedback)

    assert metrics.price_index == pytest.approx(100.01, abs=0.01)
    assert zone.zone == Zone.MARKET_ALIGNED
    assert "Hold current price" in recs[0].action
    assert recs[0].rule == "ALIGNED_HOLD_OPTIMIZE"
    assert recs[0].confidence == zone.confidence
    assert recs[1].rule == "ALIGNED_VISIBILITY"
    assert recs[1].confidence == Confidence.HIGH
    assert "Strap quality, App sync issues" in recs[1].reasoning[-1]


def test_severe_overpricing_scenario(feedback):
    """Ten times the median brackets the median with charm prices."""
    metrics, zone, recs = _generate(MARKET, 110000, feedback)
    rules = _by_rule(recs)

    assert metrics.price_index == pytest.approx(1000.1, abs=0.1)
    assert (zone.zone, zone.severity) == (Zone.OVERPRICED, Severity.CRITICAL)

    primary = recs[0]
    assert primary.rule == "OVERPRICED_SEVERE"
    assert primary.target_price_range == (10999, 11999)
    assert primary.confidence == Confidence.HIGH
    assert primary.category == Category.PRICING
    assert "OVERPRICED_VALUE_BUNDLE" in rules
    assert "OVERPRICED_URGENCY" not in rules


def test_severe_underpricing_scenario(feedback):
    """A near-zero price is pushed up to the median bracket."""
    metrics, zone, recs = _generate(MARKET, 1, feedback)
    rules = _by_rule(recs)

    assert metrics.price_index == pytest.approx(0.01, abs=0.01)
    assert (zone.zone, zone.severity) == (Zone.UNDERPRICED, Severity.CRITICAL)

    primary = recs[0]
    assert primary.rule == "UNDERPRICED_SEVERE"
    low, high = primary.target_price_range
    assert low <= metrics.median_market_price <= high
    assert low > metrics.merchant_price
    assert "UNDERPRICED_VOLUME" not in rules


def test_moderate_overpricing_closes_most_of_gap(feedback):
    """115 < index <= 130 closes 65% of the gap."""
    _, zone, recs = _generate(WIDE_MARKET, 120000, feedback)
    rules = _by_rule(recs)

    assert zone.severity == Severity.MODERATE
    assert recs[0].rule == "OVERPRICED_MODERATE"
    assert recs[0].target_price_range == (105999, 108999)
    assert recs[0].confidence == zone.confidence
    assert rules["OVERPRICED_URGENCY"].confidence == Confidence.HIGH
    assert rules["OVERPRICED_URGENCY"].priority == 3
    assert rules["OVERPRICED_VALUE_BUNDLE"].category == Category.VALUE_ADD


def test_minor_overpricing(feedback):
    """108 < index <= 115 reduces by 60% of the gap."""
    _, _, recs = _generate(WIDE_MARKET, 112000, feedback)

    assert recs[0].rule == "OVERPRICED_MINOR"
    assert recs[0].target_price_range == (104999, 106999)


def test_moderate_underpricing(feedback):
    """50 <= index < 90 closes 60% of the gap."""
    _, zone, recs = _generate(WIDE_MARKET, 70000, feedback)
    rules = _by_rule(recs)

    assert zone.zone == Zone.UNDERPRICED
    assert recs[0].rule == "UNDERPRICED_MODERATE"
    assert recs[0].target_price_range == (84999, 91999)
    assert rules["UNDERPRICED_VOLUME"].category == Category.MARKETING
    assert rules["UNDERPRICED_VOLUME"].confidence == Confidence.MEDIUM


def test_minor_underpricing(feedback):
    """90 <= index < 95 closes half the gap."""
    _, _, recs = _generate(WIDE_MARKET, 92000, feedback)

    assert recs[0].rule == "UNDERPRICED_MINOR"
    assert recs[0].target_price_range == (96999, 97999)


# =============================================================================
# UNIVERSAL RULES
# =============================================================================

def test_universal_rules_with_full_feedback(feedback):
    """Deal-breakers and strengths each add one recommendation, in order."""
    _, _, recs = _generate(MARKET, 10999, feedback)
    universal = [r.rule for r in recs if r.rule.startswith("UNIVERSAL")]

    assert universal == ["UNIVERSAL_DEALBREAKERS", "UNIVERSAL_STRENGTHS", "UNIVERSAL_SERVICE"]

    rules = _by_rule(recs)
    assert "poor bluetooth connectivity" in rules["UNIVERSAL_DEALBREAKERS"].reasoning[0]
    assert "built-in gps" in rules["UNIVERSAL_DEALBREAKERS"].reasoning[0]
    assert "amoled display and battery life" in rules["UNIVERSAL_STRENGTHS"].reasoning[0]
    assert rules["UNIVERSAL_DEALBREAKERS"].category == Category.QUALITY
    assert rules["UNIVERSAL_SERVICE"].confidence == Confidence.MEDIUM


def test_missing_feedback_arrays_skip_conditional_rules(empty_feedback):
    """Empty feedback keeps only the service rule."""
    _, _, recs = _generate(MARKET, 10999, empty_feedback)
    rules = _by_rule(recs)

    assert "UNIVERSAL_DEALBREAKERS" not in rules
    assert "UNIVERSAL_STRENGTHS" not in rules
    assert "UNIVERSAL_SERVICE" in rules
    assert "target customers" in rules["UNIVERSAL_SERVICE"].reasoning[1]


def test_single_strength_uses_default_second(feedback):
    """A lone strength is paired with the default phrase."""
    opinion = feedback.opinion.model_copy(update={"strengths": ["AMOLED display"]})
    market_analysis = feedback.market_analysis.model_copy(update={"general_opinion": opinion})
    single = feedback.model_copy(update={"market_analysis": market_analysis})

    _, _, recs = _generate(MARKET, 10999, single)

    assert "quality construction" in _by_rule(recs)["UNIVERSAL_STRENGTHS"].reasoning[0]


def test_dealbreaker_without_missing_feature_uses_default(feedback):
    """No missing feature falls back to the default phrase."""
    needs = feedback.needs.model_copy(update={"missing_features": []})
    market_analysis = feedback.market_analysis.model_copy(update={"customer_needs": needs})
    sparse = feedback.model_copy(update={"market_analysis": market_analysis})

    _, _, recs = _generate(MARKET, 10999, sparse)

    assert "ergonomic improvements" in _by_rule(recs)["UNIVERSAL_DEALBREAKERS"].reasoning[0]


def test_round_price_gets_psychological_suggestion(feedback):
    """Round merchant prices get a charm price of the current price itself."""
    _, _, recs = _generate(MARKET, 11000, feedback)
    rec = _by_rule(recs)["PSYCHOLOGICAL_PRICING"]

    assert rec.priority == 6
    assert rec.category == Category.PRICING
    suggestion = rec.psychological_price_suggestion
    assert suggestion.current_price == 11000
    assert suggestion.suggested_price == 11999
    assert suggestion.savings_perception == -999
    assert "₹11,999" in rec.action


def test_charm_price_gets_no_psychological_suggestion(feedback):
    """Prices already ending in 9 are left alone."""
    _, _, recs = _generate(MARKET, 10999, feedback)
    assert "PSYCHOLOGICAL_PRICING" not in _by_rule(recs)


# =============================================================================
# PROPERTIES
# =============================================================================

@pytest.mark.parametrize("merchant_price", [1, 6000, 10100, 10999, 11000, 12600, 14000, 110000])
def test_batch_completeness(feedback, merchant_price):
    """Zone entries first, then universal entries; every entry explains itself."""
    _, _, recs = _generate(MARKET, merchant_price, feedback)
    zone_entries = [r for r in recs if not r.rule.startswith(("UNIVERSAL", "PSYCHOLOGICAL"))]
    universal = [r for r in recs if r.rule.startswith(("UNIVERSAL", "PSYCHOLOGICAL"))]

    assert len(zone_entries) >= 1
    assert 3 <= len(universal) <= 4
    assert recs[: len(zone_entries)] == zone_entries
    assert recs[0].priority == 1
    assert all(r.reasoning and all(r.reasoning) for r in recs)


@pytest.mark.parametrize("merchant_price", [1, 6000, 9000, 12600, 14000, 110000])
def test_target_ranges_are_charm_prices(feedback, merchant_price):
    """Every target price ends in 999 and low <= high."""
    _, _, recs = _generate(MARKET, merchant_price, feedback)
    for rec in recs:
        if rec.target_price_range is None:
            continue
        low, high = rec.target_price_range
        assert low <= high
        assert low % 1000 == 999 and high % 1000 == 999


def test_generation_is_deterministic(feedback):
    """Same inputs, same batch."""
    _, _, first = _generate(MARKET, 12600, feedback)
    _, _, second = _generate(MARKET, 12600, feedback)
    assert first == second
