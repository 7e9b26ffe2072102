"""
Rule-based pricing strategy recommendations.

Turns pricing metrics, the pricing zone and the customer feedback summary into
a deterministic batch of recommendations. The LLM never decides actions or
numbers: it may only reword this batch afterwards (see enhancer.py).

Rule structure:
1. Zone dispatch - exactly one branch fires:
   - Overpriced: severe (>130) / moderate (>115) / minor price cut, a value
     bundle, and an urgency play unless the cut is severe.
   - Market-Aligned: hold price, improve listing quality.
   - Underpriced: severe (<50) / moderate (<90) / minor price rise, and a
     volume play unless the gap is severe.
2. Universal rules, in order:
   - deal-breakers present  -> Quality fix
   - strengths present      -> Marketing highlight
   - always                 -> Value-Add service
   - round merchant price   -> charm price suggestion

Every price target goes through apply_psychological_pricing.

Usage:
    from kubera.market_analysis.strategic_analyzer import generate_rule_based_recommendations

    recommendations = generate_rule_based_recommendations(metrics, zone, feedback)
"""

from .config import DEFAULT_THRESHOLDS, PricingThresholds
from .models import (
    DEFAULT_MISSING_FEATURE,
    DEFAULT_SECOND_STRENGTH,
    ActionableRecommendation,
    Category,
    Confidence,
    CustomerFeedbackResponse,
    PricingMetrics,
    PricingZone,
    PsychologicalPriceSuggestion,
    Zone,
)
from .price_analyzer import apply_psychological_pricing, is_round_price
from .report import format_price


# =============================================================================
# HELPERS
# =============================================================================

def _price_range_text(low: int, high: int) -> str:
    return f"{format_price(low)} - {format_price(high)}"


def _median_bracket(metrics: PricingMetrics, thresholds: PricingThresholds) -> tuple[int, int]:
    """Charm-priced range around the market median."""
    median = metrics.median_market_price
    low = apply_psychological_pricing(median - 1, thresholds)
    high = apply_psychological_pricing(median + thresholds.charm_ending, thresholds)
    return low, high


def _next_thousand(price: int) -> int:
    return (price // 1000 + 1) * 1000


# =============================================================================
# ZONE BRANCHES
# =============================================================================

def _overpriced_recommendations(
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
    thresholds: PricingThresholds,
) -> list[ActionableRecommendation]:
    recommendations = []
    opinion = feedback.opinion
    audience = opinion.target_audience.lower()
    gap = metrics.merchant_price - metrics.median_market_price
    gap_pct = gap / metrics.median_market_price * 100
    price_index = metrics.price_index

    if price_index > thresholds.severe_overpriced_above:
        low, high = _median_bracket(metrics, thresholds)
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Reduce price to {_price_range_text(low, high)} (psychological pricing at market level)",
            reasoning=[
                f"Price Index of {price_index:.1f} means you're {gap_pct:.1f}% above the market median "
                f"({format_price(metrics.median_market_price)}), losing sales to competitors daily.",
                f"Psychological pricing at {format_price(low)} reads as cheaper than "
                f"{format_price(_next_thousand(low))} while matching market expectations.",
                f"Market range {format_price(metrics.min_market_price)}-{format_price(metrics.max_market_price)} "
                f"shows {metrics.total_retailers - 1} retailers compete here; pricing at median captures maximum volume.",
            ],
            expected_impact="Significant conversion improvement and market competitiveness",
            confidence=Confidence.HIGH,
            category=Category.PRICING,
            rule="OVERPRICED_SEVERE",
            target_price_range=(low, high),
        ))
    elif price_index > thresholds.moderate_overpriced_above:
        gap_to_close = gap * thresholds.overpriced_moderate_gap_share
        low = apply_psychological_pricing(
            metrics.merchant_price - gap_to_close * thresholds.overpriced_moderate_low_factor, thresholds
        )
        high = apply_psychological_pricing(
            metrics.merchant_price - gap_to_close * thresholds.overpriced_moderate_high_factor, thresholds
        )
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Reduce price to {_price_range_text(low, high)}",
            reasoning=[
                f"Price {gap_pct:.1f}% above market median reduces conversion and visibility.",
                f"Competitors at {format_price(metrics.median_market_price)} are capturing price-sensitive {audience}.",
                f"Current rank {metrics.competitive_rank} of {metrics.total_retailers} indicates a weak "
                f"competitive position requiring adjustment.",
            ],
            expected_impact="Higher conversion rates and better market visibility",
            confidence=zone.confidence,
            category=Category.PRICING,
            rule="OVERPRICED_MODERATE",
            target_price_range=(low, high),
        ))
    else:
        reduction = gap * thresholds.overpriced_minor_gap_share
        low = apply_psychological_pricing(metrics.merchant_price - reduction, thresholds)
        high = apply_psychological_pricing(
            metrics.merchant_price - reduction * thresholds.overpriced_minor_high_factor, thresholds
        )
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Reduce price to {_price_range_text(low, high)}",
            reasoning=[
                f"Priced {gap_pct:.1f}% above median; a minor reduction improves competitiveness.",
                f"Market stability (spread: {metrics.price_spread_percent:.1f}%) allows a strategic price adjustment.",
                f"Moving closer to the market median of {format_price(metrics.median_market_price)} lifts "
                f"conversion without hurting quality perception.",
            ],
            expected_impact="Improved conversion without compromising brand positioning",
            confidence=zone.confidence,
            category=Category.PRICING,
            rule="OVERPRICED_MINOR",
            target_price_range=(low, high),
        ))

    recommendations.append(ActionableRecommendation(
        priority=2,
        action="Add value bundle instead of price cut",
        reasoning=[
            f"Bundling protects margins while enhancing perceived value for {audience}.",
            "Bank discounts or free accessories lower the effective cost for price-sensitive customers.",
            "Answers the demand for an affordable price point without a direct price reduction.",
        ],
        expected_impact="Maintains margin while improving attractiveness",
        confidence=Confidence.MEDIUM,
        category=Category.VALUE_ADD,
        rule="OVERPRICED_VALUE_BUNDLE",
    ))

    if price_index <= thresholds.severe_overpriced_above:
        recommendations.append(ActionableRecommendation(
            priority=3,
            action="Create urgency with flash sale or limited stock",
            reasoning=[
                "Time-limited flash sales can overcome price resistance on an overpriced listing.",
                f"Scarcity drives faster purchase decisions, converting {audience} quickly.",
                f"{opinion.overall_sentiment.value} customer sentiment can be leveraged during urgency events.",
            ],
            expected_impact="Faster decisions, reduced comparison shopping",
            confidence=Confidence.HIGH,
            category=Category.URGENCY,
            rule="OVERPRICED_URGENCY",
        ))

    return recommendations


def _market_aligned_recommendations(
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
    thresholds: PricingThresholds,
) -> list[ActionableRecommendation]:
    complaints = feedback.opinion.common_complaints[:2]
    concerns = ", ".join(complaints) if complaints else "the most frequent customer questions"

    return [
        ActionableRecommendation(
            priority=1,
            action="Hold current price - focus on conversion optimization",
            reasoning=[
                f"Price index {metrics.price_index:.1f} is in the optimal range "
                f"({thresholds.aligned_floor:.0f}-{thresholds.overpriced_above:.0f}).",
                "Focus on non-price factors to drive sales.",
            ],
            expected_impact="Maintain margin while improving visibility",
            confidence=zone.confidence,
            category=Category.MARKETING,
            rule="ALIGNED_HOLD_OPTIMIZE",
        ),
        ActionableRecommendation(
            priority=2,
            action="Improve product listing quality and visibility",
            reasoning=[
                "Better images and descriptions improve conversion.",
                f"Address concerns: {concerns}",
            ],
            expected_impact="Higher conversion without margin loss",
            confidence=Confidence.HIGH,
            category=Category.MARKETING,
            rule="ALIGNED_VISIBILITY",
        ),
    ]


def _underpriced_recommendations(
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
    thresholds: PricingThresholds,
) -> list[ActionableRecommendation]:
    recommendations = []
    opinion = feedback.opinion
    audience = opinion.target_audience.lower()
    gap = metrics.median_market_price - metrics.merchant_price
    below_pct = abs(round(100 - metrics.price_index))
    price_index = metrics.price_index

    if price_index < thresholds.severe_underpriced_below:
        low, high = _median_bracket(metrics, thresholds)
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Increase price to {_price_range_text(low, high)} (psychological pricing at market level)",
            reasoning=[
                f"Price Index of {price_index:.1f} means severe underpricing at {below_pct}% below market; "
                f"you're losing {format_price(round(gap))} per sale.",
                f"Psychological pricing at {format_price(low)} captures market value while reading as cheaper "
                f"than {format_price(_next_thousand(low))}.",
                f"Market median {format_price(metrics.median_market_price)} shows customers are willing to pay this.",
            ],
            expected_impact="Significantly improved margins while maintaining competitive position",
            confidence=Confidence.HIGH,
            category=Category.PRICING,
            rule="UNDERPRICED_SEVERE",
            target_price_range=(low, high),
        ))
    elif price_index < thresholds.moderate_underpriced_below:
        gap_to_close = gap * thresholds.underpriced_moderate_gap_share
        low = apply_psychological_pricing(
            metrics.merchant_price + gap_to_close * thresholds.underpriced_moderate_low_factor, thresholds
        )
        high = apply_psychological_pricing(
            metrics.merchant_price + gap_to_close * thresholds.underpriced_moderate_high_factor, thresholds
        )
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Increase price to {_price_range_text(low, high)}",
            reasoning=[
                f"Price {below_pct}% below market median leaves margin on the table.",
                f"Competitors charging {format_price(metrics.median_market_price)} show the market accepts a higher price.",
                f"Current rank {metrics.competitive_rank} of {metrics.total_retailers} leaves room for a strategic increase.",
            ],
            expected_impact="Improved margin while remaining competitive",
            confidence=zone.confidence,
            category=Category.PRICING,
            rule="UNDERPRICED_MODERATE",
            target_price_range=(low, high),
        ))
    else:
        increase = gap * thresholds.underpriced_minor_gap_share
        low = apply_psychological_pricing(metrics.merchant_price + increase, thresholds)
        high = apply_psychological_pricing(
            metrics.merchant_price + increase * thresholds.underpriced_minor_high_factor, thresholds
        )
        recommendations.append(ActionableRecommendation(
            priority=1,
            action=f"Increase price to {_price_range_text(low, high)}",
            reasoning=[
                f"Priced {below_pct}% below median; a minor adjustment optimizes revenue.",
                f"Market stability (spread: {metrics.price_spread_percent:.1f}%) supports an incremental increase.",
                "Keeps the competitive position while capturing available margin.",
            ],
            expected_impact="Optimized margin without affecting conversion",
            confidence=zone.confidence,
            category=Category.PRICING,
            rule="UNDERPRICED_MINOR",
            target_price_range=(low, high),
        ))

    if price_index >= thresholds.severe_underpriced_below:
        recommendations.append(ActionableRecommendation(
            priority=2,
            action="Maintain low price and focus on volume",
            reasoning=[
                f"Low price holds competitive rank {metrics.competitive_rank}, attracting price-sensitive {audience}.",
                f"{opinion.overall_sentiment.value} customer sentiment can be leveraged for high-volume sales.",
                "Builds loyalty among the target audience before competitors react.",
            ],
            expected_impact="Market share growth, customer acquisition",
            confidence=Confidence.MEDIUM,
            category=Category.MARKETING,
            rule="UNDERPRICED_VOLUME",
        ))

    return recommendations


_ZONE_BRANCHES = {
    Zone.OVERPRICED: _overpriced_recommendations,
    Zone.MARKET_ALIGNED: _market_aligned_recommendations,
    Zone.UNDERPRICED: _underpriced_recommendations,
}


# =============================================================================
# UNIVERSAL RULES
# =============================================================================

def _universal_recommendations(
    metrics: PricingMetrics,
    feedback: CustomerFeedbackResponse,
    thresholds: PricingThresholds,
) -> list[ActionableRecommendation]:
    recommendations = []
    opinion = feedback.opinion
    needs = feedback.needs
    audience = opinion.target_audience.lower()

    if needs.deal_breakers:
        deal_breaker = needs.deal_breakers[0].lower()
        missing_feature = (needs.missing_features[0] if needs.missing_features else DEFAULT_MISSING_FEATURE).lower()
        recommendations.append(ActionableRecommendation(
            priority=3,
            action="Address critical customer concerns",
            reasoning=[
                f"Customer feedback flags {deal_breaker} as a deal-breaker, alongside missing {missing_feature}.",
                f"Fixing it removes a significant purchase barrier for {audience}.",
                f"Communicating improved {missing_feature} reassures hesitant buyers.",
            ],
            expected_impact="Removes purchase barriers, improves satisfaction",
            confidence=Confidence.HIGH,
            category=Category.QUALITY,
            rule="UNIVERSAL_DEALBREAKERS",
        ))

    if opinion.strengths:
        top_strength = opinion.strengths[0].lower()
        second_strength = (opinion.strengths[1] if len(opinion.strengths) > 1 else DEFAULT_SECOND_STRENGTH).lower()
        recommendations.append(ActionableRecommendation(
            priority=4,
            action="Highlight product strengths in marketing",
            reasoning=[
                f"Customers highly praise {top_strength} and {second_strength}.",
                f"Listings and ads should lead with {top_strength}.",
                "Highlighting proven strengths answers purchase motivators and reduces price sensitivity.",
            ],
            expected_impact="Better positioning, reduced price sensitivity",
            confidence=Confidence.HIGH,
            category=Category.MARKETING,
            rule="UNIVERSAL_STRENGTHS",
        ))

    recommendations.append(ActionableRecommendation(
        priority=5,
        action="Offer superior service or faster delivery",
        reasoning=[
            f"Superior service builds on {opinion.overall_sentiment.value.lower()} customer sentiment and drives advocacy.",
            f"Faster delivery meets the expectations of {audience}.",
            "Value-added services differentiate the product beyond price.",
        ],
        expected_impact="Differentiation, repeat customers",
        confidence=Confidence.MEDIUM,
        category=Category.VALUE_ADD,
        rule="UNIVERSAL_SERVICE",
    ))

    if is_round_price(metrics.merchant_price, thresholds):
        suggested = apply_psychological_pricing(metrics.merchant_price, thresholds)
        difference = metrics.merchant_price - suggested
        recommendations.append(ActionableRecommendation(
            priority=6,
            action=f"Use psychological pricing: {format_price(suggested)} instead of {format_price(metrics.merchant_price)}",
            reasoning=[
                f"A charm ending at {format_price(suggested)} is read by its left digits, "
                f"a {format_price(abs(difference))} difference from {format_price(metrics.merchant_price)}.",
                f"Round numbers like {format_price(metrics.merchant_price)} trigger rational comparison; "
                f"charm pricing triggers emotional buying decisions.",
                f"Prices ending in 9 typically lift conversion by 8-12% for {audience}.",
            ],
            expected_impact="8-12% conversion improvement without margin loss",
            confidence=Confidence.HIGH,
            category=Category.PRICING,
            rule="PSYCHOLOGICAL_PRICING",
            psychological_price_suggestion=PsychologicalPriceSuggestion(
                current_price=metrics.merchant_price,
                suggested_price=suggested,
                savings_perception=difference,
            ),
        ))

    return recommendations


# =============================================================================
# ENTRY POINT
# =============================================================================

def generate_rule_based_recommendations(
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
    thresholds: PricingThresholds = DEFAULT_THRESHOLDS,
) -> list[ActionableRecommendation]:
    """
    Generate the raw recommendation batch.

    Zone-specific entries come first, universal entries after; order within
    the batch is rule order, not priority order.
    """
    branch = _ZONE_BRANCHES[zone.zone]
    recommendations = branch(metrics, zone, feedback, thresholds)
    recommendations.extend(_universal_recommendations(metrics, feedback, thresholds))
    return recommendations
