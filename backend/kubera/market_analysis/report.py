"""
Report assembly and presentation helpers.

Assembling packages metrics, zone, recommendations and festival context into
a MarketAnalysisResult. Everything computed here is formatting only: currency
strings, the "rank of total" string and the signed difference from median.

The print helpers render the merchant report for the CLI.

Usage:
    from kubera.market_analysis.report import assemble_market_analysis, print_market_report

    result = assemble_market_analysis(product, metrics, zone, recommendations, festival)
    print_market_report(result)
"""

from typing import Optional, Sequence

from .config import settings
from .models import (
    ActionableRecommendation,
    Category,
    Confidence,
    CoreMetrics,
    CustomerFeedbackResponse,
    FestivalContext,
    MarketAnalysisResult,
    MarketSnapshot,
    PricingMetrics,
    PricingStatus,
    PricingZone,
    Zone,
)


STATUS_TEXT = {
    Zone.OVERPRICED: "⚠️ Overpriced compared to market",
    Zone.UNDERPRICED: "💰 Underpriced - opportunity zone",
    Zone.MARKET_ALIGNED: "✅ Market-aligned pricing",
}

CATEGORY_GLYPHS = {
    Category.PRICING: "💰",
    Category.VALUE_ADD: "🎁",
    Category.MARKETING: "📢",
    Category.URGENCY: "⏰",
    Category.QUALITY: "⭐",
    Category.FESTIVAL: "🎉",
}

DISPLAY_CONFIDENCES = (Confidence.HIGH, Confidence.MEDIUM)


# =============================================================================
# FORMATTING
# =============================================================================

def format_price(value: float, symbol: Optional[str] = None) -> str:
    """Currency string with thousands separators: 10999 -> "₹10,999", 10999.5 -> "₹10,999.5"."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    amount = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{symbol}{amount}"


def format_rank(rank: int, total: int) -> str:
    return f"{rank} of {total}"


def price_difference_percent(metrics: PricingMetrics) -> float:
    """Signed difference of the merchant price from the median, in percent."""
    return (metrics.merchant_price - metrics.median_market_price) / metrics.median_market_price * 100


def format_signed_percent(value: float) -> str:
    return f"{value:+.1f}%"


# =============================================================================
# ASSEMBLY
# =============================================================================

def assemble_market_analysis(
    product: str,
    metrics: PricingMetrics,
    zone: PricingZone,
    recommendations: Sequence[ActionableRecommendation],
    festival: Optional[FestivalContext] = None,
    enhanced: bool = False,
) -> MarketAnalysisResult:
    """Package one analysis into its final result. Festival context is kept only when active."""
    snapshot = MarketSnapshot(
        retailers_tracked=metrics.total_retailers - 1,
        lowest_market_price=format_price(metrics.min_market_price),
        highest_market_price=format_price(metrics.max_market_price),
        median_market_price=format_price(metrics.median_market_price),
        merchant_current_price=format_price(metrics.merchant_price),
    )
    core_metrics = CoreMetrics(
        price_spread_percent=metrics.price_spread_percent,
        price_index=metrics.price_index,
        position_percentile=metrics.position_percentile,
    )
    status = PricingStatus(
        status=STATUS_TEXT[zone.zone],
        price_index=round(metrics.price_index, 1),
        price_difference_percent=format_signed_percent(price_difference_percent(metrics)),
        competitive_rank=format_rank(metrics.competitive_rank, metrics.total_retailers),
        zone=zone,
    )

    return MarketAnalysisResult(
        product=product,
        market_snapshot=snapshot,
        core_metrics=core_metrics,
        pricing_status=status,
        recommendations=list(recommendations),
        festival_context=festival if festival is not None and festival.is_active_festival else None,
        enhanced=enhanced,
    )


# =============================================================================
# PRESENTATION
# =============================================================================

def select_display_recommendations(
    recommendations: Sequence[ActionableRecommendation],
    min_shown: Optional[int] = None,
    max_shown: Optional[int] = None,
) -> list[ActionableRecommendation]:
    """
    High/Medium confidence only, by ascending priority (stable), at most
    ``max_shown``. ``min_shown`` is a floor on the slice, never padding:
    fewer qualifying entries simply show fewer.
    """
    min_shown = settings.MIN_RECOMMENDATIONS_SHOWN if min_shown is None else min_shown
    max_shown = settings.MAX_RECOMMENDATIONS_SHOWN if max_shown is None else max_shown

    qualifying = [r for r in recommendations if r.confidence in DISPLAY_CONFIDENCES]
    qualifying.sort(key=lambda r: r.priority)
    count = max(min_shown, min(max_shown, len(qualifying)))
    return qualifying[:count]


def describe_price_spread(spread_percent: float) -> str:
    if spread_percent < 10:
        return "Excellent (< 10% = Stable Market)"
    if spread_percent <= 20:
        return "Good (10% - 20% = Moderate Variation)"
    return "Volatile (> 20% = High Variation)"


def describe_price_index(price_index: float) -> str:
    if price_index < 95:
        return "Aggressive (< 95 = Underpriced)"
    if price_index <= 105:
        return "Optimal (95 - 105 = Market Aligned)"
    if price_index <= 108:
        return "Moderate (105 - 108 = Slightly Above)"
    return "High (> 108 = Overpriced)"


def describe_rank(rank: int, total: int) -> str:
    if rank == 1:
        return "CHEAPEST"
    if rank == total:
        return "MOST EXPENSIVE"
    return format_rank(rank, total)


def build_summary_line(result: MarketAnalysisResult) -> str:
    """One-line takeaway from the zone and the top recommendation."""
    if not result.recommendations:
        return "No recommendations available"

    top = result.recommendations[0]
    difference = abs(float(result.pricing_status.price_difference_percent.rstrip("%")))
    zone = result.pricing_status.zone.zone

    if zone == Zone.OVERPRICED:
        return f"Price {difference:.1f}% above market → {top.action}"
    if zone == Zone.UNDERPRICED:
        return f"Price {difference:.1f}% below market → {top.action}"
    return f"Price aligned → Focus on {top.category.value.lower()} optimization"


def print_feedback_digest(feedback: CustomerFeedbackResponse) -> None:
    """Print the customer feedback digest shown before pricing."""
    opinion = feedback.opinion
    needs = feedback.needs

    print("\n" + "-" * 60)
    print("💬 CUSTOMER FEEDBACK ANALYSIS")
    print("-" * 60)
    print(f"\n   📈 Overall Sentiment: {opinion.overall_sentiment.value}")
    print(f"   ⭐ Average Rating: {opinion.rating}")
    print(f"   🎯 Target Audience: {opinion.target_audience}")

    sections = [
        ("✅ Product Strengths", opinion.strengths, 4),
        ("⚠️ Product Weaknesses", opinion.weaknesses, 3),
        ("💡 Purchase Motivators", needs.purchase_motivators, 3),
        ("🚫 Deal Breakers", needs.deal_breakers, 3),
    ]
    for title, items, limit in sections:
        if items:
            print(f"\n   {title}:")
            for item in items[:limit]:
                print(f"      • {item}")

    print(f"\n   💰 Price Sensitivity: {needs.price_sensitivity}")
    print("-" * 60 + "\n")


def print_market_report(result: MarketAnalysisResult) -> None:
    """Print the merchant pricing report."""
    snapshot = result.market_snapshot
    status = result.pricing_status
    zone = status.zone.zone

    print("\n" + "=" * 60)
    print("📊 PRICING & SALES RECOMMENDATION")
    print("=" * 60)
    print(f"\n📦 Product: {result.product}")

    print("\n🔍 MARKET OVERVIEW\n")
    print(f"   Retailers Tracked: {snapshot.retailers_tracked}")
    print(f"   Price Range: {snapshot.lowest_market_price} – {snapshot.highest_market_price}")
    print(f"   Market Median: {snapshot.median_market_price}")
    print(f"   Your Price: {snapshot.merchant_current_price}")

    print("\n📈 CORE METRICS\n")
    spread = result.core_metrics.price_spread_percent
    print(f"   Price Spread: {spread:.1f}% - {describe_price_spread(spread)}")
    print(f"   Price Index: {status.price_index:.1f} - {describe_price_index(status.price_index)}")
    print(f"   Market Read Confidence: {status.zone.confidence.value}")

    print("\n⚠️ CURRENT SITUATION\n")
    if zone == Zone.OVERPRICED:
        print("   📈 Priced HIGHER than market")
    elif zone == Zone.UNDERPRICED:
        print("   📉 Priced LOWER than market")
    else:
        print("   ✅ Priced COMPETITIVELY")

    difference = float(status.price_difference_percent.rstrip("%"))
    if difference > 0:
        print(f"   {difference:.1f}% above median")
    elif difference < 0:
        print(f"   {abs(difference):.1f}% below median")
    else:
        print("   At the market median")

    rank, total = (int(part) for part in status.competitive_rank.split(" of "))
    print(f"   Rank: {describe_rank(rank, total)}")

    if result.festival_context is not None:
        print(f"\n🎉 {result.festival_context.festival_name} is active!")

    print("\n✅ RECOMMENDED ACTIONS\n")
    for index, rec in enumerate(select_display_recommendations(result.recommendations), start=1):
        glyph = CATEGORY_GLYPHS.get(rec.category, "📌")
        print(f"{glyph} Action {index}: {rec.action} ({rec.confidence.value} Confidence)")
        print(f"   Category: {rec.category.value}")
        print("   Why this works:")
        for reason in rec.reasoning:
            print(f"   • {reason}")
        print(f"   📈 Expected Impact: {rec.expected_impact}")
        print("")

    if not result.enhanced:
        print("   (Recommendations shown with rule-based wording)")

    print("=" * 60)
    print("💡 SUMMARY")
    print("=" * 60)
    print(f"\n   {build_summary_line(result)}")
    print(f"   Position: {zone.value}")
    print("\n" + "=" * 60 + "\n")
