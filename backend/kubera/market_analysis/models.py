"""
Data models for market analysis.

Two families of models live here:

- Pydantic models for the payloads returned by the LLM collaborators
  (price discovery and customer feedback). These are parsed from JSON and use
  the collaborators' camelCase keys as aliases.
- Frozen dataclasses for everything the pricing engine computes (metrics,
  zone, festival context, recommendations, the final result). They are built
  once per analysis and never mutated.
"""

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class Zone(str, Enum):
    """Pricing zone of the merchant price relative to the market median."""
    OVERPRICED = "Overpriced"
    MARKET_ALIGNED = "Market-Aligned"
    UNDERPRICED = "Underpriced"


class Severity(str, Enum):
    """How far from aligned the zone is."""
    CRITICAL = "Critical"
    MODERATE = "Moderate"
    OPTIMAL = "Optimal"


class Confidence(str, Enum):
    """Shared High/Medium/Low vocabulary for market reads and recommendations."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Category(str, Enum):
    """Recommendation category."""
    PRICING = "Pricing"
    VALUE_ADD = "Value-Add"
    MARKETING = "Marketing"
    URGENCY = "Urgency"
    QUALITY = "Quality"
    FESTIVAL = "Festival"


class Sentiment(str, Enum):
    """Overall customer sentiment reported by the feedback collaborator."""
    POSITIVE = "Positive"
    MIXED = "Mixed"
    NEGATIVE = "Negative"


# Fallback phrases used when feedback lists are shorter than a rule needs
DEFAULT_MISSING_FEATURE = "ergonomic improvements"
DEFAULT_SECOND_STRENGTH = "quality construction"
DEFAULT_TARGET_AUDIENCE = "target customers"


# =============================================================================
# COLLABORATOR PAYLOADS (PYDANTIC)
# =============================================================================

class PriceResult(BaseModel):
    """A single retailer listing returned by price discovery."""

    model_config = ConfigDict(populate_by_name=True)

    sno: Optional[int] = None
    website: str
    price: Union[str, float]  # e.g. "₹10,999"
    description: Optional[str] = ""
    url: Optional[str] = ""


class WebSearchResponse(BaseModel):
    """Price discovery result for one product."""

    product: str
    results: list[PriceResult] = Field(default_factory=list)


class CustomerOpinion(BaseModel):
    """General opinion section of the feedback summary."""

    model_config = ConfigDict(populate_by_name=True)

    overall_sentiment: Sentiment = Field(default=Sentiment.MIXED, alias="overallSentiment")
    rating: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    common_praises: list[str] = Field(default_factory=list, alias="commonPraises")
    common_complaints: list[str] = Field(default_factory=list, alias="commonComplaints")
    target_audience: str = Field(default=DEFAULT_TARGET_AUDIENCE, alias="targetAudience")
    competitor_comparison: Optional[str] = Field(default=None, alias="competitorComparison")


class CustomerNeeds(BaseModel):
    """Customer needs section of the feedback summary."""

    model_config = ConfigDict(populate_by_name=True)

    must_have_features: list[str] = Field(default_factory=list, alias="mustHaveFeatures")
    desired_improvements: list[str] = Field(default_factory=list, alias="desiredImprovements")
    price_sensitivity: str = Field(default="", alias="priceSensitivity")
    missing_features: list[str] = Field(default_factory=list, alias="missingFeatures")
    deal_breakers: list[str] = Field(default_factory=list, alias="dealBreakers")
    purchase_motivators: list[str] = Field(default_factory=list, alias="purchaseMotivators")


class MarketFeedback(BaseModel):
    """The ``marketAnalysis`` block: opinion plus needs."""

    model_config = ConfigDict(populate_by_name=True)

    general_opinion: CustomerOpinion = Field(alias="generalOpinion")
    customer_needs: CustomerNeeds = Field(alias="customerNeeds")


class ActionableInsights(BaseModel):
    """Free-form insights; displayed only, never used by the rules."""

    model_config = ConfigDict(populate_by_name=True)

    to_increase_orders: list[str] = Field(default_factory=list, alias="toIncreaseOrders")
    priority_improvements: list[str] = Field(default_factory=list, alias="priorityImprovements")
    marketing_angles: list[str] = Field(default_factory=list, alias="marketingAngles")


class CustomerFeedbackResponse(BaseModel):
    """Customer feedback summary for one product."""

    model_config = ConfigDict(populate_by_name=True)

    product: str
    market_analysis: MarketFeedback = Field(alias="marketAnalysis")
    actionable_insights: ActionableInsights = Field(
        default_factory=ActionableInsights, alias="actionableInsights"
    )
    data_source: str = Field(default="", alias="dataSource")
    analysis_date: str = Field(default="", alias="analysisDate")

    @property
    def opinion(self) -> CustomerOpinion:
        return self.market_analysis.general_opinion

    @property
    def needs(self) -> CustomerNeeds:
        return self.market_analysis.customer_needs


# =============================================================================
# ENGINE RESULTS (DATACLASSES)
# =============================================================================

@dataclass(frozen=True)
class PricingMetrics:
    """Deterministic pricing metrics for one merchant price."""
    min_market_price: float
    max_market_price: float
    median_market_price: float
    average_market_price: float
    price_spread_percent: float  # (max - min) / median * 100
    merchant_price: float
    price_index: float  # merchant / median * 100
    competitive_rank: int  # 1 = cheapest
    total_retailers: int  # competitors + merchant
    position_percentile: float  # rank / total * 100


@dataclass(frozen=True)
class PricingZone:
    """Zone, severity and market-read confidence."""
    zone: Zone
    severity: Severity
    confidence: Confidence

    def to_dict(self) -> dict:
        return {
            "zone": self.zone.value,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
        }


@dataclass(frozen=True)
class FestivalContext:
    """Promotional context for the analysis date."""
    is_active_festival: bool
    festival_name: Optional[str] = None
    festival_strategy: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"isActiveFestival": self.is_active_festival}
        if self.is_active_festival:
            data["festivalName"] = self.festival_name
            data["festivalStrategy"] = self.festival_strategy
        return data


@dataclass(frozen=True)
class PsychologicalPriceSuggestion:
    """Side payload of the charm-pricing recommendation."""
    current_price: float
    suggested_price: int
    savings_perception: float

    def to_dict(self) -> dict:
        return {
            "currentPrice": self.current_price,
            "suggestedPrice": self.suggested_price,
            "savingsPerception": self.savings_perception,
        }


@dataclass(frozen=True)
class ActionableRecommendation:
    """A single recommended action."""
    priority: int
    action: str
    reasoning: list[str]
    expected_impact: str
    confidence: Confidence
    category: Category
    rule: str
    target_price_range: Optional[tuple[int, int]] = None
    psychological_price_suggestion: Optional[PsychologicalPriceSuggestion] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "priority": self.priority,
            "action": self.action,
            "category": self.category.value,
            "confidence": self.confidence.value,
            "rule": self.rule,
            "reasoning": list(self.reasoning),
            "expectedImpact": self.expected_impact,
        }
        if self.target_price_range is not None:
            data["targetPriceRange"] = list(self.target_price_range)
        if self.psychological_price_suggestion is not None:
            data["psychologicalPriceSuggestion"] = self.psychological_price_suggestion.to_dict()
        return data


@dataclass(frozen=True)
class MarketSnapshot:
    """Human-formatted market prices."""
    retailers_tracked: int
    lowest_market_price: str
    highest_market_price: str
    median_market_price: str
    merchant_current_price: str


@dataclass(frozen=True)
class CoreMetrics:
    """Subset of PricingMetrics shown to the merchant."""
    price_spread_percent: float
    price_index: float
    position_percentile: float


@dataclass(frozen=True)
class PricingStatus:
    """Status line, index, difference from median, rank and zone."""
    status: str
    price_index: float
    price_difference_percent: str
    competitive_rank: str  # "3 of 6"
    zone: PricingZone


@dataclass(frozen=True)
class MarketAnalysisResult:
    """Final result of one product analysis."""
    product: str
    market_snapshot: MarketSnapshot
    core_metrics: CoreMetrics
    pricing_status: PricingStatus
    recommendations: list[ActionableRecommendation] = field(default_factory=list)
    festival_context: Optional[FestivalContext] = None
    enhanced: bool = False

    def to_dict(self) -> dict:
        """Convert to the camelCase JSON shape consumed by the presentation layer."""
        data: dict[str, Any] = {
            "product": self.product,
            "marketSnapshot": {
                "retailersTracked": self.market_snapshot.retailers_tracked,
                "lowestMarketPrice": self.market_snapshot.lowest_market_price,
                "highestMarketPrice": self.market_snapshot.highest_market_price,
                "medianMarketPrice": self.market_snapshot.median_market_price,
                "merchantCurrentPrice": self.market_snapshot.merchant_current_price,
            },
            "coreMetrics": {
                "priceSpreadPercent": self.core_metrics.price_spread_percent,
                "priceIndex": self.core_metrics.price_index,
                "positionPercentile": self.core_metrics.position_percentile,
            },
            "pricingStatus": {
                "status": self.pricing_status.status,
                "priceIndex": self.pricing_status.price_index,
                "priceDifferencePercent": self.pricing_status.price_difference_percent,
                "competitiveRank": self.pricing_status.competitive_rank,
                "zone": self.pricing_status.zone.to_dict(),
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
            "enhanced": self.enhanced,
        }
        if self.festival_context is not None:
            data["festivalContext"] = self.festival_context.to_dict()
        return data

    def save_outputs(self, path: str) -> None:
        """Write the result JSON to ``path``, creating parent directories."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
