"""
Market Analysis Module

Pricing strategy for e-commerce merchants:
- LLM-powered price discovery and customer feedback analysis
- Deterministic pricing metrics, zone classification and charm pricing
- Rule-based recommendations with an optional LLM wording pass
"""

from .models import (
    ActionableRecommendation,
    CustomerFeedbackResponse,
    FestivalContext,
    MarketAnalysisResult,
    PricingMetrics,
    PricingZone,
    WebSearchResponse,
)
from .config import DEFAULT_THRESHOLDS, PricingThresholds
from .price_analyzer import (
    InvalidMarketDataError,
    apply_psychological_pricing,
    calculate_pricing_metrics,
    determine_pricing_zone,
)
from .data_cleaner import EmptyMarketError
from .festivals import check_festival_context
from .strategic_analyzer import generate_rule_based_recommendations
from .enhancer import Enhanced, Fallback, enhance_recommendations
from .report import assemble_market_analysis
from .pipeline import MarketAnalysisPipeline, run_analysis, with_retry

__all__ = [
    # Models
    "ActionableRecommendation",
    "CustomerFeedbackResponse",
    "FestivalContext",
    "MarketAnalysisResult",
    "PricingMetrics",
    "PricingZone",
    "WebSearchResponse",
    # Configuration
    "DEFAULT_THRESHOLDS",
    "PricingThresholds",
    # Engine
    "calculate_pricing_metrics",
    "determine_pricing_zone",
    "apply_psychological_pricing",
    "check_festival_context",
    "generate_rule_based_recommendations",
    "enhance_recommendations",
    "Enhanced",
    "Fallback",
    "assemble_market_analysis",
    # Pipeline
    "MarketAnalysisPipeline",
    "run_analysis",
    "with_retry",
    # Errors
    "InvalidMarketDataError",
    "EmptyMarketError",
]
