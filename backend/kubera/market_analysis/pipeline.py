"""
Market Analysis Pipeline - Master Orchestrator

End-to-end pricing analysis for one product:
1. Price discovery (LLM, retried)
2. Customer feedback analysis (LLM, retried)
3. Listing cleaning and competitor prices
4. Pricing metrics, zone and festival context
5. Rule-based recommendations (+ festival promotion)
6. Wording enhancement (LLM, falls back to rule-based wording)
7. Report assembly

Steps 1-2 and 3-7 are exposed separately so a caller can show the market data
before asking for the merchant price.

Usage:
    from kubera.llm.client import LLMClient
    from kubera.market_analysis.pipeline import MarketAnalysisPipeline

    async with LLMClient() as llm:
        pipeline = MarketAnalysisPipeline(llm)
        result = await pipeline.analyze("Noise ColorFit Pro 5", merchant_price=4999)

    print(result.pricing_status.status)
    result.save_outputs("./output/analysis.json")
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import pandas as pd

from kubera.llm.client import LLMClient

from .config import DEFAULT_THRESHOLDS, PricingThresholds, settings
from .data_cleaner import build_listings_df, competitor_prices
from .enhancer import Fallback, enhance_recommendations
from .festivals import build_festival_recommendation, check_festival_context
from .models import CustomerFeedbackResponse, MarketAnalysisResult, WebSearchResponse
from .price_analyzer import calculate_pricing_metrics, determine_pricing_zone
from .providers import analyze_customer_feedback, search_product_prices
from .report import assemble_market_analysis
from .strategic_analyzer import generate_rule_based_recommendations

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# RETRY
# =============================================================================

async def with_retry(
    operation: Callable[[], Awaitable[T]],
    name: str,
    max_retries: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> T:
    """
    Await ``operation`` up to ``max_retries`` times with a fixed delay.

    The last error is re-raised after the final attempt.
    """
    max_retries = settings.MAX_RETRIES if max_retries is None else max_retries
    delay_seconds = settings.RETRY_DELAY_SECONDS if delay_seconds is None else delay_seconds
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries:
                logger.error("❌ %s failed after %d attempts: %s", name, attempt, e)
                raise
            logger.warning("⚠️  %s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                           name, attempt, max_retries, e, delay_seconds)
            await asyncio.sleep(delay_seconds)


# =============================================================================
# MARKET DATA
# =============================================================================

@dataclass
class MarketData:
    """Collaborator output for one product, before the merchant price is known."""
    product: str
    search: WebSearchResponse
    feedback: CustomerFeedbackResponse
    listings_df: pd.DataFrame


# =============================================================================
# MAIN PIPELINE
# =============================================================================

class MarketAnalysisPipeline:
    """End-to-end pricing strategy pipeline."""

    def __init__(
        self,
        llm: LLMClient,
        thresholds: PricingThresholds = DEFAULT_THRESHOLDS,
    ):
        self.llm = llm
        self.thresholds = thresholds

    async def fetch_market_data(
        self,
        product: str,
        images: Optional[Sequence[str]] = None,
    ) -> MarketData:
        """Run price discovery and feedback analysis, sequentially, each with retry."""
        logger.info("🔍 Searching product prices across retailers for %s", product)
        search = await with_retry(
            lambda: search_product_prices(self.llm, product, images=images),
            "Price search",
        )

        logger.info("💬 Analyzing customer feedback for %s", product)
        feedback = await with_retry(
            lambda: analyze_customer_feedback(self.llm, product),
            "Customer feedback analysis",
        )

        listings_df = build_listings_df(search.results)
        logger.info("Cleaned listings: %d of %d usable", len(listings_df), len(search.results))

        return MarketData(
            product=search.product or product,
            search=search,
            feedback=feedback,
            listings_df=listings_df,
        )

    async def analyze_market(
        self,
        market: MarketData,
        merchant_price: float,
        today: Optional[date] = None,
        enhance: Optional[bool] = None,
    ) -> MarketAnalysisResult:
        """
        Price the merchant against the market.

        Raises EmptyMarketError when no competitor price survived cleaning and
        InvalidMarketDataError for unusable prices. Enhancement failures never
        raise; the result's ``enhanced`` flag tells which wording was used.
        """
        today = today or date.today()
        prices = competitor_prices(market.listings_df)

        metrics = calculate_pricing_metrics(prices, merchant_price)
        zone = determine_pricing_zone(metrics, self.thresholds)
        festival = check_festival_context(today)
        logger.info("Price index %.1f -> %s (%s, %s confidence)",
                    metrics.price_index, zone.zone.value, zone.severity.value, zone.confidence.value)

        recommendations = generate_rule_based_recommendations(
            metrics, zone, market.feedback, self.thresholds
        )
        festival_rec = build_festival_recommendation(festival, zone)
        if festival_rec is not None:
            recommendations.append(festival_rec)

        outcome = await enhance_recommendations(
            self.llm,
            recommendations,
            metrics,
            zone,
            market.feedback,
            festival,
            enabled=enhance,
        )
        if isinstance(outcome, Fallback):
            logger.warning("Using rule-based recommendation wording: %s", outcome.reason)

        return assemble_market_analysis(
            product=market.product,
            metrics=metrics,
            zone=zone,
            recommendations=outcome.recommendations,
            festival=festival,
            enhanced=not isinstance(outcome, Fallback),
        )

    async def analyze(
        self,
        product: str,
        merchant_price: float,
        images: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
        enhance: Optional[bool] = None,
    ) -> MarketAnalysisResult:
        """Run the complete analysis for a known merchant price."""
        market = await self.fetch_market_data(product, images=images)
        return await self.analyze_market(market, merchant_price, today=today, enhance=enhance)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

async def run_analysis(
    product: str,
    merchant_price: float,
    output_path: Optional[str] = None,
    **kwargs,
) -> MarketAnalysisResult:
    """
    Run analysis with minimal setup.

    Args:
        product: Product name
        merchant_price: Merchant's current price
        output_path: JSON file to save the result to (optional)
        **kwargs: Passed to MarketAnalysisPipeline.analyze (images, today, enhance)
    """
    async with LLMClient() as llm:
        pipeline = MarketAnalysisPipeline(llm)
        result = await pipeline.analyze(product, merchant_price, **kwargs)

    if output_path:
        result.save_outputs(output_path)
        logger.info("✓ Saved result to %s", output_path)

    return result
