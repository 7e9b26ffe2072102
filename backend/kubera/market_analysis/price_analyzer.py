"""
Price analysis for merchant positioning.

Calculates deterministic pricing indicators from competitor prices:
- Min / max / median / average market price
- Price spread (market volatility) and price index (merchant position)
- Competitive rank and position percentile
- Pricing zone, severity and confidence of the market read
- Psychological (charm) price targets

Formulas:
    Price Spread %  = (max - min) / median * 100
    Price Index     = merchant / median * 100
    Rank            = 1-based position of merchant among all prices, ascending
    Percentile      = rank / total retailers * 100

Medians and averages use competitor prices only; the merchant price enters
the rank and the retailer count.

Usage:
    from kubera.market_analysis.price_analyzer import (
        calculate_pricing_metrics,
        determine_pricing_zone,
    )

    metrics = calculate_pricing_metrics([10499, 10999, 11999], 11000)
    zone = determine_pricing_zone(metrics)
"""

import math
from numbers import Real
from typing import Optional, Sequence

import numpy as np

from .config import DEFAULT_THRESHOLDS, PricingThresholds
from .models import Confidence, PricingMetrics, PricingZone, Severity, Zone


class InvalidMarketDataError(ValueError):
    """Raised when market data cannot produce meaningful metrics."""


def _validate_price(value, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidMarketDataError(f"{label} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidMarketDataError(f"{label} must be finite, got {value!r}")
    return value


def calculate_pricing_metrics(
    prices: Sequence[float],
    merchant_price: float,
) -> PricingMetrics:
    """
    Calculate core pricing metrics from competitor prices.

    Raises InvalidMarketDataError for an empty competitor list, non-numeric
    or non-positive competitor prices, or a non-numeric merchant price.
    """
    if not prices:
        raise InvalidMarketDataError("At least one competitor price is required")

    competitor_prices = [_validate_price(p, "Competitor price") for p in prices]
    if any(p <= 0 for p in competitor_prices):
        raise InvalidMarketDataError("Competitor prices must be positive")
    merchant_price = _validate_price(merchant_price, "Merchant price")

    sorted_prices = sorted(competitor_prices)
    min_price = sorted_prices[0]
    max_price = sorted_prices[-1]
    median = float(np.median(sorted_prices))
    average = float(np.mean(competitor_prices))

    price_spread = (max_price - min_price) / median * 100
    price_index = merchant_price / median * 100

    # Stable ascending sort; ties resolve to the first equal position
    all_prices = sorted(competitor_prices + [merchant_price])
    rank = all_prices.index(merchant_price) + 1
    position_percentile = rank / len(all_prices) * 100

    metrics = PricingMetrics(
        min_market_price=min_price,
        max_market_price=max_price,
        median_market_price=median,
        average_market_price=average,
        price_spread_percent=price_spread,
        merchant_price=merchant_price,
        price_index=price_index,
        competitive_rank=rank,
        total_retailers=len(all_prices),
        position_percentile=position_percentile,
    )

    if not all(math.isfinite(v) for v in (price_spread, price_index, average)):
        raise InvalidMarketDataError(f"Degenerate pricing metrics: {metrics}")

    return metrics


def determine_market_confidence(
    metrics: PricingMetrics,
    thresholds: PricingThresholds = DEFAULT_THRESHOLDS,
) -> Confidence:
    """
    Confidence of the market read, from sample size and spread only.

    High:   >= 6 retailers and spread < 10%
    Low:    <= 3 retailers or spread > 20%
    Medium: everything else
    """
    if (
        metrics.total_retailers >= thresholds.high_confidence_min_retailers
        and metrics.price_spread_percent < thresholds.high_confidence_max_spread
    ):
        return Confidence.HIGH
    if (
        metrics.total_retailers <= thresholds.low_confidence_max_retailers
        or metrics.price_spread_percent > thresholds.low_confidence_min_spread
    ):
        return Confidence.LOW
    return Confidence.MEDIUM


def determine_pricing_zone(
    metrics: PricingMetrics,
    thresholds: PricingThresholds = DEFAULT_THRESHOLDS,
) -> PricingZone:
    """
    Classify the merchant price into a pricing zone.

    index > 108        -> Overpriced (Critical above 130)
    95 <= index <= 108 -> Market-Aligned (Optimal)
    index < 95         -> Underpriced (Critical below 50)
    """
    confidence = determine_market_confidence(metrics, thresholds)
    price_index = metrics.price_index

    if price_index > thresholds.overpriced_above:
        severity = (
            Severity.CRITICAL
            if price_index > thresholds.severe_overpriced_above
            else Severity.MODERATE
        )
        return PricingZone(zone=Zone.OVERPRICED, severity=severity, confidence=confidence)

    if price_index >= thresholds.aligned_floor:
        return PricingZone(zone=Zone.MARKET_ALIGNED, severity=Severity.OPTIMAL, confidence=confidence)

    severity = (
        Severity.CRITICAL
        if price_index < thresholds.severe_underpriced_below
        else Severity.MODERATE
    )
    return PricingZone(zone=Zone.UNDERPRICED, severity=severity, confidence=confidence)


def apply_psychological_pricing(
    price: float,
    thresholds: Optional[PricingThresholds] = None,
) -> int:
    """
    Convert a raw price target into a charm price.

    Rounds down to the nearest thousand and adds 999, so 10500 -> 10999 and
    11000 -> 11999. Applying it to its own output is a no-op.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    price = _validate_price(price, "Price")
    step = thresholds.charm_step
    return int(math.floor(price / step)) * step + thresholds.charm_ending


def is_round_price(
    price: float,
    thresholds: PricingThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """True when the price is an exact multiple of 1000 or 100."""
    return any(price % divisor == 0 for divisor in thresholds.round_price_divisors)
