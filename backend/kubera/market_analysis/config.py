"""
Configuration for the market analysis module.

Two kinds of configuration live here:

- ``MarketAnalysisSettings``: runtime knobs read from the environment / .env
  (retries, enhancement toggle, display limits, LLM temperatures).
- ``PricingThresholds``: the rule table of the pricing strategy engine. Every
  breakpoint and gap share used by the zone classifier and the recommendation
  generator is declared once here so the table can be audited on its own.

Add these to your .env file to override the defaults:
    MAX_RETRIES=2
    RETRY_DELAY_SECONDS=2
    ENHANCE_RECOMMENDATIONS=true
"""

from dataclasses import dataclass

from pydantic_settings import BaseSettings


class MarketAnalysisSettings(BaseSettings):
    """Settings for the market analysis module."""

    # Collaborator retries (price discovery, feedback analysis)
    MAX_RETRIES: int = 2
    RETRY_DELAY_SECONDS: float = 2.0

    # Recommendation wording pass
    ENHANCE_RECOMMENDATIONS: bool = True

    # LLM sampling per call
    PRICE_SEARCH_TEMPERATURE: float = 0.1
    FEEDBACK_TEMPERATURE: float = 0.3
    ENHANCEMENT_TEMPERATURE: float = 0.6

    # Price discovery hygiene
    MAX_RETAILERS: int = 10
    MAX_URL_LENGTH: int = 200

    # Presentation
    CURRENCY_SYMBOL: str = "₹"
    MIN_RECOMMENDATIONS_SHOWN: int = 2
    MAX_RECOMMENDATIONS_SHOWN: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@dataclass(frozen=True)
class PricingThresholds:
    """
    Rule table for zone classification and recommendation tiers.

    Price index values are percentages of the competitor median (100 = median).
    Zone breakpoints and recommendation tiers are separate: the
    115 / 90 tiers only pick which recommendation template fires, they never
    change the zone or its severity.
    """

    # Zone breakpoints (price index)
    overpriced_above: float = 108.0         # index > 108 -> Overpriced
    aligned_floor: float = 95.0             # 95 <= index <= 108 -> Market-Aligned
    severe_overpriced_above: float = 130.0  # Overpriced + index > 130 -> Critical
    severe_underpriced_below: float = 50.0  # Underpriced + index < 50 -> Critical

    # Recommendation tiers (price index)
    moderate_overpriced_above: float = 115.0
    moderate_underpriced_below: float = 90.0

    # Market-read confidence
    high_confidence_min_retailers: int = 6
    high_confidence_max_spread: float = 10.0
    low_confidence_max_retailers: int = 3
    low_confidence_min_spread: float = 20.0

    # Overpriced gap closing
    overpriced_moderate_gap_share: float = 0.65
    overpriced_moderate_low_factor: float = 1.1
    overpriced_moderate_high_factor: float = 0.9
    overpriced_minor_gap_share: float = 0.6
    overpriced_minor_high_factor: float = 0.8

    # Underpriced gap closing
    underpriced_moderate_gap_share: float = 0.6
    underpriced_moderate_low_factor: float = 0.8
    underpriced_moderate_high_factor: float = 1.2
    underpriced_minor_gap_share: float = 0.5
    underpriced_minor_high_factor: float = 1.3

    # Charm pricing
    charm_step: int = 1000
    charm_ending: int = 999
    round_price_divisors: tuple[int, ...] = (1000, 100)


DEFAULT_THRESHOLDS = PricingThresholds()

settings = MarketAnalysisSettings()
