"""
Recommendation wording pass.

Asks the LLM to reword the rule-based batch. The outcome is an explicit
result value rather than an exception:

    Enhanced(recommendations)          LLM wording accepted
    Fallback(recommendations, reason)  raw batch, unchanged

Only ``action``, ``reasoning`` and ``expectedImpact`` are taken from the LLM,
position by position. Priority, category, confidence, rule, target range and
the psychological price payload always come from the raw batch. A response of
a different length is rejected as a whole; there is no partial merge.

Usage:
    outcome = await enhance_recommendations(llm, raw, metrics, zone, feedback, festival)
    if isinstance(outcome, Fallback):
        logger.warning("Using rule-based wording: %s", outcome.reason)
    recommendations = outcome.recommendations
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Union

from kubera.llm.client import LLMClient
from kubera.llm.json_guard import parse_json_response
from kubera.llm.prompts import build_enhancement_prompt

from .config import settings
from .models import (
    ActionableRecommendation,
    CustomerFeedbackResponse,
    FestivalContext,
    PricingMetrics,
    PricingZone,
)

logger = logging.getLogger(__name__)

SCHEMA_NAME = "enhanced_recommendations"


@dataclass(frozen=True)
class Enhanced:
    recommendations: list[ActionableRecommendation]


@dataclass(frozen=True)
class Fallback:
    recommendations: list[ActionableRecommendation]
    reason: str


EnhancementResult = Union[Enhanced, Fallback]


def _prompt_context(
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
) -> dict:
    opinion = feedback.opinion
    return {
        "zone": zone.zone.value,
        "severity": zone.severity.value,
        "price_index": metrics.price_index,
        "competitive_rank": metrics.competitive_rank,
        "total_retailers": metrics.total_retailers,
        "sentiment": opinion.overall_sentiment.value,
        "target_audience": opinion.target_audience,
        "strengths": opinion.strengths,
        "complaints": opinion.common_complaints,
        "motivators": feedback.needs.purchase_motivators,
    }


def merge_wording(
    raw: Sequence[ActionableRecommendation],
    enhanced_items: Sequence[dict],
) -> list[ActionableRecommendation]:
    """Take wording fields from ``enhanced_items``; everything else stays as generated."""
    if len(enhanced_items) != len(raw):
        raise ValueError(
            f"Enhanced batch has {len(enhanced_items)} items, expected {len(raw)}"
        )
    return [
        replace(
            rec,
            action=item["action"].strip(),
            reasoning=[reason.strip() for reason in item["reasoning"]],
            expected_impact=item["expectedImpact"].strip(),
        )
        for rec, item in zip(raw, enhanced_items)
    ]


async def enhance_recommendations(
    llm: LLMClient,
    raw: Sequence[ActionableRecommendation],
    metrics: PricingMetrics,
    zone: PricingZone,
    feedback: CustomerFeedbackResponse,
    festival: Optional[FestivalContext] = None,
    enabled: Optional[bool] = None,
) -> EnhancementResult:
    """Reword ``raw`` via the LLM. Never raises; failures come back as Fallback."""
    raw = list(raw)
    enabled = settings.ENHANCE_RECOMMENDATIONS if enabled is None else enabled

    if not enabled:
        return Fallback(raw, "enhancement disabled")
    if llm.is_mock:
        return Fallback(raw, "mock LLM provider")
    if not raw:
        return Fallback(raw, "no recommendations to enhance")

    festival_name = festival.festival_name if festival and festival.is_active_festival else None
    system_prompt, prompt = build_enhancement_prompt(
        [rec.to_dict() for rec in raw],
        _prompt_context(metrics, zone, feedback),
        festival_name=festival_name,
    )

    try:
        response = await llm.generate(
            prompt,
            system_prompt=system_prompt,
            json_mode=True,
            schema_name=SCHEMA_NAME,
            temperature=settings.ENHANCEMENT_TEMPERATURE,
        )
        items = parse_json_response(response, SCHEMA_NAME, unwrap_arrays=True)
        merged = merge_wording(raw, items)
    except Exception as e:
        logger.warning("⚠️  Recommendation enhancement failed, using rule-based wording: %s", e)
        return Fallback(raw, f"{type(e).__name__}: {e}")

    logger.info("Recommendation wording enhanced (%d items)", len(merged))
    return Enhanced(merged)
