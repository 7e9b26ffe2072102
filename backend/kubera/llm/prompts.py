"""
Prompt builders for the three LLM calls: price discovery, customer feedback
analysis and recommendation wording.

Each builder returns a ``(system_prompt, user_prompt)`` pair.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple


# -------------------------------------------------------------------
# Price discovery
# -------------------------------------------------------------------

PRICE_SEARCH_SYSTEM = """You are a helpful assistant that searches the web for product prices across multiple retailers.
1. Find the product price from as many different retailers as possible (e-commerce platforms, official brand stores, price comparison sites).
2. Extract the exact price in Indian Rupees (₹) from each website.
3. Include a brief description with key details (offers, variants, availability).
4. For each retailer give a concise search URL on its standard search endpoint
   (e.g. https://www.flipkart.com/search?q=Armour+Pro+Smartwatch).
   Keep URLs under 150 characters. Never generate long URLs with repeated characters.
5. Skip websites where no price is available.
6. Sort results by price (lowest to highest).
7. Return between 5 and {max_retailers} retailers.

Return ONLY valid JSON with this structure, no markdown:
{{
    "product": "product name",
    "results": [
        {{
            "sno": 1,
            "website": "Website Name",
            "price": "₹XX,XXX",
            "description": "Description of the product on that website (offers/details)",
            "url": "https://www.retailer.com/search?q=Product+Name"
        }}
    ]
}}"""

PRICE_SEARCH_IMAGE_NOTE = (
    "Use the attached image(s) to identify the EXACT product variant "
    "(brand, model, colour, size, storage) before searching."
)


def build_price_search_prompt(
    product_name: str,
    has_images: bool = False,
    max_retailers: int = 10,
) -> Tuple[str, str]:
    system = PRICE_SEARCH_SYSTEM.format(max_retailers=max_retailers)
    lines = [f'Find current prices for "{product_name}" across Indian retailers.']
    if has_images:
        lines.append(PRICE_SEARCH_IMAGE_NOTE)
    return system, "\n".join(lines)


# -------------------------------------------------------------------
# Customer feedback
# -------------------------------------------------------------------

CUSTOMER_FEEDBACK_SYSTEM = """You are a market research analyst specializing in product-specific customer feedback analysis.

PRODUCT TO ANALYZE: "{product_name}"
Analyze ONLY feedback about this product. If specific data is limited, say so in dataSource.

IGNORE issues common to all e-commerce (delivery, returns, customer service, website problems, seller fraud).
FOCUS ON product quality, features, design, durability, value for money and feature-wise competitor comparison.

Return ONLY valid JSON in this exact structure:
{{
  "product": "Product Name with variant",
  "marketAnalysis": {{
    "generalOpinion": {{
      "overallSentiment": "Positive|Mixed|Negative",
      "rating": "e.g. 4.2/5",
      "strengths": [],
      "weaknesses": [],
      "commonPraises": [],
      "commonComplaints": [],
      "targetAudience": "who the product suits best",
      "competitorComparison": "one sentence"
    }},
    "customerNeeds": {{
      "mustHaveFeatures": [],
      "desiredImprovements": [],
      "priceSensitivity": "High|Medium|Low with one-line explanation",
      "missingFeatures": [],
      "dealBreakers": [],
      "purchaseMotivators": []
    }}
  }},
  "actionableInsights": {{
    "toIncreaseOrders": [],
    "priorityImprovements": [],
    "marketingAngles": []
  }},
  "dataSource": "where the feedback came from",
  "analysisDate": "YYYY-MM-DD"
}}"""


def build_customer_feedback_prompt(product_name: str) -> Tuple[str, str]:
    system = CUSTOMER_FEEDBACK_SYSTEM.format(product_name=product_name)
    user = (
        f'Perform a customer feedback and market analysis for "{product_name}".\n\n'
        "I need:\n"
        "1. What customers THINK about this product (opinion, ratings, reviews)\n"
        "2. What customers NEED and EXPECT from it\n"
        "3. How to INCREASE ORDERS for it\n\n"
        "Use e-commerce reviews, forum and social feedback, expert reviews, "
        "feature requests and price-value perception."
    )
    return system, user


# -------------------------------------------------------------------
# Recommendation wording
# -------------------------------------------------------------------

ENHANCEMENT_SYSTEM = """You are a senior e-commerce pricing strategist.
You rewrite the wording of pricing recommendations. You never change the decisions.

RULES:
- Return exactly one output item per input item, in the same order.
- Keep every price and price range from the input action unchanged.
- All prices use psychological pricing (X999 format), e.g. ₹4,999 not ₹5,000.
- Each reasoning point is one specific sentence of 15-25 words.
- For rule "PSYCHOLOGICAL_PRICING", explain the effect with behavioral economics terms
  (anchoring, charm pricing, left-digit effect).
- Keep "action" under 60 characters where possible and "expectedImpact" under 50.

Return a valid JSON object {"recommendations": [...]} only. No markdown."""


def _top(items: List[str], n: int) -> str:
    return ", ".join(items[:n]) if items else "(none)"


def build_enhancement_prompt(
    raw_recommendations: List[Dict[str, Any]],
    context: Dict[str, Any],
    festival_name: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Build the wording prompt.

    ``context`` keys: zone, severity, price_index, competitive_rank,
    total_retailers, sentiment, target_audience, strengths, complaints,
    motivators.
    """
    festival_info = ""
    if festival_name:
        festival_info = (
            f"\n\n🎉 FESTIVAL ALERT: {festival_name} is currently active!\n"
            "- High-traffic period with increased buyer activity\n"
            "- Competitors are likely running aggressive promotions"
        )

    user = f"""Enhance these recommendations with concise, impactful reasoning.

CONTEXT:
- Pricing Zone: {context['zone']} ({context['severity']} severity)
- Price Index: {context['price_index']:.1f}
- Competitive Rank: {context['competitive_rank']} of {context['total_retailers']}
- Customer Sentiment: {context['sentiment']}
- Target Audience: {context['target_audience']}{festival_info}

CUSTOMER INSIGHTS:
- Strengths: {_top(context['strengths'], 3)}
- Concerns: {_top(context['complaints'], 3)}
- Motivators: {_top(context['motivators'], 2)}

INPUT RECOMMENDATIONS ({len(raw_recommendations)} items):
{json.dumps(raw_recommendations, indent=2, ensure_ascii=False)}

OUTPUT FORMAT:
{{"recommendations": [
  {{
    "priority": 1,
    "action": "Clear action statement",
    "category": "Pricing|Value-Add|Marketing|Urgency|Quality|Festival",
    "confidence": "High|Medium|Low",
    "reasoning": ["...", "...", "..."],
    "expectedImpact": "Concise measurable outcome"
  }}
]}}"""
    return ENHANCEMENT_SYSTEM, user
