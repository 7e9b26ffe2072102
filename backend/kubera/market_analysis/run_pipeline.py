#!/usr/bin/env python3
"""
Run the market analysis pipeline.

Usage:
    cd backend
    python -m kubera.market_analysis.run_pipeline --product "Noise ColorFit Pro 5"

Or with all parameters:
    python -m kubera.market_analysis.run_pipeline \
        --product "Noise ColorFit Pro 5" \
        --price "₹4,999" \
        --image https://example.com/watch.jpg \
        --output ./pipeline_output/analysis.json

When --price is omitted the merchant price is asked for after the market data
is shown.
"""

import asyncio
import argparse
import json
import logging
import sys
from typing import Callable, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv("../.env")

from kubera.core.config import settings
from kubera.llm.client import LLMClient, LLMError
from kubera.market_analysis.data_cleaner import EmptyMarketError, competitor_prices, parse_price
from kubera.market_analysis.pipeline import MarketAnalysisPipeline
from kubera.market_analysis.price_analyzer import InvalidMarketDataError
from kubera.market_analysis.providers import CollaboratorError
from kubera.market_analysis.report import print_feedback_digest, print_market_report



# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULT_PRODUCT = "Noise ColorFit Pro 5 Smartwatch"

# =============================================================================


def parse_merchant_price(text: str) -> Optional[float]:
    """Positive price from user input ("₹4,999", "4999"), else None."""
    price = parse_price(text)
    if price is None or price <= 0:
        return None
    return price


def ask_for_price(input_fn: Callable[[str], str] = input) -> float:
    """Prompt until a positive price is entered."""
    while True:
        price = parse_merchant_price(input_fn("\nEnter your price (in Rs): "))
        if price is not None:
            return price
        print("Invalid price. Please enter a positive number (e.g., 30999)")


async def main(
    product: str,
    price: Optional[float] = None,
    images: Optional[list[str]] = None,
    output: Optional[str] = None,
    enhance: Optional[bool] = None,
) -> int:
    """Run the analysis pipeline. Returns the process exit code."""

    print("=" * 60)
    print("PRICING STRATEGY ANALYSIS")
    print("=" * 60)
    print(f"\nProduct: {product}")
    if images:
        print(f"Images: {len(images)}")
    print(f"LLM provider: {settings.LLM_PROVIDER}")
    print("\n" + "-" * 60)

    try:
        llm = LLMClient()
    except LLMError as e:
        print(f"\n❌ Cannot start LLM client: {e}")
        return 1

    async with llm:
        pipeline = MarketAnalysisPipeline(llm)

        try:
            market = await pipeline.fetch_market_data(product, images=images)
        except (CollaboratorError, LLMError) as e:
            print(f"\n❌ Failed to fetch market data: {e}")
            return 1

        print(f"✓ Found {len(market.listings_df)} retailers")
        print("\n" + "-" * 60)
        print("📊 PRICE SEARCH RESULTS (JSON)")
        print("-" * 60)
        print(json.dumps(market.search.model_dump(), indent=2, ensure_ascii=False))
        print_feedback_digest(market.feedback)

        try:
            competitor_prices(market.listings_df)
        except EmptyMarketError as e:
            print(f"\n❌ Cannot analyze market: {e}")
            return 1

        if price is None:
            merchant_price = await asyncio.to_thread(ask_for_price)
        else:
            merchant_price = price

        try:
            result = await pipeline.analyze_market(market, merchant_price, enhance=enhance)
        except InvalidMarketDataError as e:
            print(f"\n❌ Cannot analyze market: {e}")
            return 1

    print_market_report(result)

    if output:
        result.save_outputs(output)
        print(f"✓ Saved result to {output}")

    return 0


def _price_arg(value: str) -> float:
    price = parse_merchant_price(value)
    if price is None:
        raise argparse.ArgumentTypeError(f"invalid price: {value!r} (expected a positive number)")
    return price


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run pricing strategy analysis")
    parser.add_argument("--product", "-p", default=DEFAULT_PRODUCT, help="Product name")
    parser.add_argument("--price", type=_price_arg, default=None,
                        help="Your current price (asked interactively when omitted)")
    parser.add_argument("--image", action="append", dest="images", default=None,
                        help="Product image URL (repeatable)")
    parser.add_argument("--output", "-o", default=None, help="Write the result JSON to this file")
    parser.add_argument("--no-enhance", action="store_true",
                        help="Skip the LLM wording pass for recommendations")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    sys.exit(asyncio.run(main(
        product=args.product,
        price=args.price,
        images=args.images,
        output=args.output,
        enhance=False if args.no_enhance else None,
    )))
