"""
LLM-backed collaborators: price discovery and customer feedback analysis.

Both return validated pydantic payloads. Any provider or parsing failure is
raised as CollaboratorError naming the operation, so the pipeline's retry
wrapper can decide whether to try again.

Usage:
    async with LLMClient() as llm:
        prices = await search_product_prices(llm, "Noise ColorFit Pro 5")
        feedback = await analyze_customer_feedback(llm, "Noise ColorFit Pro 5")
"""

import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from kubera.llm.client import LLMClient, LLMError
from kubera.llm.json_guard import JSONGuardError, parse_json_response
from kubera.llm.prompts import build_customer_feedback_prompt, build_price_search_prompt

from .config import settings
from .data_cleaner import filter_listings
from .models import CustomerFeedbackResponse, WebSearchResponse

logger = logging.getLogger(__name__)


class CollaboratorError(RuntimeError):
    """Raised when price discovery or feedback analysis fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


async def search_product_prices(
    llm: LLMClient,
    product_name: str,
    images: Optional[Sequence[str]] = None,
) -> WebSearchResponse:
    """
    Find retailer listings for a product.

    Listings with hallucinated URLs are dropped. Zero listings from the model
    is logged and returned as-is; listings that were all dropped raise.
    """
    operation = "Price search"
    system_prompt, prompt = build_price_search_prompt(
        product_name,
        has_images=bool(images),
        max_retailers=settings.MAX_RETAILERS,
    )

    try:
        raw = await llm.generate(
            prompt,
            system_prompt=system_prompt,
            json_mode=True,
            schema_name="price_search",
            temperature=settings.PRICE_SEARCH_TEMPERATURE,
            images=images,
        )
        data = parse_json_response(raw, "price_search")
        response = WebSearchResponse.model_validate(data)
    except (LLMError, JSONGuardError, ValidationError) as e:
        raise CollaboratorError(operation, str(e)) from e

    if not response.results:
        logger.warning("No results found for %s", product_name)
        return response

    kept = filter_listings(response.results)
    if not kept:
        raise CollaboratorError(operation, "all results filtered out due to invalid URLs")

    logger.info("Found %d retailers for %s", len(kept), product_name)
    return response.model_copy(update={"results": kept[: settings.MAX_RETAILERS]})


async def analyze_customer_feedback(
    llm: LLMClient,
    product_name: str,
) -> CustomerFeedbackResponse:
    """Summarise what customers think and need for a product."""
    operation = "Customer feedback analysis"
    system_prompt, prompt = build_customer_feedback_prompt(product_name)

    try:
        raw = await llm.generate(
            prompt,
            system_prompt=system_prompt,
            json_mode=True,
            schema_name="customer_feedback",
            temperature=settings.FEEDBACK_TEMPERATURE,
        )
        data = parse_json_response(raw, "customer_feedback")
        return CustomerFeedbackResponse.model_validate(data)
    except (LLMError, JSONGuardError, ValidationError) as e:
        raise CollaboratorError(operation, str(e)) from e
