"""
Data cleaning for retailer price listings.

Transforms the raw price discovery payload into a clean pandas DataFrame and
the competitor price list the pricing engine consumes. Handles messy LLM
output: currency symbols, thousands separators, price ranges, gibberish URLs.

Usage:
    from kubera.market_analysis.data_cleaner import build_listings_df, competitor_prices

    listings_df = build_listings_df(search_response.results)
    prices = competitor_prices(listings_df)
"""

import logging
import re
from typing import Any, Optional, Sequence

import pandas as pd

from .config import settings
from .models import PriceResult
from .price_analyzer import InvalidMarketDataError

logger = logging.getLogger(__name__)


LISTING_COLUMNS = [
    'sno', 'website', 'price_raw', 'price_numeric', 'description', 'url',
]

# A single character repeated 21+ times marks a hallucinated URL
REPEATED_CHAR_PATTERN = re.compile(r'(.)\1{20,}')


class EmptyMarketError(InvalidMarketDataError):
    """Raised when no usable competitor price survives cleaning."""


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clean_string_preserve_case(value: Any) -> Optional[str]:
    """Strip whitespace; empty and null-like values -> None."""
    if value is None or isinstance(value, (list, dict)):
        return None

    s = str(value).strip()
    if s.lower() in ("", "none", "null", "nan", "n/a", "na"):
        return None
    return s


def parse_price(value: Any) -> Optional[float]:
    """
    Parse a retailer price into a float.

    Handles:
        - "₹10,999" -> 10999.0
        - "Rs. 10,999.50" -> 10999.5
        - 10999 -> 10999.0
        - "₹10,999 - ₹12,999" -> 10999.0 (takes first number)
        - None, "N/A", "Out of stock" -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return float(value) if value == value else None

    if not isinstance(value, str):
        return None

    cleaned = re.sub(r'(?i)(rs\.?|inr|₹|,|\s)', '', value)
    if not cleaned:
        return None

    # Ranges like "10999-12999" take the first number
    match = re.match(r'\d+(\.\d+)?', cleaned)
    if not match:
        return None
    return float(match.group(0))


def is_plausible_url(url: str, max_length: Optional[int] = None) -> bool:
    """False for over-long URLs or URLs with a long run of one character."""
    max_length = max_length or settings.MAX_URL_LENGTH
    if len(url) > max_length:
        return False
    return not REPEATED_CHAR_PATTERN.search(url)


# =============================================================================
# LISTINGS
# =============================================================================

def filter_listings(
    results: Sequence[PriceResult],
    max_url_length: Optional[int] = None,
) -> list[PriceResult]:
    """Drop listings whose URL looks hallucinated, logging each drop."""
    max_url_length = max_url_length or settings.MAX_URL_LENGTH
    kept = []
    for result in results:
        url = result.url or ""
        if len(url) > max_url_length:
            logger.warning("Skipping result with long URL (%d chars) from %s",
                           len(url), result.website)
            continue
        if not is_plausible_url(url, max_url_length):
            logger.warning("Skipping result with invalid URL pattern from %s", result.website)
            continue
        kept.append(result)
    return kept


def build_listings_df(results: Sequence[PriceResult]) -> pd.DataFrame:
    """
    Build clean listings DataFrame.

    Output columns:
        sno, website, price_raw, price_numeric, description, url

    Rows without a website or a positive parseable price are dropped. Repeated
    listings are kept: every surviving row is one competitor price.
    """
    if not results:
        return pd.DataFrame(columns=LISTING_COLUMNS)

    rows = []
    for r in results:
        website = clean_string_preserve_case(r.website)
        if not website:
            continue

        price = parse_price(r.price)
        if price is None or price <= 0:
            logger.warning("Skipping %s: unparseable price %r", website, r.price)
            continue

        rows.append({
            'sno': r.sno,
            'website': website,
            'price_raw': str(r.price),
            'price_numeric': price,
            'description': clean_string_preserve_case(r.description),
            'url': r.url or None,
        })

    if not rows:
        return pd.DataFrame(columns=LISTING_COLUMNS)

    df = pd.DataFrame(rows, columns=LISTING_COLUMNS)
    return df.sort_values('price_numeric', kind='stable').reset_index(drop=True)


def competitor_prices(listings_df: pd.DataFrame) -> list[float]:
    """Competitor prices from a cleaned listings table; raises EmptyMarketError if none."""
    if listings_df.empty:
        raise EmptyMarketError("No competitor prices available after cleaning")
    return [float(p) for p in listings_df['price_numeric'].tolist()]
