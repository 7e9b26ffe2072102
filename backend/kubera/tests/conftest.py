"""Shared fixtures for market analysis tests."""
import copy
import json

import pytest

from kubera.llm.client import LLMError
from kubera.market_analysis.config import settings as analysis_settings
from kubera.market_analysis.models import CustomerFeedbackResponse, PricingMetrics


FEEDBACK_PAYLOAD = {
    "product": "Noise ColorFit Pro 5",
    "marketAnalysis": {
        "generalOpinion": {
            "overallSentiment": "Positive",
            "rating": "4.1/5",
            "strengths": ["AMOLED display", "Battery life", "Build quality"],
            "weaknesses": ["Inaccurate SpO2"],
            "commonPraises": ["Bright screen"],
            "commonComplaints": ["Strap quality", "App sync issues", "Heart rate accuracy"],
            "targetAudience": "Fitness Enthusiasts",
        },
        "customerNeeds": {
            "mustHaveFeatures": ["GPS"],
            "desiredImprovements": ["Better app"],
            "priceSensitivity": "High",
            "missingFeatures": ["Built-in GPS"],
            "dealBreakers": ["Poor Bluetooth connectivity"],
            "purchaseMotivators": ["Price", "Display quality"],
        },
    },
    "actionableInsights": {
        "toIncreaseOrders": ["Bundle extra strap"],
        "priorityImprovements": ["Fix app sync"],
        "marketingAngles": ["Best display under 5k"],
    },
    "dataSource": "Amazon and Flipkart reviews",
    "analysisDate": "2026-10-01",
}

EMPTY_FEEDBACK_PAYLOAD = {
    "product": "Unknown gadget",
    "marketAnalysis": {"generalOpinion": {}, "customerNeeds": {}},
}


def price_search_payload(prices, product="Noise ColorFit Pro 5"):
    return {
        "product": product,
        "results": [
            {
                "sno": i,
                "website": f"Retailer {i}",
                "price": f"₹{price:,}",
                "description": "In stock",
                "url": f"https://retailer{i}.in/search?q=Noise+ColorFit",
            }
            for i, price in enumerate(prices, start=1)
        ],
    }


class FakeLLMClient:
    """Scripted stand-in for LLMClient: responses are queued per schema name."""

    is_mock = False

    def __init__(self, responses=None):
        self.responses = {name: list(items) for name, items in (responses or {}).items()}
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def generate(
        self,
        prompt,
        system_prompt=None,
        json_mode=False,
        schema_name=None,
        temperature=0.7,
        images=None,
    ):
        self.calls.append({
            "schema_name": schema_name,
            "prompt": prompt,
            "temperature": temperature,
            "images": images,
        })
        queue = self.responses.get(schema_name)
        if not queue:
            raise LLMError(f"No scripted response for {schema_name}")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)

    def calls_for(self, schema_name):
        return [c for c in self.calls if c["schema_name"] == schema_name]


def make_metrics(
    price_index=100.0,
    total_retailers=5,
    spread=15.0,
    median=10999.0,
    rank=3,
):
    """PricingMetrics with an exact price index, for boundary tests."""
    return PricingMetrics(
        min_market_price=median * 0.9,
        max_market_price=median * 1.1,
        median_market_price=median,
        average_market_price=median,
        price_spread_percent=spread,
        merchant_price=median * price_index / 100,
        price_index=price_index,
        competitive_rank=rank,
        total_retailers=total_retailers,
        position_percentile=rank / total_retailers * 100,
    )


@pytest.fixture
def feedback_payload():
    return copy.deepcopy(FEEDBACK_PAYLOAD)


@pytest.fixture
def feedback():
    return CustomerFeedbackResponse.model_validate(FEEDBACK_PAYLOAD)


@pytest.fixture
def empty_feedback():
    return CustomerFeedbackResponse.model_validate(EMPTY_FEEDBACK_PAYLOAD)


@pytest.fixture
def fake_llm_factory():
    return FakeLLMClient


@pytest.fixture
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(analysis_settings, "RETRY_DELAY_SECONDS", 0.0)


@pytest.fixture
def metrics_factory():
    return make_metrics


@pytest.fixture
def search_payload_factory():
    return price_search_payload
