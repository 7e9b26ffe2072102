"""
LLM client for OpenAI integration.

Async wrapper around the OpenAI chat completions API with a mock provider for
offline runs. Provider, model and key come from ``kubera.core.config``.

Unlike a best-effort generator, this client never invents data on failure:
provider errors surface as ``LLMError`` and the caller decides whether to
retry or fall back.

Usage:
    async with LLMClient() as llm:
        text = await llm.generate(
            prompt,
            system_prompt=SYSTEM,
            json_mode=True,
            schema_name="price_search",
            temperature=0.1,
        )
"""

import json
import logging
import time
from typing import Optional, Sequence

import httpx
from openai import AsyncOpenAI

from kubera.core.config import settings

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the LLM provider cannot produce a response."""


class LLMClient:
    """Client for LLM generation. Supports OpenAI and mock modes."""

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.provider = (provider or settings.LLM_PROVIDER).lower().strip()
        self.api_key = (api_key or settings.OPENAI_API_KEY or "").strip()
        self.model = (model or settings.LLM_MODEL).strip()
        self.timeout_seconds = timeout_seconds or settings.LLM_TIMEOUT_SECONDS

        self._http_client: Optional[httpx.AsyncClient] = None
        self._client: Optional[AsyncOpenAI] = None

        logger.info("LLMClient initialized (provider=%s, model=%s, key present=%s)",
                    self.provider, self.model, bool(self.api_key))

        if self.provider not in ("openai", "mock"):
            raise LLMError(f"Unknown LLM provider: {self.provider}")

        if self.provider == "openai" and not self.api_key:
            logger.warning("⚠️  LLM_PROVIDER=openai but no API key found. Set OPENAI_API_KEY in .env")

    @property
    def is_mock(self) -> bool:
        return self.provider == "mock"

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._client = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise LLMError("OpenAI API key required. Set OPENAI_API_KEY env var.")
        if self._client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds, connect=5.0),
                follow_redirects=True,
            )
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                http_client=self._http_client,
                timeout=float(self.timeout_seconds),
                max_retries=0,
            )
        return self._client

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        schema_name: Optional[str] = None,
        temperature: float = 0.7,
        images: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Generate text using the configured LLM provider.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            json_mode: If True, request a JSON object response
            schema_name: Name of the expected payload schema (logging and mock data)
            temperature: Sampling temperature
            images: Optional image URLs attached to the user message

        Returns:
            Raw response text

        Raises:
            LLMError: on any provider failure or an empty response
        """
        logger.debug("LLM.generate called: provider=%s, schema=%s", self.provider, schema_name)

        if self.is_mock:
            return self._mock_generate(schema_name)

        client = self._get_client()

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if images:
            content = [{"type": "text", "text": prompt}]
            content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": prompt})

        kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("🚀 Calling OpenAI API (model=%s, schema=%s, prompt=%d chars)",
                    self.model, schema_name or "none", len(prompt))
        start_time = time.time()

        try:
            response = await client.chat.completions.create(**kwargs)
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error("❌ OpenAI API call failed after %.1fs: %s: %s", elapsed, type(e).__name__, e)
            raise LLMError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError("OpenAI returned empty response")

        logger.info("✅ OpenAI API success (%.2fs, %d chars)", time.time() - start_time, len(content))
        return content

    def _mock_generate(self, schema_name: Optional[str]) -> str:
        """
        Return placeholder responses for offline runs.
        Clearly marked as placeholders so the user knows no LLM was called.
        """
        if schema_name == "price_search":
            logger.info("Mock: Returning placeholder retailer listings")
            prices = [10499, 10999, 11499, 11999, 12499]
            return json.dumps({
                "product": "PLACEHOLDER product",
                "results": [
                    {
                        "sno": i,
                        "website": f"PLACEHOLDER Retailer {i}",
                        "price": f"₹{price:,}",
                        "description": "PLACEHOLDER: real listings appear when LLM_PROVIDER=openai",
                        "url": f"https://example.com/placeholder/{i}",
                    }
                    for i, price in enumerate(prices, start=1)
                ],
            })

        if schema_name == "customer_feedback":
            logger.info("Mock: Returning placeholder customer feedback")
            return json.dumps({
                "product": "PLACEHOLDER product",
                "marketAnalysis": {
                    "generalOpinion": {
                        "overallSentiment": "Mixed",
                        "rating": "PLACEHOLDER",
                        "strengths": ["PLACEHOLDER strength"],
                        "weaknesses": ["PLACEHOLDER weakness"],
                        "commonPraises": [],
                        "commonComplaints": ["PLACEHOLDER complaint"],
                        "targetAudience": "Target customers",
                    },
                    "customerNeeds": {
                        "mustHaveFeatures": [],
                        "desiredImprovements": [],
                        "priceSensitivity": "Medium",
                        "missingFeatures": [],
                        "dealBreakers": [],
                        "purchaseMotivators": [],
                    },
                },
                "actionableInsights": {
                    "toIncreaseOrders": [],
                    "priorityImprovements": [],
                    "marketingAngles": [],
                },
                "dataSource": "mock",
                "analysisDate": "",
            })

        logger.info("Mock: Returning empty JSON object")
        return "{}"
