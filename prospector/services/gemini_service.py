"""Gemini service for business discovery and prospect scoring."""

import json
import logging
import math
import time
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from ..config import DEFAULT_GEMINI_MODEL
from ..models.prospects import AIInsight, BusinessData, Location, SearchResult
from ..prompts.templates import (
    ANALYSIS_SCHEMA,
    ANALYST_PROMPT,
    FORMAT_PROMPT,
    SEARCH_PROMPT,
)

logger = logging.getLogger(__name__)


# Returned whenever analysis cannot produce a usable answer
FALLBACK_INSIGHT = AIInsight(
    score=0,
    analysis_summary="AI analysis unavailable at this moment.",
    suggested_offer="Manual review recommended."
)


class GeminiServiceError(Exception):
    """Raised when a Gemini request fails."""


def clean_json_string(text: Optional[str], default: str = "[]") -> str:
    """
    Strip Markdown code fences from a JSON response.

    Gemini sometimes wraps JSON in ```json ... ``` despite a JSON mime type.

    Args:
        text: Raw model response
        default: Returned when the response is empty

    Returns:
        Text ready for json.loads
    """
    if not text:
        return default
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    else:
        return cleaned
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _as_number(value: Any) -> float:
    """Return value if it is a finite real number, else 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # ints too large for a float
        return 0
    return value if finite else 0


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


class GeminiService:
    """Service wrapper for the Gemini API via the google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        client: Optional[genai.Client] = None
    ):
        """
        Initialize Gemini service.

        Args:
            api_key: Gemini API key
            model: Model identifier used for every request
            client: Pre-built client (tests inject a fake here)
        """
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ValueError("Gemini API key is required")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _generate(
        self,
        prompt: str,
        config: Optional[types.GenerateContentConfig] = None
    ) -> str:
        """
        Make a single generate_content call.

        Args:
            prompt: Prompt text
            config: Tools / response format for this request

        Returns:
            Response text ("" if the model returned none)
        """
        logger.debug("[Gemini] Calling %s: %s...", self.model, prompt[:100])
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config
            )
        except Exception as e:
            # Sanitize error message to avoid exposing API keys
            error_msg = str(e).replace(self.api_key, "***API_KEY***") if self.api_key else str(e)
            raise GeminiServiceError(f"Gemini API error: {error_msg}") from e

        text = response.text or ""
        logger.debug("[Gemini] Got response: %d chars", len(text))
        return text

    def search_businesses(self, query: str, location_name: str) -> List[SearchResult]:
        """
        Find businesses matching a query near a location.

        Runs a Maps-grounded lookup, then asks the model to re-express the
        grounded text as a JSON array. Never raises: any failure yields [].

        Args:
            query: Business type, e.g. "Dentist"
            location_name: Free-text place, e.g. "Austin, TX"

        Returns:
            Search results with fresh ids and defaulted fields
        """
        try:
            grounded_text = self._generate(
                SEARCH_PROMPT.format(query=query, location_name=location_name),
                types.GenerateContentConfig(
                    tools=[types.Tool(google_maps=types.GoogleMaps())]
                )
            )
            if not grounded_text:
                logger.info("[Gemini] Grounded search returned no text for %r", query)
                return []

            json_text = self._generate(
                FORMAT_PROMPT.format(grounded_text=grounded_text, location_name=location_name),
                types.GenerateContentConfig(response_mime_type="application/json")
            )
        except Exception as e:
            logger.error("[Gemini] Search failed: %s", e)
            return []

        try:
            parsed = json.loads(clean_json_string(json_text, default="[]"))
        except (ValueError, RecursionError) as e:
            logger.error("[Gemini] JSON parse error during search: %s", e)
            return []

        if not isinstance(parsed, list):
            logger.warning("[Gemini] Search response was not a JSON array")
            return []

        try:
            return self._to_search_results(parsed)
        except ValueError as e:
            logger.error("[Gemini] Could not build search results: %s", e)
            return []

    @staticmethod
    def _to_search_results(items: List[Any]) -> List[SearchResult]:
        """Assign ids and default missing fields."""
        stamp = int(time.time() * 1000)
        results = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                item = {}
            results.append(SearchResult(
                id=f"search-{stamp}-{index}",
                business_data=BusinessData(
                    name=_as_text(item.get("name")) or "Unknown Business",
                    address=_as_text(item.get("address")) or "Unknown Address",
                    rating=_as_number(item.get("rating")),
                    user_rating_count=int(_as_number(item.get("userRatingCount"))),
                    phone=_as_text(item.get("phone")),
                    website=_as_text(item.get("website")),
                    google_maps_uri=_as_text(item.get("googleMapsUri")),
                ),
                location=Location(
                    lat=_as_number(item.get("lat")),
                    lng=_as_number(item.get("lng")),
                )
            ))
        return results

    def analyze_prospect(self, business: BusinessData) -> AIInsight:
        """
        Score a business as a sales prospect.

        Never raises: request failures and malformed responses return
        FALLBACK_INSIGHT.

        Args:
            business: Business to analyze

        Returns:
            AIInsight with score, summary and offer
        """
        prompt = ANALYST_PROMPT.format(
            name=business.name,
            rating=business.rating,
            user_rating_count=business.user_rating_count,
            website=business.website or "No website",
            address=business.address
        )

        try:
            text = self._generate(
                prompt,
                types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ANALYSIS_SCHEMA
                )
            )
            result = json.loads(clean_json_string(text, default="{}"))
        except Exception as e:
            logger.error("[Gemini] Analysis failed for %s: %s", business.name, e)
            return FALLBACK_INSIGHT.model_copy()

        if not isinstance(result, dict):
            logger.warning("[Gemini] Analysis response was not a JSON object")
            return FALLBACK_INSIGHT.model_copy()

        try:
            return self._to_insight(result)
        except ValueError as e:
            logger.error("[Gemini] Could not build insight for %s: %s", business.name, e)
            return FALLBACK_INSIGHT.model_copy()

    @staticmethod
    def _to_insight(result: Dict[str, Any]) -> AIInsight:
        score = int(_as_number(result.get("score")))
        return AIInsight(
            score=max(0, min(100, score)),
            analysis_summary=_as_text(result.get("analysis_summary")) or "Analysis incomplete.",
            suggested_offer=_as_text(result.get("suggested_offer")) or "Check business details manually."
        )
