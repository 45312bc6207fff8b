"""
SerpAPI client - Google Shopping and Google web search for product candidates.

Shopping listings and organic web results come back in different shapes;
both are normalized into SearchCandidate objects in provider order.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from valet.error_handling import CountryNotSupportedError, ErrorHandler, SearchProviderError
from valet.models import SearchCandidate, SearchCandidates
from .countries import GOOGLE_SHOPPING_COUNTRIES, is_shopping_supported, language_for, normalize_country

logger = logging.getLogger(__name__)


def _is_transient(error: BaseException) -> bool:
    """Transport errors and 5xx answers are worth a second attempt."""
    if isinstance(error, SearchProviderError):
        return error.status is None or error.status >= 500
    return True


class SerpApiClient:
    """
    SerpAPI search client.

    Countries with Google Shopping support are searched in shopping mode.
    Other countries are rejected unless the caller allows the general web
    search fallback.
    """

    SHOPPING_ENGINE = "google_shopping"
    WEB_ENGINE = "google"
    SHOPPING_RESULTS = 20
    WEB_RESULTS = 15
    WEB_QUERY_SUFFIX = "achat en ligne shop"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://serpapi.com/search.json",
        language: str = "fr",
        max_candidates: int = 15,
        timeout_seconds: float = 30.0,
        max_retries: int = 2
    ):
        if not api_key:
            raise ValueError("SerpAPI key not configured. Set SERP_API in .env")

        self.api_key = api_key
        self.base_url = base_url
        self.language = language
        self.max_candidates = max_candidates
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.error_handler = ErrorHandler(
            max_retries=max_retries,
            retry_on=(SearchProviderError, aiohttp.ClientError, asyncio.TimeoutError),
            should_retry=_is_transient
        )
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Explicitly close the session when done"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    def select_engine(self, country: str, allow_web_fallback: bool = False) -> str:
        """
        Pick the search engine for a country.

        Raises:
            CountryNotSupportedError: If the country has no shopping support
                and the web fallback is not allowed
        """
        if is_shopping_supported(country):
            return self.SHOPPING_ENGINE
        if allow_web_fallback:
            return self.WEB_ENGINE
        raise CountryNotSupportedError(normalize_country(country), GOOGLE_SHOPPING_COUNTRIES)

    def build_params(self, query: str, country: str, engine: str) -> Dict[str, Any]:
        """Build SerpAPI query parameters for an engine."""
        country = normalize_country(country)

        if engine == self.SHOPPING_ENGINE:
            return {
                "engine": engine,
                "q": query,
                "gl": country,
                "hl": language_for(country, self.language),
                "num": self.SHOPPING_RESULTS,
                "api_key": self.api_key,
            }

        return {
            "engine": engine,
            "q": f"{query} {self.WEB_QUERY_SUFFIX}",
            "gl": country,
            "hl": self.language,
            "cr": f"country{country.upper()}",
            "num": self.WEB_RESULTS,
            "api_key": self.api_key,
        }

    async def search(
        self,
        query: str,
        country: str,
        allow_web_fallback: bool = False
    ) -> SearchCandidates:
        """
        Search product candidates.

        Args:
            query: Free-text shopping query
            country: Country code
            allow_web_fallback: Use general web search for countries without
                shopping support instead of rejecting them

        Returns:
            Normalized candidates, truncated to max_candidates

        Raises:
            CountryNotSupportedError: Unsupported country without fallback
            SearchProviderError: Transport failure or error status from SerpAPI
        """
        engine = self.select_engine(country, allow_web_fallback)
        params = self.build_params(query, country, engine)

        logger.info(f"Searching '{query}' with {engine} engine for country: {normalize_country(country)}")

        try:
            data = await self.error_handler.retry_with_backoff(self._fetch, params)
        except aiohttp.ClientError as e:
            raise SearchProviderError(f"SerpAPI request failed: {e}") from e

        candidates = self.normalize_response(data, engine)
        logger.info(
            f"SerpAPI returned {candidates.total_found} results using {engine}, "
            f"keeping {len(candidates.results)}"
        )
        return candidates

    async def _fetch(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await self._ensure_session()

        async with self._session.get(self.base_url, params=params) as response:
            if response.status != 200:
                error_text = await response.text()
                raise SearchProviderError(
                    f"SerpAPI error: {response.status} - {error_text[:200]}",
                    status=response.status
                )
            return await response.json(content_type=None)

    def normalize_response(self, data: Dict[str, Any], engine: str) -> SearchCandidates:
        """
        Normalize a SerpAPI response body.

        A body carrying an ``error`` field (SerpAPI's "no results" answer) or
        no result list yields zero candidates.
        """
        if data.get("error"):
            logger.info(f"SerpAPI reported: {data['error']}")
            return SearchCandidates(engine=engine, results=[], total_found=0)

        key = "shopping_results" if engine == self.SHOPPING_ENGINE else "organic_results"
        raw_results = data.get(key) or []

        candidates: List[SearchCandidate] = []
        for index, item in enumerate(raw_results):
            candidate = self.normalize_result(item, index, engine)
            if candidate is not None:
                candidates.append(candidate)

        return SearchCandidates(
            engine=engine,
            results=candidates[:self.max_candidates],
            total_found=len(raw_results)
        )

    def normalize_result(
        self,
        item: Dict[str, Any],
        index: int,
        engine: str
    ) -> Optional[SearchCandidate]:
        """Normalize one shopping or organic result; None if unusable."""
        if not isinstance(item, dict):
            return None

        title = item.get("title")
        if engine == self.SHOPPING_ENGINE:
            url = item.get("product_link") or item.get("link")
            price = item.get("price")
            extracted_price = item.get("extracted_price")
            snippet = item.get("snippet")
            if not snippet and item.get("extensions"):
                snippet = ", ".join(str(e) for e in item["extensions"])
        else:
            url = item.get("link")
            detected = (
                item.get("rich_snippet", {}).get("top", {}).get("detected_extensions", {})
                if isinstance(item.get("rich_snippet"), dict) else {}
            )
            price = detected.get("price_raw") or (
                str(detected["price"]) if "price" in detected else None
            )
            extracted_price = detected.get("price")
            snippet = item.get("snippet")

        if not title or not url:
            return None

        return SearchCandidate(
            position=item.get("position") or index + 1,
            title=str(title),
            price=str(price) if price is not None else None,
            extracted_price=extracted_price if isinstance(extracted_price, (int, float)) else None,
            url=str(url),
            thumbnail=item.get("thumbnail"),
            snippet=snippet,
            source=item.get("source") or item.get("displayed_link"),
        )
