"""
Product search service - composes search, curation, sanitization and verification.
"""

import hashlib
import logging
from typing import Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from valet.db import get_redis
from valet.models import MAX_PRODUCTS, SearchCandidates, SearchResult
from valet.services.media import LinkVerifier, sanitize_products
from .countries import normalize_country
from .serp_client import SerpApiClient

logger = logging.getLogger(__name__)


class ProductSearchService:
    """Run the product search pipeline stages"""

    CACHE_TTL = 300  # 5 minutes

    def __init__(
        self,
        search_client: SerpApiClient,
        curator,
        verifier: Optional[LinkVerifier] = None,
        cache_enabled: bool = True,
        cache_ttl: int = CACHE_TTL
    ):
        self.search_client = search_client
        self.curator = curator
        self.verifier = verifier
        self.cache_enabled = cache_enabled
        self.cache_ttl = cache_ttl

    def validate_country(self, country: str) -> str:
        """
        Check that jobs can be run for a country.

        Returns:
            The normalized country code

        Raises:
            CountryNotSupportedError: If the country has no shopping support
        """
        self.search_client.select_engine(country, allow_web_fallback=False)
        return normalize_country(country)

    async def search(
        self,
        query: str,
        country: str,
        allow_web_fallback: bool = False
    ) -> SearchCandidates:
        """Search candidates, served from cache when available."""
        engine = self.search_client.select_engine(country, allow_web_fallback)

        cached = await self.check_cache(query, country, engine)
        if cached is not None:
            logger.info(f"Cache hit for '{query}' ({country}, {engine})")
            return cached

        candidates = await self.search_client.search(query, country, allow_web_fallback)
        if candidates.results:
            await self.cache_candidates(query, country, candidates)
        return candidates

    async def curate(
        self,
        query: str,
        candidates: SearchCandidates,
        country: str,
        request_id: Optional[str] = None
    ) -> SearchResult:
        """
        Curate candidates into a trusted product list.

        Curation output is sanitized, optionally verified over the network,
        then truncated to MAX_PRODUCTS.
        """
        output = await self.curator.curate(query, country, candidates, request_id=request_id)

        products = sanitize_products(output.products)
        if self.verifier is not None:
            products = await self.verifier.verify(products)

        return SearchResult(
            query=query,
            products=products[:MAX_PRODUCTS],
            total_found=candidates.total_found,
            description=output.description
        )

    async def run(self, query: str, country: str, allow_web_fallback: bool = True) -> SearchResult:
        """One-shot search used by the synchronous endpoint."""
        candidates = await self.search(query, country, allow_web_fallback)
        if not candidates.results:
            return SearchResult(query=query, products=[], total_found=0)
        return await self.curate(query, candidates, country)

    async def check_cache(self, query: str, country: str, engine: str) -> Optional[SearchCandidates]:
        """Return cached candidates or None."""
        if not self.cache_enabled:
            return None

        try:
            redis = get_redis()
            cached_data = await redis.get(self._get_cache_key(query, country, engine))
            if cached_data:
                return SearchCandidates.model_validate_json(cached_data)
            return None
        except (RuntimeError, RedisError, ValidationError) as e:
            logger.warning(f"Search cache read failed: {e}")
            return None

    async def cache_candidates(self, query: str, country: str, candidates: SearchCandidates):
        """Cache normalized candidates."""
        if not self.cache_enabled:
            return

        try:
            redis = get_redis()
            await redis.setex(
                self._get_cache_key(query, country, candidates.engine),
                self.cache_ttl,
                candidates.model_dump_json()
            )
        except (RuntimeError, RedisError) as e:
            logger.warning(f"Search cache write failed: {e}")

    async def close(self):
        await self.search_client.close()

    def _get_cache_key(self, query: str, country: str, engine: str) -> str:
        """Generate cache key from search parameters"""
        key_str = f"{query.strip().lower()}:{normalize_country(country)}:{engine}"
        hash_obj = hashlib.md5(key_str.encode())
        return f"search:{hash_obj.hexdigest()}"
