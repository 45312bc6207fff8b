"""Tests for the product search service."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from valet.error_handling import CountryNotSupportedError
from valet.models import Product, SearchCandidate, SearchCandidates
from valet.services.curation import CurationOutput
from valet.services.search import ProductSearchService, SerpApiClient


CANDIDATES = SearchCandidates(
    engine="google_shopping",
    results=[SearchCandidate(position=1, title="Casque", url="https://www.fnac.com/casque")],
    total_found=37,
)


def _products(count: int):
    return [
        Product(id=str(i), name=f"P{i}", url=f"https://www.shop{i}.com/p", image_url=f"https://img.shop{i}.com/p.jpg")
        for i in range(count)
    ]


def _service(outputs=None, verifier=None, cache_enabled=False):
    client = SerpApiClient(api_key="test-key")
    client.search = AsyncMock(return_value=CANDIDATES)
    curator = MagicMock()
    curator.curate = AsyncMock(return_value=CurationOutput(products=outputs or [], description="Casques"))
    return ProductSearchService(client, curator, verifier=verifier, cache_enabled=cache_enabled)


def test_validate_country():
    service = _service()

    assert service.validate_country(" FR ") == "fr"
    with pytest.raises(CountryNotSupportedError):
        service.validate_country("ma")


def test_curate_truncates_and_keeps_total_found():
    service = _service(_products(14))

    result = asyncio.run(service.curate("casque", CANDIDATES, "fr"))

    assert len(result.products) == 10
    assert result.total_found == 37
    assert result.query == "casque"
    assert result.description == "Casques"


def test_curate_runs_verifier_after_sanitizer():
    products = _products(3)
    cross_site = Product(id="x", name="X", url="https://a.com/p", image_url="https://b.net/p.jpg")
    verifier = MagicMock()
    verifier.verify = AsyncMock(side_effect=lambda items: items[1:])
    service = _service(products + [cross_site], verifier=verifier)

    result = asyncio.run(service.curate("casque", CANDIDATES, "fr"))

    verified_input = verifier.verify.call_args.args[0]
    assert [p.id for p in verified_input] == ["0", "1", "2"]
    assert [p.id for p in result.products] == ["1", "2"]


def test_run_skips_curation_without_candidates():
    service = _service()
    service.search_client.search = AsyncMock(return_value=SearchCandidates(engine="google", results=[], total_found=0))

    result = asyncio.run(service.run("objet", "ma"))

    assert result.products == []
    assert result.total_found == 0
    service.curator.curate.assert_not_called()


def test_cache_hit_skips_provider():
    redis = MagicMock()
    redis.get = AsyncMock(return_value=CANDIDATES.model_dump_json())
    service = _service(cache_enabled=True)

    with patch("valet.services.search.product_search.get_redis", return_value=redis):
        candidates = asyncio.run(service.search("casque", "fr"))

    assert candidates == CANDIDATES
    service.search_client.search.assert_not_called()


def test_cache_miss_stores_candidates():
    redis = MagicMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock()
    service = _service(cache_enabled=True)

    with patch("valet.services.search.product_search.get_redis", return_value=redis):
        asyncio.run(service.search("casque", "fr"))

    key, ttl, payload = redis.setex.call_args.args
    assert key.startswith("search:")
    assert ttl == 300
    assert SearchCandidates.model_validate_json(payload) == CANDIDATES


def test_cache_key_normalizes_query_and_country():
    service = _service()

    assert service._get_cache_key(" Casque ", "FR", "google_shopping") == \
        service._get_cache_key("casque", "fr", "google_shopping")
    assert service._get_cache_key("casque", "fr", "google") != \
        service._get_cache_key("casque", "fr", "google_shopping")


def test_cache_failures_are_not_fatal():
    redis = MagicMock()
    redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
    redis.setex = AsyncMock(side_effect=RedisConnectionError("down"))
    service = _service(cache_enabled=True)

    with patch("valet.services.search.product_search.get_redis", return_value=redis):
        candidates = asyncio.run(service.search("casque", "fr"))

    assert candidates == CANDIDATES


def test_uninitialized_cache_is_a_miss():
    service = _service(cache_enabled=True)

    with patch("valet.services.search.product_search.get_redis", side_effect=RuntimeError("Redis not initialized")):
        candidates = asyncio.run(service.search("casque", "fr"))

    assert candidates == CANDIDATES
