"""Search services"""

from .countries import (
    COUNTRY_LANGUAGES,
    GOOGLE_SHOPPING_COUNTRIES,
    is_shopping_supported,
    language_for,
    normalize_country,
)
from .serp_client import SerpApiClient
from .product_search import ProductSearchService

__all__ = [
    "COUNTRY_LANGUAGES",
    "GOOGLE_SHOPPING_COUNTRIES",
    "is_shopping_supported",
    "language_for",
    "normalize_country",
    "SerpApiClient",
    "ProductSearchService",
]
