"""Product data models"""

import re
from pydantic import Field, field_validator
from typing import Any, List, Optional

from .base import CamelModel


MAX_PRODUCTS = 10
MAX_SNIPPET_LENGTH = 150

_NUMBER_PATTERN = re.compile(r'\d[\d\s.,\u00a0\u202f\']*')


def parse_price(value: Any) -> Optional[float]:
    """
    Coerce a model or provider price into a float.

    Accepts numbers and strings such as "$1,299.99", "1.299,00 €", "€50" or
    "1 299 MAD". A trailing separator followed by one or two digits is taken
    as the decimal separator. Returns None when no number can be found.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if not isinstance(value, str):
        return None

    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None

    digits = re.sub(r"[\s\u00a0\u202f']", "", match.group(0)).rstrip('.,')
    decimal_match = re.search(r'[.,](\d{1,2})$', digits)
    if decimal_match:
        integer_part = re.sub(r'[.,]', '', digits[:decimal_match.start()])
        number = f"{integer_part or '0'}.{decimal_match.group(1)}"
    else:
        number = re.sub(r'[.,]', '', digits)

    try:
        return float(number)
    except ValueError:
        return None


class Product(CamelModel):
    """One curated, purchasable product"""
    id: str
    name: str
    price: Optional[float] = None
    currency: str = "USD"
    url: str
    source: Optional[str] = None
    image_url: Optional[str] = None
    snippet: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name", "url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Optional[float]:
        return parse_price(v)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return "USD"
        return v.strip().upper()

    @field_validator("image_url", "source", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("snippet", mode="before")
    @classmethod
    def trim_snippet(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v[:MAX_SNIPPET_LENGTH] or None
        return v


class SearchResult(CamelModel):
    """Final payload of a search job"""
    query: str
    products: List[Product] = Field(default_factory=list, max_length=MAX_PRODUCTS)
    total_found: int = Field(default=0, ge=0)
    description: Optional[str] = None


class SearchCandidate(CamelModel):
    """A search provider result normalized across result shapes"""
    position: int
    title: str
    price: Optional[str] = None
    extracted_price: Optional[float] = None
    url: str
    thumbnail: Optional[str] = None
    snippet: Optional[str] = None
    source: Optional[str] = None


class SearchCandidates(CamelModel):
    """Normalized provider response handed to curation"""
    engine: str
    results: List[SearchCandidate] = Field(default_factory=list)
    total_found: int = 0
