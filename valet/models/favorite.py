"""Favorite product data models"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class FavoriteCreate(CamelModel):
    """Model for saving a product as favorite"""
    product_id: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    currency: str = Field(default="USD", max_length=8)
    url: str
    image_url: Optional[str] = None
    snippet: Optional[str] = None
    source: Optional[str] = Field(default=None, max_length=128)

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must be an http(s) URL")
        return v


class Favorite(FavoriteCreate):
    """Complete favorite model"""
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime


class FavoriteList(CamelModel):
    favorites: List[Favorite] = Field(default_factory=list)
