"""Favorites services"""

from .manager import FavoritesManager

__all__ = ["FavoritesManager"]
