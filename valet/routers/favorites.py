"""
Favorite product routes.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from valet.models import Favorite, FavoriteCreate, FavoriteList
from valet.services.favorites import FavoritesManager
from .deps import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/favorites", response_model=FavoriteList)
async def list_favorites(user_id: int = Depends(get_current_user_id)):
    try:
        manager = FavoritesManager()
        return FavoriteList(favorites=await manager.list_favorites(user_id))
    except Exception as e:
        logger.error(f"Failed to list favorites: {e}")
        raise HTTPException(status_code=500, detail="Impossible de récupérer les favoris")


@router.post("/favorites", response_model=Favorite, status_code=201)
async def save_favorite(
    favorite: FavoriteCreate,
    user_id: int = Depends(get_current_user_id)
):
    """Save a product as favorite, refreshing it if already saved."""
    try:
        manager = FavoritesManager()
        return await manager.save_favorite(user_id, favorite)
    except Exception as e:
        logger.error(f"Failed to save favorite: {e}")
        raise HTTPException(status_code=500, detail="Impossible d'enregistrer le favori")


@router.delete("/favorites/{favorite_id}", status_code=204)
async def delete_favorite(
    favorite_id: int,
    user_id: int = Depends(get_current_user_id)
):
    try:
        manager = FavoritesManager()
        deleted = await manager.delete_favorite(user_id, favorite_id)
    except Exception as e:
        logger.error(f"Failed to delete favorite {favorite_id}: {e}")
        raise HTTPException(status_code=500, detail="Impossible de supprimer le favori")

    if not deleted:
        raise HTTPException(status_code=404, detail="Favori introuvable")
