"""
Favorites manager - persistence of a user's saved products.
"""

import logging
from typing import List

from valet.models import Favorite, FavoriteCreate
from valet.db import get_pg_pool

logger = logging.getLogger(__name__)


class FavoritesManager:
    """Manage favorite products per user"""

    async def list_favorites(self, user_id: int) -> List[Favorite]:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM favorites
                WHERE user_id = $1
                ORDER BY created_at DESC
            """, user_id)

            return [self._row_to_favorite(row) for row in rows]

    async def save_favorite(self, user_id: int, favorite: FavoriteCreate) -> Favorite:
        """
        Save a product as favorite.

        Saving a product that is already a favorite refreshes its details.

        Args:
            user_id: Owner
            favorite: Product details

        Returns:
            Stored Favorite
        """
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO favorites (
                    user_id, product_id, name, price, currency,
                    url, image_url, snippet, source
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                ON CONFLICT (user_id, product_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    price = EXCLUDED.price,
                    currency = EXCLUDED.currency,
                    url = EXCLUDED.url,
                    image_url = EXCLUDED.image_url,
                    snippet = EXCLUDED.snippet,
                    source = EXCLUDED.source,
                    updated_at = NOW()
                RETURNING *
            """,
                user_id,
                favorite.product_id,
                favorite.name,
                favorite.price,
                favorite.currency,
                favorite.url,
                favorite.image_url,
                favorite.snippet,
                favorite.source
            )

        logger.info(f"Saved favorite {favorite.product_id} for user {user_id}")
        return self._row_to_favorite(row)

    async def delete_favorite(self, user_id: int, favorite_id: int) -> bool:
        """Delete a favorite; False if it does not exist for this user."""
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            result = await conn.execute("""
                DELETE FROM favorites WHERE id = $1 AND user_id = $2
            """, favorite_id, user_id)

        return result != "DELETE 0"

    @staticmethod
    def _row_to_favorite(row) -> Favorite:
        return Favorite(
            id=row['id'],
            user_id=row['user_id'],
            product_id=row['product_id'],
            name=row['name'],
            price=row['price'],
            currency=row['currency'],
            url=row['url'],
            image_url=row['image_url'],
            snippet=row['snippet'],
            source=row['source'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )
