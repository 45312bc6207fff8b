"""
Alerts manager - persistence of price alerts.

An alert watches a query for one price objective. The objective is stored
flattened into typed columns.
"""

import logging
from typing import List, Optional

from valet.models import (
    Alert,
    AlertCreate,
    PriceBelowObjective,
    PriceDropObjective,
    PriceRangeObjective,
)
from valet.db import get_pg_pool

logger = logging.getLogger(__name__)


def objective_columns(alert: AlertCreate) -> dict:
    """Flatten an alert objective into its table columns."""
    objective = alert.objective
    columns = {
        "objective_type": objective.type,
        "target_price": None,
        "min_price": None,
        "max_price": None,
        "drop_percent": None,
    }

    if isinstance(objective, PriceBelowObjective):
        columns["target_price"] = objective.target_price
    elif isinstance(objective, PriceRangeObjective):
        columns["min_price"] = objective.min_price
        columns["max_price"] = objective.max_price
    elif isinstance(objective, PriceDropObjective):
        columns["drop_percent"] = objective.drop_percent

    return columns


class AlertsManager:
    """Manage price alerts per user"""

    async def list_alerts(self, user_id: int, active_only: bool = False) -> List[Alert]:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            if active_only:
                rows = await conn.fetch("""
                    SELECT * FROM alerts
                    WHERE user_id = $1 AND is_active
                    ORDER BY created_at DESC
                """, user_id)
            else:
                rows = await conn.fetch("""
                    SELECT * FROM alerts
                    WHERE user_id = $1
                    ORDER BY created_at DESC
                """, user_id)

            return [self._row_to_alert(row) for row in rows]

    async def create_alert(self, user_id: int, alert: AlertCreate) -> Alert:
        columns = objective_columns(alert)

        pool = get_pg_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO alerts (
                    user_id, job_id, query, country, objective_type,
                    target_price, min_price, max_price, drop_percent
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING *
            """,
                user_id,
                alert.job_id,
                alert.query,
                alert.country,
                columns["objective_type"],
                columns["target_price"],
                columns["min_price"],
                columns["max_price"],
                columns["drop_percent"]
            )

        logger.info(f"Created {columns['objective_type']} alert for user {user_id}: '{alert.query}'")
        return self._row_to_alert(row)

    async def set_active(self, user_id: int, alert_id: int, is_active: bool) -> Optional[Alert]:
        """Pause or resume an alert; None if it does not exist for this user."""
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("""
                UPDATE alerts
                SET is_active = $3, updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                RETURNING *
            """, alert_id, user_id, is_active)

            return self._row_to_alert(row) if row else None

    async def delete_alert(self, user_id: int, alert_id: int) -> bool:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            result = await conn.execute("""
                DELETE FROM alerts WHERE id = $1 AND user_id = $2
            """, alert_id, user_id)

        return result != "DELETE 0"

    @staticmethod
    def _row_to_alert(row) -> Alert:
        return Alert(
            id=row['id'],
            user_id=row['user_id'],
            job_id=row['job_id'],
            query=row['query'],
            country=row['country'],
            objective_type=row['objective_type'],
            target_price=row['target_price'],
            min_price=row['min_price'],
            max_price=row['max_price'],
            drop_percent=row['drop_percent'],
            is_active=row['is_active'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )
