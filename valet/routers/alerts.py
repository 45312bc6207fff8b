"""
Price alert routes.
"""

import asyncpg
import logging
from fastapi import APIRouter, Depends, HTTPException

from valet.models import Alert, AlertCreate, AlertList, AlertUpdate
from valet.services.alerts import AlertsManager
from .deps import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/alerts", response_model=AlertList)
async def list_alerts(
    active_only: bool = False,
    user_id: int = Depends(get_current_user_id)
):
    try:
        manager = AlertsManager()
        return AlertList(alerts=await manager.list_alerts(user_id, active_only=active_only))
    except Exception as e:
        logger.error(f"Failed to list alerts: {e}")
        raise HTTPException(status_code=500, detail="Impossible de récupérer les alertes")


@router.post("/alerts", response_model=Alert, status_code=201)
async def create_alert(
    alert: AlertCreate,
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a price alert.

    The objective is one of price_below (targetPrice), price_range
    (minPrice, maxPrice) or price_drop_percent (dropPercent).
    """
    try:
        manager = AlertsManager()
        return await manager.create_alert(user_id, alert)
    except asyncpg.ForeignKeyViolationError:
        raise HTTPException(status_code=404, detail="Recherche associée introuvable")
    except Exception as e:
        logger.error(f"Failed to create alert: {e}")
        raise HTTPException(status_code=500, detail="Impossible de créer l'alerte")


@router.patch("/alerts/{alert_id}", response_model=Alert)
async def update_alert(
    alert_id: int,
    update: AlertUpdate,
    user_id: int = Depends(get_current_user_id)
):
    """Pause or resume an alert."""
    try:
        manager = AlertsManager()
        alert = await manager.set_active(user_id, alert_id, update.is_active)
    except Exception as e:
        logger.error(f"Failed to update alert {alert_id}: {e}")
        raise HTTPException(status_code=500, detail="Impossible de mettre à jour l'alerte")

    if alert is None:
        raise HTTPException(status_code=404, detail="Alerte introuvable")
    return alert


@router.delete("/alerts/{alert_id}", status_code=204)
async def delete_alert(
    alert_id: int,
    user_id: int = Depends(get_current_user_id)
):
    try:
        manager = AlertsManager()
        deleted = await manager.delete_alert(user_id, alert_id)
    except Exception as e:
        logger.error(f"Failed to delete alert {alert_id}: {e}")
        raise HTTPException(status_code=500, detail="Impossible de supprimer l'alerte")

    if not deleted:
        raise HTTPException(status_code=404, detail="Alerte introuvable")
