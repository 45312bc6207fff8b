"""Price alert services"""

from .manager import AlertsManager, objective_columns

__all__ = ["AlertsManager", "objective_columns"]
