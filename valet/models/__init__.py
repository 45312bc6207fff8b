"""Data models for the Valet API"""

from .product import (
    MAX_PRODUCTS,
    Product,
    SearchCandidate,
    SearchCandidates,
    SearchResult,
    parse_price,
)
from .job import Job, JobCreate, JobCreated, JobList, JobStatus
from .favorite import Favorite, FavoriteCreate, FavoriteList
from .alert import (
    Alert,
    AlertCreate,
    AlertList,
    AlertObjectiveType,
    AlertUpdate,
    PriceBelowObjective,
    PriceDropObjective,
    PriceRangeObjective,
)

__all__ = [
    "MAX_PRODUCTS",
    "Product",
    "SearchCandidate",
    "SearchCandidates",
    "SearchResult",
    "parse_price",
    "Job",
    "JobCreate",
    "JobCreated",
    "JobList",
    "JobStatus",
    "Favorite",
    "FavoriteCreate",
    "FavoriteList",
    "Alert",
    "AlertCreate",
    "AlertList",
    "AlertObjectiveType",
    "AlertUpdate",
    "PriceBelowObjective",
    "PriceDropObjective",
    "PriceRangeObjective",
]
