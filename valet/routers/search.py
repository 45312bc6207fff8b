"""
Synchronous product search routes.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from valet.error_handling import (
    CountryNotSupportedError,
    ErrorCategory,
    ValetError,
    classify_error,
    user_message_for,
)
from valet.models import SearchResult
from valet.services.search import ProductSearchService
from .deps import get_search_service

logger = logging.getLogger(__name__)

router = APIRouter()


class SearchRequest(BaseModel):
    query: str
    country: str = "us"


async def _run_search(service: ProductSearchService, query: str, country: str) -> SearchResult:
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="La requête de recherche est vide")

    try:
        return await service.run(query.strip(), country.strip().lower() or "us", allow_web_fallback=True)
    except CountryNotSupportedError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except ValetError as e:
        logger.warning(f"Search failed for '{query}': {e}")
        raise HTTPException(status_code=502, detail=e.user_message)
    except Exception as e:
        logger.exception(f"Search failed for '{query}'")
        status = 502 if classify_error(e) != ErrorCategory.GENERIC else 500
        raise HTTPException(status_code=status, detail=user_message_for(e))


@router.post("/search", response_model=SearchResult)
async def search_products(
    request: SearchRequest,
    service: ProductSearchService = Depends(get_search_service)
):
    """
    One-shot product search.

    Countries without shopping support fall back to a general web search
    instead of being rejected.
    """
    return await _run_search(service, request.query, request.country)


@router.get("/search", response_model=SearchResult)
async def search_products_get(
    q: str = Query(...),
    country: str = Query(default="us"),
    service: ProductSearchService = Depends(get_search_service)
):
    """Same as POST /search with query parameters."""
    return await _run_search(service, q, country)
