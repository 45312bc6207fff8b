"""
Shared route dependencies.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request

from valet.services.jobs import JobService
from valet.services.search import ProductSearchService


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """
    Caller identity set by the upstream gateway.

    Raises:
        HTTPException: 401 when the header is missing or not an integer
    """
    if x_user_id is None or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Authentification requise")
    return int(x_user_id)


def get_job_service(request: Request) -> JobService:
    return request.app.state.job_service


def get_search_service(request: Request) -> ProductSearchService:
    return request.app.state.search_service
