"""
Search job routes.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from valet.error_handling import JobNotFoundError, QueryValidationError
from valet.models import Job, JobCreate, JobCreated, JobList
from valet.services.jobs import JobService
from .deps import get_current_user_id, get_job_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/jobs", response_model=JobCreated, status_code=201)
async def create_job(
    request: JobCreate,
    user_id: int = Depends(get_current_user_id),
    service: JobService = Depends(get_job_service)
):
    """
    Start a product search job.

    The job is returned immediately in the created state; poll
    GET /api/jobs/{id} for progress.
    """
    try:
        return await service.create_job(request, user_id=user_id)
    except QueryValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except Exception as e:
        logger.error(f"Failed to create job: {e}")
        raise HTTPException(status_code=500, detail="Impossible de créer la recherche")


@router.get("/jobs", response_model=JobList)
async def list_jobs(
    limit: Optional[int] = Query(default=None),
    user_id: int = Depends(get_current_user_id),
    service: JobService = Depends(get_job_service)
):
    """List the caller's jobs, newest first."""
    try:
        return await service.list_jobs(user_id, limit=limit)
    except Exception as e:
        logger.error(f"Failed to list jobs: {e}")
        raise HTTPException(status_code=500, detail="Impossible de récupérer l'historique")


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(
    job_id: str,
    user_id: int = Depends(get_current_user_id),
    service: JobService = Depends(get_job_service)
):
    """Get a job with its progress message and, once completed, its result."""
    try:
        return await service.get_job(job_id, user_id=user_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.user_message)
    except Exception as e:
        logger.error(f"Failed to get job {job_id}: {e}")
        raise HTTPException(status_code=500, detail="Impossible de récupérer la recherche")
