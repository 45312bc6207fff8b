"""
Job service - create, read and list search jobs.
"""

import logging
from typing import Optional

from valet.error_handling import JobNotFoundError, QueryValidationError
from valet.models import Job, JobCreate, JobCreated, JobList, JobStatus
from .runner import JobRunner
from .state_machine import STATUS_MESSAGES, SearchJobStateMachine
from .store import JobStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIST_LIMIT
    return max(1, min(MAX_LIST_LIMIT, limit))


class JobService:
    """Facade used by the HTTP layer"""

    def __init__(self, store: JobStore, runner: JobRunner, search_service):
        self.store = store
        self.runner = runner
        self.search_service = search_service

    async def create_job(self, request: JobCreate, user_id: Optional[int] = None) -> JobCreated:
        """
        Persist a new job in ``created`` and start its pipeline.

        Raises:
            QueryValidationError: If the query is blank
        """
        if not request.query or not request.query.strip():
            raise QueryValidationError("La requête de recherche est vide")

        job = Job(
            user_id=user_id,
            query=request.query.strip(),
            country=request.country,
            message=STATUS_MESSAGES[JobStatus.CREATED]
        )
        await self.store.insert(job)
        logger.info(f"Created job {job.id} for '{job.query}' ({job.country})")

        machine = SearchJobStateMachine(job, self.store, self.search_service)
        self.runner.submit(job.id, machine.run)

        return JobCreated(id=job.id, status=job.status)

    async def get_job(self, job_id: str, user_id: Optional[int] = None) -> Job:
        """
        Raises:
            JobNotFoundError: Unknown id, or a job owned by another user
        """
        job = await self.store.get(job_id, user_id=user_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def list_jobs(self, user_id: Optional[int], limit: Optional[int] = None) -> JobList:
        jobs = await self.store.list_by_owner(user_id, limit=clamp_limit(limit))
        return JobList(jobs=jobs)
