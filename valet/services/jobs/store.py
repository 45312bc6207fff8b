"""
Job store - persistence of search jobs.

Two implementations share the JobStore interface: PostgresJobStore backed by
the asyncpg pool, and InMemoryJobStore for local development and tests.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from valet.db import get_pg_pool
from valet.models import Job, JobStatus, SearchResult
from valet.models.job import utcnow

logger = logging.getLogger(__name__)

UNFINISHED_STATUSES = [
    JobStatus.CREATED.value,
    JobStatus.VALIDATING.value,
    JobStatus.SEARCHING.value,
    JobStatus.PROCESSING.value,
]


class JobStore(ABC):
    """Storage interface for search jobs"""

    @abstractmethod
    async def insert(self, job: Job) -> Job:
        """Persist a new job."""

    @abstractmethod
    async def get(self, job_id: str, user_id: Optional[int] = None) -> Optional[Job]:
        """Fetch a job, scoped to its owner when user_id is given."""

    @abstractmethod
    async def update(self, job: Job) -> Job:
        """Overwrite the mutable fields of a job."""

    @abstractmethod
    async def list_by_owner(self, user_id: Optional[int], limit: int = 20) -> List[Job]:
        """List a user's jobs, newest first."""

    @abstractmethod
    async def fail_unfinished(self, message: str) -> int:
        """Mark every non-terminal job as failed; returns how many."""


class InMemoryJobStore(JobStore):
    """Process-local job store"""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    async def insert(self, job: Job) -> Job:
        async with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Job {job.id} already exists")
            self._jobs[job.id] = job
        return job

    async def get(self, job_id: str, user_id: Optional[int] = None) -> Optional[Job]:
        job = self._jobs.get(job_id)
        if job is None or (user_id is not None and job.user_id != user_id):
            return None
        return job

    async def update(self, job: Job) -> Job:
        async with self._lock:
            if job.id not in self._jobs:
                raise ValueError(f"Job {job.id} not found")
            self._jobs[job.id] = job
        return job

    async def list_by_owner(self, user_id: Optional[int], limit: int = 20) -> List[Job]:
        jobs = [job for job in self._jobs.values() if job.user_id == user_id]
        jobs.sort(key=lambda job: job.created_at, reverse=True)
        return jobs[:limit]

    async def fail_unfinished(self, message: str) -> int:
        count = 0
        async with self._lock:
            for job_id, job in self._jobs.items():
                if job.status.is_terminal:
                    continue
                now = utcnow()
                self._jobs[job_id] = Job.model_validate({
                    **job.model_dump(),
                    "status": JobStatus.FAILED,
                    "message": message,
                    "error": message,
                    "result": None,
                    "updated_at": now,
                    "completed_at": now,
                })
                count += 1
        return count


class PostgresJobStore(JobStore):
    """Job store backed by the search_jobs table"""

    async def insert(self, job: Job) -> Job:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            await conn.execute("""
                INSERT INTO search_jobs (
                    id, user_id, query, country, status, message,
                    result, error, created_at, updated_at, completed_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8, $9, $10, $11)
            """,
                job.id,
                job.user_id,
                job.query,
                job.country,
                job.status.value,
                job.message,
                self._dump_result(job.result),
                job.error,
                job.created_at,
                job.updated_at,
                job.completed_at
            )
        return job

    async def get(self, job_id: str, user_id: Optional[int] = None) -> Optional[Job]:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            if user_id is not None:
                row = await conn.fetchrow("""
                    SELECT * FROM search_jobs WHERE id = $1 AND user_id = $2
                """, job_id, user_id)
            else:
                row = await conn.fetchrow("""
                    SELECT * FROM search_jobs WHERE id = $1
                """, job_id)

            return self._row_to_job(row) if row else None

    async def update(self, job: Job) -> Job:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            result = await conn.execute("""
                UPDATE search_jobs
                SET status = $2, message = $3, result = $4::jsonb, error = $5,
                    updated_at = $6, completed_at = $7
                WHERE id = $1
            """,
                job.id,
                job.status.value,
                job.message,
                self._dump_result(job.result),
                job.error,
                job.updated_at,
                job.completed_at
            )

        if result.endswith(" 0"):
            raise ValueError(f"Job {job.id} not found")
        return job

    async def list_by_owner(self, user_id: Optional[int], limit: int = 20) -> List[Job]:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM search_jobs
                WHERE user_id IS NOT DISTINCT FROM $1
                ORDER BY created_at DESC
                LIMIT $2
            """, user_id, limit)

            return [self._row_to_job(row) for row in rows]

    async def fail_unfinished(self, message: str) -> int:
        pool = get_pg_pool()
        async with pool.acquire() as conn:
            result = await conn.execute("""
                UPDATE search_jobs
                SET status = $1, message = $2, error = $2, result = NULL,
                    updated_at = NOW(), completed_at = NOW()
                WHERE status = ANY($3::varchar[])
            """, JobStatus.FAILED.value, message, UNFINISHED_STATUSES)

        # asyncpg returns the command tag, e.g. "UPDATE 3"
        return int(result.split()[-1])

    @staticmethod
    def _dump_result(result: Optional[SearchResult]) -> Optional[str]:
        if result is None:
            return None
        return json.dumps(result.model_dump(mode="json"))

    @staticmethod
    def _row_to_job(row) -> Job:
        result = row['result']
        if isinstance(result, str):
            result = json.loads(result)

        return Job(
            id=row['id'],
            user_id=row['user_id'],
            query=row['query'],
            country=row['country'],
            status=row['status'],
            message=row['message'],
            result=result,
            error=row['error'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            completed_at=row['completed_at']
        )


def build_job_store(kind: str) -> JobStore:
    """Create the job store selected by JOB_STORE."""
    if kind == "memory":
        logger.warning("Using in-memory job store; jobs are lost on restart")
        return InMemoryJobStore()
    return PostgresJobStore()
