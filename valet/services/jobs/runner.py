"""
Job runner - managed background execution of search pipelines.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class JobRunner:
    """
    Run job pipelines as asyncio tasks.

    A semaphore caps how many pipelines run at once; extra jobs wait, still
    in their ``created`` state, until a slot frees up. ``shutdown`` cancels
    everything still in flight.
    """

    def __init__(self, max_concurrent: int = 4):
        self.max_concurrent = max(1, max_concurrent)
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._tasks: Dict[str, asyncio.Task] = {}
        self._closed = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, job_id: str, pipeline: Callable[[], Awaitable]) -> asyncio.Task:
        """Schedule a pipeline for a job."""
        if self._closed:
            raise RuntimeError("Job runner is shut down")

        task = asyncio.create_task(self._run(job_id, pipeline), name=f"job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))
        return task

    async def _run(self, job_id: str, pipeline: Callable[[], Awaitable]):
        async with self._semaphore:
            logger.debug(f"Job {job_id} started ({self.in_flight} in flight)")
            try:
                return await pipeline()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Job {job_id} pipeline crashed")

    async def wait_idle(self):
        """Wait until every submitted pipeline has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self):
        """Cancel in-flight pipelines and wait for them to unwind."""
        self._closed = True
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info(f"Cancelling {len(tasks)} in-flight job(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
