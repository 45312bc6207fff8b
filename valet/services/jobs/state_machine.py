"""
Search job state machine.

Drives one job through validating -> searching -> processing and into a
terminal state. Every transition is written to the job store so polling
clients see live progress.
"""

import asyncio
import logging
from typing import Dict, FrozenSet, Optional

from valet.error_handling import (
    CountryNotSupportedError,
    InvalidTransitionError,
    ValetError,
    user_message_for,
)
from valet.models import Job, JobStatus, SearchResult
from valet.models.job import utcnow
from .store import JobStore

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.CREATED: frozenset({JobStatus.VALIDATING, JobStatus.FAILED}),
    JobStatus.VALIDATING: frozenset({JobStatus.SEARCHING, JobStatus.FAILED}),
    JobStatus.SEARCHING: frozenset({JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

STATUS_MESSAGES = {
    JobStatus.CREATED: "Recherche en attente de traitement",
    JobStatus.VALIDATING: "Vérification de la requête…",
    JobStatus.SEARCHING: "Recherche des produits en cours…",
    JobStatus.PROCESSING: "Sélection des meilleurs produits…",
    JobStatus.COMPLETED: "Recherche terminée",
    JobStatus.FAILED: "La recherche a échoué",
}

NO_RESULTS_MESSAGE = "Aucun produit trouvé pour cette recherche"
INTERRUPTED_MESSAGE = "Recherche interrompue par un redémarrage du service. Veuillez relancer la recherche."


def apply_transition(
    job: Job,
    status: JobStatus,
    message: Optional[str] = None,
    result: Optional[SearchResult] = None,
    error: Optional[str] = None
) -> Job:
    """
    Return a copy of job moved to status.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if status not in ALLOWED_TRANSITIONS[job.status]:
        raise InvalidTransitionError(f"Cannot move job {job.id} from {job.status.value} to {status.value}")

    now = utcnow()
    # model_copy skips validation; rebuild so the result/error pairing is checked
    return Job.model_validate({
        **job.model_dump(),
        "status": status,
        "message": message or STATUS_MESSAGES[status],
        "result": result.model_dump() if result is not None else None,
        "error": error,
        "updated_at": now,
        "completed_at": now if status.is_terminal else None,
    })


class SearchJobStateMachine:
    """Run the search pipeline for one job"""

    def __init__(self, job: Job, store: JobStore, search_service):
        self.job = job
        self.store = store
        self.search_service = search_service

    async def transition(
        self,
        status: JobStatus,
        message: Optional[str] = None,
        result: Optional[SearchResult] = None,
        error: Optional[str] = None
    ) -> Job:
        """Apply a transition and persist it."""
        updated = apply_transition(self.job, status, message=message, result=result, error=error)
        await self.store.update(updated)
        self.job = updated
        logger.info(f"Job {updated.id}: {status.value}")
        return updated

    async def fail(self, user_message: str) -> Job:
        return await self.transition(JobStatus.FAILED, error=user_message)

    async def run(self) -> Job:
        """
        Execute the pipeline to a terminal state.

        Stage failures end in ``failed`` with a user-facing error. Task
        cancellation marks the job failed and propagates.
        """
        job = self.job
        try:
            await self.transition(JobStatus.VALIDATING)
            try:
                country = self.search_service.validate_country(job.country)
            except CountryNotSupportedError as e:
                logger.info(f"Job {job.id}: country '{e.country}' not supported")
                return await self.fail(e.user_message)

            await self.transition(JobStatus.SEARCHING)
            candidates = await self.search_service.search(job.query, country)

            if not candidates.results:
                return await self.transition(
                    JobStatus.COMPLETED,
                    message=NO_RESULTS_MESSAGE,
                    result=SearchResult(query=job.query, products=[], total_found=0)
                )

            await self.transition(JobStatus.PROCESSING)
            result = await self.search_service.curate(job.query, candidates, country, request_id=job.id)

            message = STATUS_MESSAGES[JobStatus.COMPLETED] if result.products else NO_RESULTS_MESSAGE
            return await self.transition(JobStatus.COMPLETED, message=message, result=result)

        except asyncio.CancelledError:
            await self._mark_interrupted()
            raise
        except ValetError as e:
            logger.warning(f"Job {job.id} failed in {self.job.status.value}: {e}")
            return await self.fail(e.user_message)
        except Exception as e:
            logger.exception(f"Job {job.id} failed unexpectedly in {self.job.status.value}")
            return await self.fail(user_message_for(e))

    async def _mark_interrupted(self):
        if self.job.status.is_terminal:
            return
        logger.warning(f"Job {self.job.id} interrupted in {self.job.status.value}")
        try:
            await self.fail(INTERRUPTED_MESSAGE)
        except Exception:
            # Startup recovery (fail_unfinished) covers jobs left behind here
            logger.exception(f"Could not record interruption of job {self.job.id}")
