"""Search job services"""

from .store import InMemoryJobStore, JobStore, PostgresJobStore, build_job_store
from .state_machine import (
    ALLOWED_TRANSITIONS,
    INTERRUPTED_MESSAGE,
    NO_RESULTS_MESSAGE,
    STATUS_MESSAGES,
    SearchJobStateMachine,
    apply_transition,
)
from .runner import JobRunner
from .service import JobService, clamp_limit

__all__ = [
    "InMemoryJobStore",
    "JobStore",
    "PostgresJobStore",
    "build_job_store",
    "ALLOWED_TRANSITIONS",
    "INTERRUPTED_MESSAGE",
    "NO_RESULTS_MESSAGE",
    "STATUS_MESSAGES",
    "SearchJobStateMachine",
    "apply_transition",
    "JobRunner",
    "JobService",
    "clamp_limit",
]
