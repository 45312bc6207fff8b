"""Search job data models"""

from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum
from datetime import datetime, timezone
from typing import List, Optional
import uuid

from .base import CamelModel
from .product import SearchResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Search job state machine states"""
    CREATED = "created"
    VALIDATING = "validating"
    SEARCHING = "searching"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobCreate(BaseModel):
    """Model for creating a new search job"""
    query: str
    country: str = "us"

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        # Blank queries are rejected by JobService with a 400
        return v.strip()

    @field_validator("country", mode="before")
    @classmethod
    def normalize_country(cls, v):
        if not isinstance(v, str) or not v.strip():
            return "us"
        return v.strip().lower()


class Job(CamelModel):
    """
    One tracked search request.

    ``result`` is set exactly when the job completed and ``error`` exactly
    when it failed.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[int] = None
    query: str
    country: str = "us"
    status: JobStatus = JobStatus.CREATED
    message: str = ""
    result: Optional[SearchResult] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_terminal_payload(self) -> "Job":
        if (self.result is not None) != (self.status == JobStatus.COMPLETED):
            raise ValueError("result must be set exactly when status is completed")
        if (self.error is not None) != (self.status == JobStatus.FAILED):
            raise ValueError("error must be set exactly when status is failed")
        return self


class JobCreated(CamelModel):
    """Response returned when a job is accepted"""
    id: str
    status: JobStatus


class JobList(CamelModel):
    """Response for the job history listing"""
    jobs: List[Job] = Field(default_factory=list)
