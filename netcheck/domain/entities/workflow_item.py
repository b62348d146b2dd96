from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from netcheck.domain.entities.job import Job
from netcheck.domain.value_objects.check_id import check_id_value
from netcheck.domain.value_objects.job_status import JobStatus, WorkflowStatus
from netcheck.domain.value_objects.parse_result import StructuredFacts


class WorkflowItem(BaseModel):
    """A job-like row consumed by the summary builder.

    Unlike a Job it can also be PENDING, for checks that were selected but
    have not started yet.
    """

    check_id: str
    title: str
    category: str = ""
    status: WorkflowStatus = WorkflowStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_ms: int | None = None
    timed_out: bool = False
    diagnosis: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    structured: StructuredFacts = Field(default_factory=dict)
    error_message: str | None = None

    @field_validator("check_id", mode="before")
    @classmethod
    def _normalize_check_id(cls, value: object) -> object:
        return check_id_value(value)

    @classmethod
    def from_job(cls, job: Job, category: str = "") -> "WorkflowItem":
        status = WorkflowStatus(job.status.value)
        return cls(
            check_id=job.check_id,
            title=job.title,
            category=category,
            status=status,
            started_at=job.started_at,
            ended_at=job.ended_at,
            duration_ms=job.duration_ms,
            timed_out=job.timed_out,
            diagnosis=list(job.diagnosis),
            evidence=list(job.evidence),
            structured=dict(job.structured),
            error_message=(
                job.diagnosis[0] if job.status == JobStatus.FAILED and job.diagnosis else None
            ),
        )

    @classmethod
    def pending(cls, check_id: str, title: str, category: str = "") -> "WorkflowItem":
        return cls(check_id=check_id, title=title, category=category)

    @classmethod
    def failed(cls, check_id: str, title: str, message: str, category: str = "") -> "WorkflowItem":
        return cls(
            check_id=check_id,
            title=title,
            category=category,
            status=WorkflowStatus.FAILED,
            diagnosis=[message],
            evidence=[message],
            error_message=message,
        )
