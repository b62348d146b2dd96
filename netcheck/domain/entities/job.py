from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from netcheck.domain.value_objects.check_id import check_id_value
from netcheck.domain.value_objects.job_status import JobStatus
from netcheck.domain.value_objects.parse_result import StructuredFacts


class JobStateError(RuntimeError):
    """Raised when a job is mutated outside its running state."""


class Job(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    check_id: str
    title: str
    target: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    ended_at: datetime | None = None
    status: JobStatus = JobStatus.RUNNING
    exit_code: int | None = None
    raw_output: str = ""
    structured: StructuredFacts = Field(default_factory=dict)
    diagnosis: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)

    @field_validator("check_id", mode="before")
    @classmethod
    def _normalize_check_id(cls, value: object) -> object:
        return check_id_value(value)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def timed_out(self) -> bool:
        return self.structured.get("timed_out") is True

    @property
    def duration_ms(self) -> int | None:
        if self.ended_at is None:
            return None
        return max(0, int((self.ended_at - self.started_at).total_seconds() * 1000))

    def append_output(self, chunk: str) -> None:
        """Append decoded output. Raw output only grows while running."""
        if self.is_terminal:
            raise JobStateError(f"Job {self.id} is already {self.status.value}")
        self.raw_output += chunk

    def finalize(
        self,
        status: JobStatus,
        exit_code: int | None,
        structured: StructuredFacts,
        diagnosis: list[str],
        evidence: list[str],
    ) -> None:
        """Transition RUNNING -> COMPLETED/FAILED exactly once.

        Structured facts, diagnosis and evidence are replaced together so a
        snapshot never shows a half-finalized job.
        """
        if self.is_terminal:
            raise JobStateError(f"Job {self.id} is already {self.status.value}")
        if not status.is_terminal:
            raise JobStateError(f"Cannot finalize job {self.id} as {status.value}")

        self.structured = dict(structured)
        self.diagnosis = list(diagnosis)
        self.evidence = list(evidence)
        self.exit_code = exit_code
        self.ended_at = datetime.now(UTC)
        self.status = status

    def snapshot(self) -> "Job":
        return self.model_copy(deep=True)
