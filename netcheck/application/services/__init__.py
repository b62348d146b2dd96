from netcheck.application.services.job_manager import (
    SPAWN_FAILURE_DIAGNOSIS,
    JobManager,
    deadline_seconds,
)

__all__ = [
    "JobManager",
    "SPAWN_FAILURE_DIAGNOSIS",
    "deadline_seconds",
]
