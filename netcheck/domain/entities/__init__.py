from netcheck.domain.entities.job import Job, JobStateError
from netcheck.domain.entities.workflow_item import WorkflowItem

__all__ = [
    "Job",
    "JobStateError",
    "WorkflowItem",
]
