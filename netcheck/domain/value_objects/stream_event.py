from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamName(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


class StreamEventType(str, Enum):
    START = "start"
    LOG = "log"
    ERROR = "error"
    COMPLETE = "complete"


class StreamEvent(BaseModel, frozen=True):
    """One lifecycle event of a job.

    Payload shapes:
    - START: command_line, title, target
    - LOG: chunk, stream
    - ERROR: chunk + stream for stderr output, or message for a terminal error
    - COMPLETE: job (a Job snapshot)
    """

    type: StreamEventType
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.type == StreamEventType.COMPLETE
