from abc import ABC, abstractmethod
from collections.abc import Callable

from netcheck.domain.value_objects.invocation import CommandInvocation
from netcheck.domain.value_objects.stream_event import StreamName

OutputCallback = Callable[[StreamName, bytes], None]


class ProcessHandle(ABC):
    """A started child process."""

    @property
    @abstractmethod
    def pid(self) -> int | None:
        """OS process id, if any."""

    @abstractmethod
    async def wait(self) -> int | None:
        """Wait until output is drained and the process exits.

        Returns the exit code, or None when the process was terminated by
        the caller and has no meaningful code.
        """

    @abstractmethod
    def terminate(self) -> None:
        """Force-kill the process. No output is delivered afterwards."""


class ProcessRunnerPort(ABC):
    """Port for launching diagnostic commands."""

    @abstractmethod
    async def spawn(
        self,
        invocation: CommandInvocation,
        on_output: OutputCallback,
    ) -> ProcessHandle:
        """Start the process and deliver output chunks as they arrive.

        Raises OSError when the process cannot be spawned.
        """
