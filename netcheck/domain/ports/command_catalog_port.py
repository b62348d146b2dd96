from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from netcheck.domain.value_objects.invocation import CommandInput, CommandInvocation

BuildInvocation = Callable[[CommandInput], CommandInvocation]


class UnknownCheckError(ValueError):
    def __init__(self, check_id: str) -> None:
        self.check_id = check_id
        super().__init__(f"Unknown diagnostic check: {check_id}")


@dataclass(frozen=True)
class CheckDefinition:
    id: str
    title: str
    description: str
    category: str
    target_hint: str
    default_target: str
    supports_count: bool
    requires_target: bool
    build: BuildInvocation


class CommandCatalogPort(ABC):
    """Port for the allowlist of diagnostic commands."""

    @abstractmethod
    def get(self, check_id: str) -> CheckDefinition:
        """Return the definition, or raise UnknownCheckError."""

    @abstractmethod
    def list_definitions(self) -> list[CheckDefinition]:
        """All definitions in display order."""
