from netcheck.domain.ports.command_catalog_port import (
    BuildInvocation,
    CheckDefinition,
    CommandCatalogPort,
    UnknownCheckError,
)
from netcheck.domain.ports.process_runner_port import (
    OutputCallback,
    ProcessHandle,
    ProcessRunnerPort,
)

__all__ = [
    # Command catalog port
    "BuildInvocation",
    "CheckDefinition",
    "CommandCatalogPort",
    "UnknownCheckError",
    # Process runner port
    "OutputCallback",
    "ProcessHandle",
    "ProcessRunnerPort",
]
