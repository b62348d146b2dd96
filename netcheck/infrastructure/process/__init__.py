from netcheck.infrastructure.process.asyncio_process_runner import (
    AsyncioProcessHandle,
    AsyncioProcessRunner,
)

__all__ = [
    "AsyncioProcessHandle",
    "AsyncioProcessRunner",
]
