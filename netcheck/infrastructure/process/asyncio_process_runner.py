import asyncio
import os
import signal
import subprocess
import sys
from typing import Any

from loguru import logger

from netcheck.domain.ports.process_runner_port import (
    OutputCallback,
    ProcessHandle,
    ProcessRunnerPort,
)
from netcheck.domain.value_objects.invocation import CommandInvocation
from netcheck.domain.value_objects.stream_event import StreamName

READ_CHUNK_SIZE = 4096


def _spawn_options() -> dict[str, Any]:
    if sys.platform == "win32":
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}
    # New process group so the whole tree can be killed on timeout
    return {"start_new_session": True}


class AsyncioProcessHandle(ProcessHandle):
    def __init__(self, proc: asyncio.subprocess.Process, on_output: OutputCallback) -> None:
        self._proc = proc
        self._on_output = on_output
        self._terminated = False
        self._pumps = [
            asyncio.create_task(self._pump(proc.stdout, StreamName.STDOUT)),
            asyncio.create_task(self._pump(proc.stderr, StreamName.STDERR)),
        ]

    @property
    def pid(self) -> int | None:
        return self._proc.pid

    async def _pump(self, stream: asyncio.StreamReader | None, name: StreamName) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk or self._terminated:
                return
            self._on_output(name, chunk)

    async def wait(self) -> int | None:
        results = await asyncio.gather(*self._pumps, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("Output pump for pid {} failed: {}", self._proc.pid, result)

        exit_code = await self._proc.wait()
        if self._terminated:
            return None
        return exit_code

    def terminate(self) -> None:
        if self._terminated:
            return
        self._terminated = True

        for pump in self._pumps:
            pump.cancel()

        if self._proc.returncode is not None:
            return

        if sys.platform == "win32":
            self._proc.kill()
            return

        try:
            os.killpg(os.getpgid(self._proc.pid), signal.SIGKILL)
        except (ProcessLookupError, OSError):
            # Process group already gone
            try:
                self._proc.kill()
            except ProcessLookupError:
                pass


class AsyncioProcessRunner(ProcessRunnerPort):
    async def spawn(
        self,
        invocation: CommandInvocation,
        on_output: OutputCallback,
    ) -> ProcessHandle:
        proc = await asyncio.create_subprocess_exec(
            invocation.executable,
            *invocation.args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **_spawn_options(),
        )
        logger.debug("Spawned pid {}: {}", proc.pid, invocation.command_line)
        return AsyncioProcessHandle(proc, on_output)
