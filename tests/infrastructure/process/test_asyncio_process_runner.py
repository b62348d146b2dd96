import asyncio
import sys

import pytest

from netcheck.domain.value_objects.invocation import CommandInvocation
from netcheck.domain.value_objects.stream_event import StreamName
from netcheck.infrastructure.process.asyncio_process_runner import AsyncioProcessRunner


class Collector:
    def __init__(self) -> None:
        self.chunks: list[tuple[StreamName, bytes]] = []

    def __call__(self, stream: StreamName, chunk: bytes) -> None:
        self.chunks.append((stream, chunk))

    def text(self, stream: StreamName) -> str:
        return b"".join(chunk for name, chunk in self.chunks if name == stream).decode()


def python(code: str) -> CommandInvocation:
    return CommandInvocation(executable=sys.executable, args=["-c", code])


@pytest.fixture
def runner() -> AsyncioProcessRunner:
    return AsyncioProcessRunner()


class TestAsyncioProcessRunner:
    @pytest.mark.asyncio
    async def test_captures_stdout_and_exit_code(self, runner: AsyncioProcessRunner) -> None:
        collector = Collector()

        handle = await runner.spawn(python("print('hello')"), collector)
        exit_code = await handle.wait()

        assert exit_code == 0
        assert handle.pid is not None
        assert collector.text(StreamName.STDOUT).strip() == "hello"

    @pytest.mark.asyncio
    async def test_captures_stderr_separately(self, runner: AsyncioProcessRunner) -> None:
        collector = Collector()

        handle = await runner.spawn(
            python("import sys; sys.stderr.write('oops'); sys.exit(3)"), collector
        )
        exit_code = await handle.wait()

        assert exit_code == 3
        assert collector.text(StreamName.STDERR) == "oops"
        assert collector.text(StreamName.STDOUT) == ""

    @pytest.mark.asyncio
    async def test_target_is_not_shell_interpreted(self, runner: AsyncioProcessRunner) -> None:
        collector = Collector()

        handle = await runner.spawn(
            CommandInvocation(
                executable=sys.executable,
                args=["-c", "import sys; print(sys.argv[1])", "$(echo injected); ls"],
            ),
            collector,
        )
        await handle.wait()

        assert collector.text(StreamName.STDOUT).strip() == "$(echo injected); ls"

    @pytest.mark.asyncio
    async def test_terminate_kills_long_running_process(
        self, runner: AsyncioProcessRunner
    ) -> None:
        collector = Collector()

        handle = await runner.spawn(
            python("import time; print('started', flush=True); time.sleep(30)"), collector
        )
        await asyncio.sleep(0.5)
        handle.terminate()
        handle.terminate()
        exit_code = await asyncio.wait_for(handle.wait(), timeout=10)

        assert exit_code is None

    @pytest.mark.asyncio
    async def test_missing_executable_raises_os_error(self, runner: AsyncioProcessRunner) -> None:
        with pytest.raises(OSError):
            await runner.spawn(
                CommandInvocation(executable="netcheck-missing-binary-for-tests"), Collector()
            )
