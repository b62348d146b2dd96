import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from netcheck.application.services.job_manager import JobManager
from netcheck.domain.ports.command_catalog_port import (
    CheckDefinition,
    CommandCatalogPort,
    UnknownCheckError,
)
from netcheck.domain.ports.process_runner_port import (
    OutputCallback,
    ProcessHandle,
    ProcessRunnerPort,
)
from netcheck.domain.value_objects.check_id import CheckId, check_id_value
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.domain.value_objects.invocation import CommandInput, CommandInvocation
from netcheck.domain.value_objects.stream_event import StreamName
from netcheck.infrastructure.encoding.stream_decoder import StreamDecoder


@dataclass
class ProcessScript:
    """What a fake process prints and how it ends."""

    chunks: list[tuple[StreamName, bytes]] = field(default_factory=list)
    exit_code: int = 0
    hang: bool = False
    spawn_error: OSError | None = None


class FakeHandle(ProcessHandle):
    def __init__(self, script: ProcessScript, on_output: OutputCallback) -> None:
        self._script = script
        self._on_output = on_output
        self._released = asyncio.Event()
        self.terminated = False

    @property
    def pid(self) -> int | None:
        return 4242

    async def wait(self) -> int | None:
        for stream, chunk in self._script.chunks:
            await asyncio.sleep(0)
            if self.terminated:
                return None
            self._on_output(stream, chunk)
        if self._script.hang:
            await self._released.wait()
        if self.terminated:
            return None
        return self._script.exit_code

    def terminate(self) -> None:
        self.terminated = True
        self._released.set()


class FakeProcessRunner(ProcessRunnerPort):
    """Plays back scripted output, keyed by the invocation's executable."""

    def __init__(self, scripts: dict[str, ProcessScript] | None = None) -> None:
        self.scripts = scripts or {}
        self.invocations: list[CommandInvocation] = []
        self.handles: list[FakeHandle] = []

    async def spawn(
        self,
        invocation: CommandInvocation,
        on_output: OutputCallback,
    ) -> ProcessHandle:
        self.invocations.append(invocation)
        script = self.scripts.get(invocation.executable, ProcessScript())
        if script.spawn_error is not None:
            raise script.spawn_error
        handle = FakeHandle(script, on_output)
        self.handles.append(handle)
        return handle


class FakeCatalog(CommandCatalogPort):
    """Every check runs an executable named after its own id."""

    def __init__(self, broken: set[str] | None = None) -> None:
        self._broken = broken or set()
        self._definitions = {
            check_id.value: CheckDefinition(
                id=check_id.value,
                title=f"Title {check_id.value}",
                description="",
                category="Test",
                target_hint="",
                default_target="localhost",
                supports_count=True,
                requires_target=check_id == CheckId.PING_TARGET,
                build=self._builder(check_id.value),
            )
            for check_id in CheckId
        }

    def _builder(self, check_id: str) -> Callable[[CommandInput], CommandInvocation]:
        def build(command_input: CommandInput) -> CommandInvocation:
            if check_id in self._broken:
                raise ValueError(f"cannot build {check_id}")
            return CommandInvocation(executable=check_id, args=[command_input.target])

        return build

    def get(self, check_id: str) -> CheckDefinition:
        key = str(check_id_value(check_id))
        definition = self._definitions.get(key)
        if definition is None:
            raise UnknownCheckError(key)
        return definition

    def list_definitions(self) -> list[CheckDefinition]:
        return list(self._definitions.values())


def stdout(text: str) -> tuple[StreamName, bytes]:
    return StreamName.STDOUT, text.encode("utf-8")


def stderr(text: str) -> tuple[StreamName, bytes]:
    return StreamName.STDERR, text.encode("utf-8")


@pytest.fixture
def settings() -> DiagnosticsSettings:
    return DiagnosticsSettings()


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def fake_runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def job_manager(
    fake_catalog: FakeCatalog,
    fake_runner: FakeProcessRunner,
    settings: DiagnosticsSettings,
) -> JobManager:
    return JobManager(
        fake_catalog,
        fake_runner,
        settings,
        decoder_factory=lambda _: StreamDecoder(),
    )


@pytest.fixture
def command_input() -> CommandInput:
    return CommandInput(target="localhost", count=2, timeout_seconds=5)
