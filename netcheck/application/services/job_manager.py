import asyncio
import itertools
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from uuid import UUID

from loguru import logger

from netcheck.domain.entities.job import Job
from netcheck.domain.ports.command_catalog_port import CheckDefinition, CommandCatalogPort
from netcheck.domain.ports.process_runner_port import ProcessHandle, ProcessRunnerPort
from netcheck.domain.services.parsers import parse_output
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.domain.value_objects.invocation import CommandInput
from netcheck.domain.value_objects.job_status import JobStatus
from netcheck.domain.value_objects.parse_result import ParseResult, StructuredFacts
from netcheck.domain.value_objects.stream_event import StreamEvent, StreamEventType, StreamName
from netcheck.infrastructure.encoding.stream_decoder import StreamDecoder, create_stream_decoder

EventCallback = Callable[[StreamEvent], None]
Unsubscribe = Callable[[], None]
DecoderFactory = Callable[[str], StreamDecoder]

MIN_DEADLINE_MS = 1000
# Absorbs process teardown beyond the tool's own timeout
DEADLINE_MARGIN_MS = 1000

SPAWN_FAILURE_DIAGNOSIS = (
    "The command failed to execute; check that the required network tools are installed."
)


def deadline_seconds(timeout_seconds: int) -> float:
    return max(MIN_DEADLINE_MS, timeout_seconds * 1000 + DEADLINE_MARGIN_MS) / 1000


@dataclass
class _JobRecord:
    job: Job
    events: list[StreamEvent] = field(default_factory=list)
    subscribers: dict[int, EventCallback] = field(default_factory=dict)


@dataclass
class _RunState:
    stdout: StreamDecoder
    stderr: StreamDecoder
    handle: ProcessHandle | None = None
    timer: asyncio.TimerHandle | None = None
    flushed: bool = False
    finalized: bool = False

    def decoder_for(self, stream: StreamName) -> StreamDecoder:
        return self.stdout if stream == StreamName.STDOUT else self.stderr


class JobManager:
    """Runs diagnostic checks as jobs and fans their events out to subscribers.

    Each job moves RUNNING -> COMPLETED/FAILED exactly once. The three ways a
    run can end (natural exit, deadline, spawn failure) all go through one
    guarded finalize step, so exactly one ``complete`` event is emitted.

    Every event is appended to the job's log before it is delivered, and
    subscribing replays that log and registers the listener in the same
    synchronous step. Late subscribers therefore see the full sequence with
    no gap and no duplicate.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        catalog: CommandCatalogPort,
        runner: ProcessRunnerPort,
        settings: DiagnosticsSettings | None = None,
        capacity: int | None = None,
        decoder_factory: DecoderFactory = create_stream_decoder,
    ) -> None:
        self._catalog = catalog
        self._runner = runner
        self._settings = settings or DiagnosticsSettings()
        self._capacity = capacity if capacity is not None else self._settings.job_capacity
        self._decoder_factory = decoder_factory
        self._jobs: dict[UUID, _JobRecord] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._subscriber_ids = itertools.count()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._jobs)

    # Public API

    def create_job(self, check_id: str, command_input: CommandInput) -> Job:
        """Start a check and return its initial RUNNING snapshot.

        Raises:
            UnknownCheckError: check_id is not in the catalog. No job is created.
            RuntimeError: called without a running event loop.
        """
        definition = self._catalog.get(check_id)
        loop = asyncio.get_running_loop()

        job = Job(check_id=definition.id, title=definition.title, target=command_input.target)
        record = _JobRecord(job=job)
        self._jobs[job.id] = record
        logger.info("Job {} created: {} (target={})", job.id, definition.id, job.target)

        task = loop.create_task(self._run(record, definition, command_input))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        self._evict_oldest()
        return job.snapshot()

    def get_job(self, job_id: UUID | str) -> Job | None:
        record = self._lookup(job_id)
        return record.job.snapshot() if record else None

    def list_jobs(self) -> list[Job]:
        return [record.job.snapshot() for record in self._jobs.values()]

    def subscribe(self, job_id: UUID | str, on_event: EventCallback) -> Unsubscribe | None:
        """Replay the job's events to on_event, then keep delivering live ones.

        Returns an unsubscribe function, or None if the job is unknown.
        Unsubscribing never stops the underlying process.
        """
        record = self._lookup(job_id)
        if record is None:
            return None

        for event in list(record.events):
            self._deliver(record, on_event, event)

        token = next(self._subscriber_ids)
        record.subscribers[token] = on_event

        def unsubscribe() -> None:
            record.subscribers.pop(token, None)

        return unsubscribe

    def stream(self, job_id: UUID | str) -> AsyncIterator[StreamEvent] | None:
        """Async iterator over replayed and live events, ending after ``complete``.

        The subscription is taken immediately, not on first iteration.
        """
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        unsubscribe = self.subscribe(job_id, queue.put_nowait)
        if unsubscribe is None:
            return None
        return self._drain(queue, unsubscribe)

    async def wait(self, job_id: UUID | str) -> Job | None:
        """Wait for the job to finish and return its final snapshot."""
        events = self.stream(job_id)
        if events is None:
            return None
        async for event in events:
            if event.is_terminal:
                return event.payload["job"]
        return self.get_job(job_id)

    # Lookup, delivery, eviction

    def _lookup(self, job_id: UUID | str) -> _JobRecord | None:
        if isinstance(job_id, UUID):
            return self._jobs.get(job_id)
        try:
            return self._jobs.get(UUID(str(job_id)))
        except ValueError:
            return None

    @staticmethod
    async def _drain(
        queue: asyncio.Queue[StreamEvent], unsubscribe: Unsubscribe
    ) -> AsyncIterator[StreamEvent]:
        try:
            while True:
                event = await queue.get()
                yield event
                if event.is_terminal:
                    return
        finally:
            unsubscribe()

    def _deliver(self, record: _JobRecord, callback: EventCallback, event: StreamEvent) -> None:
        try:
            callback(event)
        except Exception:
            logger.exception(
                "Subscriber callback failed for job {} on {} event",
                record.job.id,
                event.type.value,
            )

    def _emit(self, record: _JobRecord, event: StreamEvent) -> None:
        record.events.append(event)
        for callback in list(record.subscribers.values()):
            self._deliver(record, callback, event)

    def _evict_oldest(self) -> None:
        overflow = len(self._jobs) - self._capacity
        if overflow <= 0:
            return
        # In-flight runs keep their own record reference, so evicting only
        # removes the lookup entry.
        oldest = sorted(self._jobs.values(), key=lambda record: record.job.started_at)[:overflow]
        for record in oldest:
            del self._jobs[record.job.id]
            logger.debug("Evicted job {} ({})", record.job.id, record.job.check_id)

    # Execution

    async def _run(
        self,
        record: _JobRecord,
        definition: CheckDefinition,
        command_input: CommandInput,
    ) -> None:
        job = record.job
        state = _RunState(
            stdout=self._decoder_factory(job.check_id),
            stderr=self._decoder_factory(job.check_id),
        )

        try:
            invocation = definition.build(command_input)
        except Exception as e:
            self._fail_to_spawn(record, state, e)
            return

        self._emit(
            record,
            StreamEvent(
                type=StreamEventType.START,
                payload={
                    "command_line": invocation.command_line,
                    "title": job.title,
                    "target": job.target,
                },
            ),
        )

        try:
            handle = await self._runner.spawn(
                invocation,
                lambda stream, chunk: self._on_output(record, state, stream, chunk),
            )
        except OSError as e:
            self._fail_to_spawn(record, state, e)
            return

        state.handle = handle
        state.timer = asyncio.get_running_loop().call_later(
            deadline_seconds(command_input.timeout_seconds),
            self._on_timeout,
            record,
            state,
            command_input.timeout_seconds,
        )

        try:
            exit_code = await handle.wait()
        except Exception as e:
            logger.exception("Waiting on job {} failed", job.id)
            handle.terminate()
            self._fail_to_spawn(record, state, e)
            return

        self._on_exit(record, state, exit_code)

    def _on_output(
        self, record: _JobRecord, state: _RunState, stream: StreamName, chunk: bytes
    ) -> None:
        if state.finalized:
            return
        self._append(record, stream, state.decoder_for(stream).decode(chunk))

    def _append(self, record: _JobRecord, stream: StreamName, text: str) -> None:
        if not text:
            return
        record.job.append_output(text)
        event_type = StreamEventType.LOG if stream == StreamName.STDOUT else StreamEventType.ERROR
        self._emit(
            record,
            StreamEvent(type=event_type, payload={"chunk": text, "stream": stream.value}),
        )

    def _flush_decoders(self, record: _JobRecord, state: _RunState) -> None:
        if state.flushed:
            return
        state.flushed = True
        self._append(record, StreamName.STDOUT, state.stdout.flush())
        self._append(record, StreamName.STDERR, state.stderr.flush())

    def _parse(self, job: Job, exit_code: int | None) -> ParseResult:
        return parse_output(
            job.check_id,
            job.raw_output,
            exit_code,
            probe_domain=self._settings.global_dns_probe_domain,
            probe_target=self._settings.global_icmp_target,
        )

    def _on_timeout(self, record: _JobRecord, state: _RunState, timeout_seconds: int) -> None:
        if state.finalized:
            return
        job = record.job

        self._flush_decoders(record, state)
        parsed = self._parse(job, None)

        timeout_line = (
            f"The command ran longer than {timeout_seconds} seconds and was terminated."
        )
        structured: StructuredFacts = {
            **parsed.structured,
            "timed_out": True,
            "timeout_seconds": timeout_seconds,
        }

        logger.warning("Job {} ({}) timed out after {}s", job.id, job.check_id, timeout_seconds)
        self._emit(
            record,
            StreamEvent(
                type=StreamEventType.ERROR,
                payload={"message": f"The command timed out after {timeout_seconds} seconds."},
            ),
        )

        if state.handle is not None:
            state.handle.terminate()

        self._finalize(
            record,
            state,
            JobStatus.FAILED,
            None,
            structured,
            [*parsed.diagnosis, timeout_line],
            [timeout_line, *parsed.evidence],
        )

    def _on_exit(self, record: _JobRecord, state: _RunState, exit_code: int | None) -> None:
        if state.finalized:
            return

        self._flush_decoders(record, state)
        parsed = self._parse(record.job, exit_code)
        status = JobStatus.COMPLETED if exit_code == 0 else JobStatus.FAILED

        self._finalize(
            record,
            state,
            status,
            exit_code,
            {**parsed.structured, "timed_out": False},
            parsed.diagnosis,
            parsed.evidence,
        )

    def _fail_to_spawn(self, record: _JobRecord, state: _RunState, error: Exception) -> None:
        if state.finalized:
            return
        job = record.job
        message = str(error) or type(error).__name__

        self._flush_decoders(record, state)
        logger.warning("Job {} ({}) could not run: {}", job.id, job.check_id, message)
        self._emit(record, StreamEvent(type=StreamEventType.ERROR, payload={"message": message}))

        self._finalize(
            record,
            state,
            JobStatus.FAILED,
            None,
            {"timed_out": False},
            [SPAWN_FAILURE_DIAGNOSIS],
            [message],
        )

    def _finalize(
        self,
        record: _JobRecord,
        state: _RunState,
        status: JobStatus,
        exit_code: int | None,
        structured: StructuredFacts,
        diagnosis: list[str],
        evidence: list[str],
    ) -> None:
        if state.finalized:
            return
        state.finalized = True

        if state.timer is not None:
            state.timer.cancel()
            state.timer = None

        job = record.job
        job.finalize(
            status,
            exit_code,
            structured,
            diagnosis,
            evidence[: self._settings.evidence_limit],
        )
        logger.info(
            "Job {} {} (exit code {}, {} ms)",
            job.id,
            job.status.value,
            job.exit_code,
            job.duration_ms,
        )
        self._emit(
            record,
            StreamEvent(type=StreamEventType.COMPLETE, payload={"job": job.snapshot()}),
        )
