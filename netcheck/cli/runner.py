from dataclasses import dataclass

from rich.console import Console

from netcheck.application.services.job_manager import JobManager
from netcheck.application.use_cases.run_diagnostics_batch import (
    BatchResult,
    RunDiagnosticsBatch,
)
from netcheck.cli.formatters.job_formatter import format_job, format_stream_event
from netcheck.cli.formatters.summary_formatter import (
    format_item_progress,
    format_item_table,
    format_summary,
)
from netcheck.cli.theme import theme
from netcheck.domain.entities.job import Job
from netcheck.domain.ports.command_catalog_port import CommandCatalogPort
from netcheck.domain.ports.process_runner_port import ProcessRunnerPort
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.domain.value_objects.invocation import CommandInput
from netcheck.infrastructure.catalog.command_catalog import CommandCatalog
from netcheck.infrastructure.catalog.layers import ONE_CLICK_PRESET
from netcheck.infrastructure.process.asyncio_process_runner import AsyncioProcessRunner


@dataclass
class Services:
    settings: DiagnosticsSettings
    catalog: CommandCatalogPort
    runner: ProcessRunnerPort


def build_services(settings: DiagnosticsSettings | None = None) -> Services:
    settings = settings or DiagnosticsSettings.from_env()
    return Services(
        settings=settings,
        catalog=CommandCatalog(settings),
        runner=AsyncioProcessRunner(),
    )


def _job_manager(services: Services) -> JobManager:
    return JobManager(services.catalog, services.runner, services.settings)


async def run_check_async(
    services: Services,
    check_id: str,
    command_input: CommandInput,
    console: Console,
) -> Job | None:
    """Run one check, stream its output live and print the result."""
    manager = _job_manager(services)
    snapshot = manager.create_job(check_id, command_input)

    events = manager.stream(snapshot.id)
    if events is None:
        return None

    final: Job | None = None
    async for event in events:
        if event.is_terminal:
            final = event.payload["job"]
        else:
            format_stream_event(console, event)

    if final is not None:
        format_job(console, final)
    return final


async def run_diagnose_async(
    services: Services,
    console: Console,
    *,
    count: int,
    timeout_seconds: int,
    concurrency: int,
) -> BatchResult:
    """Run the one-click preset and print the layer summary."""
    batch = RunDiagnosticsBatch(_job_manager(services), services.catalog)

    console.print(
        f"[{theme.HEADER}]Running {len(ONE_CLICK_PRESET)} checks[/] "
        f"[{theme.DIM}](concurrency {concurrency})[/]"
    )
    result = await batch.execute(
        [check_id.value for check_id in ONE_CLICK_PRESET],
        count=count,
        timeout_seconds=timeout_seconds,
        concurrency=concurrency,
        on_item=lambda _, item: format_item_progress(console, item),
    )

    console.print()
    format_item_table(console, result.items)
    format_summary(console, result.summary)
    return result
