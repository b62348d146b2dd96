import asyncio

import typer
from rich.console import Console

from netcheck.cli.runner import build_services, run_diagnose_async
from netcheck.domain.value_objects.diagnostics_settings import (
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
)

console = Console()


def diagnose(
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-j",
        min=MIN_CONCURRENCY,
        max=MAX_CONCURRENCY,
        help="Checks to run in parallel (1-8)",
    ),
    count: int = typer.Option(4, "--count", "-c", min=1, max=20, help="Probe count"),
    timeout: int = typer.Option(10, "--timeout", min=1, max=30, help="Per-check timeout (s)"),
) -> None:
    """Run the one-click diagnosis and summarize it by layer."""
    services = build_services()
    result = asyncio.run(
        run_diagnose_async(
            services,
            console,
            count=count,
            timeout_seconds=timeout,
            concurrency=concurrency or services.settings.default_concurrency,
        )
    )
    if result.summary.failed:
        raise typer.Exit(1)
