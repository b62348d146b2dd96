import asyncio

import typer
from pydantic import ValidationError
from rich.console import Console

from netcheck.cli.runner import build_services, run_check_async
from netcheck.cli.theme import theme
from netcheck.domain.ports.command_catalog_port import UnknownCheckError
from netcheck.domain.value_objects.invocation import CommandInput
from netcheck.domain.value_objects.job_status import JobStatus

console = Console()


def run_check(
    check_id: str = typer.Argument(..., help="Check ID (see 'netcheck list')"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target host or URL"),
    count: int | None = typer.Option(None, "--count", "-c", help="Probe count (1-20)"),
    timeout: int | None = typer.Option(None, "--timeout", help="Timeout in seconds (1-30)"),
) -> None:
    """Run one diagnostic check and stream its output."""
    services = build_services()

    try:
        definition = services.catalog.get(check_id)
    except UnknownCheckError as e:
        console.print(f"[{theme.ERROR}]{e}[/]")
        console.print(f"[{theme.DIM}]Use 'netcheck list' to see available checks.[/]")
        raise typer.Exit(1) from None

    try:
        command_input = CommandInput(
            target=target or definition.default_target,
            count=count if count is not None else services.settings.default_count,
            timeout_seconds=(
                timeout if timeout is not None else services.settings.default_timeout_seconds
            ),
        )
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise typer.BadParameter(errors) from None

    job = asyncio.run(run_check_async(services, definition.id, command_input, console))
    if job is None or job.status != JobStatus.COMPLETED:
        raise typer.Exit(1)
