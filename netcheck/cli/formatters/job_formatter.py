from rich.console import Console
from rich.markup import escape
from rich.table import Table

from netcheck.cli.theme import theme
from netcheck.domain.entities.job import Job
from netcheck.domain.ports.command_catalog_port import CheckDefinition
from netcheck.domain.services.parsers.common import render_value
from netcheck.domain.value_objects.stream_event import StreamEvent, StreamEventType


def format_check_table(console: Console, definitions: list[CheckDefinition]) -> None:
    table = Table(title="Diagnostic checks")
    table.add_column("ID", style=theme.TABLE_ID)
    table.add_column("Title")
    table.add_column("Category", style=theme.TABLE_SECONDARY)
    table.add_column("Target")
    table.add_column("Description", style=theme.DIM)

    for definition in definitions:
        target = definition.default_target if definition.requires_target else "-"
        table.add_row(
            definition.id,
            definition.title,
            definition.category,
            target,
            definition.description,
        )

    console.print(table)


def format_stream_event(console: Console, event: StreamEvent) -> None:
    """Print one live event. Raw output goes through without markup."""
    payload = event.payload
    if event.type == StreamEventType.START:
        console.print(f"[{theme.HEADER}]▶ {payload.get('title', '')}[/]")
        console.print(f"  [{theme.COMMAND_LINE}]$ {payload.get('command_line', '')}[/]")
    elif event.type == StreamEventType.LOG:
        console.out(payload.get("chunk", ""), end="", style=theme.STREAM_STDOUT, highlight=False)
    elif event.type == StreamEventType.ERROR:
        text = payload.get("chunk") or f"{payload.get('message', '')}\n"
        console.out(text, end="", style=theme.STREAM_STDERR, highlight=False)


def format_job(console: Console, job: Job) -> None:
    style = theme.status_style(job.status)
    exit_code = "-" if job.exit_code is None else str(job.exit_code)
    duration = "-" if job.duration_ms is None else f"{job.duration_ms} ms"

    console.print()
    console.print(
        f"[{style}]{job.status.value.upper()}[/] {job.title} "
        f"[{theme.DIM}](exit code {exit_code}, {duration})[/]"
    )
    if job.timed_out:
        console.print(f"[{theme.WARNING}]Timed out[/]")

    if job.diagnosis:
        console.print(f"\n[{theme.HEADER}]Diagnosis:[/]")
        for line in job.diagnosis:
            console.print(f"  • {line}", markup=False)

    if job.evidence:
        console.print(f"\n[{theme.HEADER}]Evidence:[/]")
        for line in job.evidence:
            console.print(f"  [{theme.DIM}]{escape(line)}[/]", highlight=False)

    if job.structured:
        table = Table(title="Structured facts", show_header=False)
        table.add_column("Fact", style=theme.TABLE_LABEL)
        table.add_column("Value", style=theme.TABLE_VALUE)
        for key, value in job.structured.items():
            table.add_row(key, escape(render_value(value)))
        console.print()
        console.print(table)
