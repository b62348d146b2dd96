from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from netcheck.cli.theme import theme
from netcheck.domain.entities.workflow_item import WorkflowItem
from netcheck.domain.value_objects.job_status import WorkflowStatus
from netcheck.domain.value_objects.summary import OverviewSummary

STATUS_ICONS = {
    WorkflowStatus.PENDING: "·",
    WorkflowStatus.RUNNING: "…",
    WorkflowStatus.COMPLETED: "✓",
    WorkflowStatus.FAILED: "✗",
}


def format_item_progress(console: Console, item: WorkflowItem) -> None:
    """One line per finished check while a batch is running."""
    if item.status not in (WorkflowStatus.COMPLETED, WorkflowStatus.FAILED):
        return
    style = theme.status_style(item.status)
    duration = f" {item.duration_ms} ms" if item.duration_ms is not None else ""
    console.print(
        f"[{style}]{STATUS_ICONS[item.status]}[/] {escape(item.title)}"
        f"[{theme.DIM}]{duration}[/]"
    )


def format_item_table(console: Console, items: list[WorkflowItem]) -> None:
    table = Table(title="Check matrix")
    table.add_column("Check", style=theme.TABLE_ID)
    table.add_column("Status")
    table.add_column("Duration", style=theme.TABLE_SECONDARY, justify="right")
    table.add_column("Diagnosis")

    for item in items:
        style = theme.status_style(item.status)
        duration = "-" if item.duration_ms is None else f"{item.duration_ms} ms"
        status = item.status.value + (" (timed out)" if item.timed_out else "")
        table.add_row(
            item.check_id,
            f"[{style}]{status}[/]",
            duration,
            escape(item.diagnosis[0]) if item.diagnosis else "-",
        )

    console.print(table)


def format_summary(console: Console, summary: OverviewSummary) -> None:
    console.print(
        f"\n[{theme.HEADER}]Checks:[/] {summary.total} total, "
        f"[{theme.SUCCESS}]{summary.completed} completed[/], "
        f"[{theme.ERROR}]{summary.failed} failed[/], "
        f"[{theme.WARNING}]{summary.warnings} warnings[/], "
        f"{summary.running} running"
    )

    layers = Table(title="Layers")
    layers.add_column("Layer", style=theme.TABLE_LABEL)
    layers.add_column("Status")
    layers.add_column("Note", style=theme.DIM)
    for layer in summary.layers:
        style = theme.status_style(layer.status)
        layers.add_row(layer.label, f"[{style}]{layer.status.value}[/]", layer.note)
    console.print(layers)

    if not summary.causes:
        return

    lines = []
    for index, cause in enumerate(summary.causes, start=1):
        style = theme.severity_style(cause.severity)
        lines.append(
            f"{index}. [{style}]{escape(cause.title)}[/] [{theme.DIM}]({cause.severity.value})[/]\n"
            f"   {escape(cause.evidence)}"
        )
    border = theme.BORDER_ERROR if summary.failed else theme.BORDER_INFO
    console.print(Panel("\n".join(lines), title="Likely root causes", border_style=border))
