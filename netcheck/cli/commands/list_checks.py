from rich.console import Console

from netcheck.cli.formatters.job_formatter import format_check_table
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.infrastructure.catalog.command_catalog import CommandCatalog

console = Console()


def list_checks() -> None:
    """List the available diagnostic checks."""
    catalog = CommandCatalog(DiagnosticsSettings.from_env())
    format_check_table(console, catalog.list_definitions())
