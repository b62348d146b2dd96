from netcheck.cli.formatters.job_formatter import (
    format_check_table,
    format_job,
    format_stream_event,
)
from netcheck.cli.formatters.summary_formatter import (
    STATUS_ICONS,
    format_item_progress,
    format_item_table,
    format_summary,
)

__all__ = [
    "STATUS_ICONS",
    "format_check_table",
    "format_job",
    "format_stream_event",
    "format_item_progress",
    "format_item_table",
    "format_summary",
]
