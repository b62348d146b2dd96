"""CLI theme configuration - all colors in one place.

Modify these values to customize the terminal color scheme.
Colors use Rich markup syntax (e.g., "green", "bold red", "dim italic").
"""

from netcheck.domain.value_objects.job_status import (
    JobStatus,
    LayerStatus,
    Severity,
    WorkflowStatus,
)


class Theme:
    """Terminal color theme for the netcheck CLI."""

    # -------------------------------------------------------------------------
    # Status colors (for success/error/warning indicators)
    # -------------------------------------------------------------------------
    SUCCESS = "green"
    SUCCESS_BOLD = "bold green"
    ERROR = "red"
    ERROR_BOLD = "bold red"
    WARNING = "yellow"
    WARNING_BOLD = "bold yellow"
    INFO = "cyan"
    INFO_BOLD = "bold cyan"

    # -------------------------------------------------------------------------
    # Text styles
    # -------------------------------------------------------------------------
    HEADER = "bold"
    HEADER_SECTION = "bold magenta"
    DIM = "grey62"
    DIM_ITALIC = "grey62 italic"
    TEXT = "white"

    # -------------------------------------------------------------------------
    # Table columns
    # -------------------------------------------------------------------------
    TABLE_ID = "cyan"
    TABLE_LABEL = "grey62"
    TABLE_VALUE = "bold"
    TABLE_SECONDARY = "grey62"

    # -------------------------------------------------------------------------
    # Live output
    # -------------------------------------------------------------------------
    STREAM_STDOUT = "grey74"
    STREAM_STDERR = "yellow"
    COMMAND_LINE = "light_steel_blue"

    # -------------------------------------------------------------------------
    # Job and layer status
    # -------------------------------------------------------------------------
    STATUS_PASSED = "bold green"
    STATUS_WARNING = "bold yellow"
    STATUS_FAILED = "bold red"
    STATUS_RUNNING = "cyan"
    STATUS_PENDING = "grey62"

    # -------------------------------------------------------------------------
    # Root cause severity
    # -------------------------------------------------------------------------
    SEVERITY_HIGH = "bold red"
    SEVERITY_MEDIUM = "yellow"
    SEVERITY_LOW = "grey62"

    # -------------------------------------------------------------------------
    # Panel borders
    # -------------------------------------------------------------------------
    BORDER_INFO = "blue"
    BORDER_ERROR = "red"
    BORDER_WARNING = "yellow"

    def status_style(self, status: JobStatus | WorkflowStatus | LayerStatus) -> str:
        value = status.value
        if value in ("completed", "passed"):
            return self.STATUS_PASSED
        if value == "warning":
            return self.STATUS_WARNING
        if value == "failed":
            return self.STATUS_FAILED
        if value == "running":
            return self.STATUS_RUNNING
        return self.STATUS_PENDING

    def severity_style(self, severity: Severity) -> str:
        return {
            Severity.HIGH: self.SEVERITY_HIGH,
            Severity.MEDIUM: self.SEVERITY_MEDIUM,
            Severity.LOW: self.SEVERITY_LOW,
        }[severity]


# Default theme instance - import this in other modules
theme = Theme()
