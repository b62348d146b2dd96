from netcheck.domain.value_objects.check_id import CheckId, to_check_id
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.domain.value_objects.invocation import CommandInput, CommandInvocation
from netcheck.domain.value_objects.job_status import (
    JobStatus,
    LayerStatus,
    Severity,
    WorkflowStatus,
)
from netcheck.domain.value_objects.parse_result import (
    ParseResult,
    StructuredFacts,
    StructuredValue,
)
from netcheck.domain.value_objects.stream_event import (
    StreamEvent,
    StreamEventType,
    StreamName,
)
from netcheck.domain.value_objects.summary import (
    DEFAULT_WARNING_VOCABULARY,
    LayerDefinition,
    LayerSummary,
    OverviewSummary,
    RootCause,
    WarningVocabulary,
)

__all__ = [
    "CheckId",
    "CommandInput",
    "CommandInvocation",
    "DEFAULT_WARNING_VOCABULARY",
    "DiagnosticsSettings",
    "JobStatus",
    "LayerDefinition",
    "LayerStatus",
    "LayerSummary",
    "OverviewSummary",
    "ParseResult",
    "RootCause",
    "Severity",
    "StreamEvent",
    "StreamEventType",
    "StreamName",
    "StructuredFacts",
    "StructuredValue",
    "WarningVocabulary",
    "WorkflowStatus",
    "to_check_id",
]
