import re

from pydantic import BaseModel, Field, field_validator

from netcheck.domain.value_objects.check_id import check_id_value
from netcheck.domain.value_objects.job_status import LayerStatus, Severity


class LayerDefinition(BaseModel, frozen=True):
    id: str
    label: str
    check_ids: list[str] = Field(default_factory=list)

    @field_validator("check_ids", mode="before")
    @classmethod
    def _normalize_check_ids(cls, value: object) -> object:
        if isinstance(value, list | tuple):
            return [check_id_value(item) for item in value]
        return value


class LayerSummary(BaseModel, frozen=True):
    id: str
    label: str
    status: LayerStatus
    note: str


class RootCause(BaseModel, frozen=True):
    title: str
    evidence: str
    severity: Severity


class OverviewSummary(BaseModel, frozen=True):
    total: int
    running: int
    completed: int
    failed: int
    warnings: int
    layers: list[LayerSummary]
    causes: list[RootCause]


class WarningVocabulary(BaseModel, frozen=True):
    """Diagnosis keywords that flag a completed check as a warning.

    Keys are locale tags, values are regular expressions matched
    case-insensitively against each diagnosis line. Adding a locale means
    adding one entry; nothing else needs to change.
    """

    patterns: dict[str, str]

    def matches(self, line: str) -> bool:
        return any(re.search(pattern, line, re.IGNORECASE) for pattern in self.patterns.values())


DEFAULT_WARNING_VOCABULARY = WarningVocabulary(
    patterns={
        "en": r"\b(failed|failure|timeout|timed\s*out|without|missing|unstable|unreachable)\b",
        "zh": r"(失败|超时|缺失|不稳定|不可达|异常|告警)",
    }
)
