import re
from collections.abc import Callable, Iterable

from pydantic import BaseModel

from netcheck.domain.value_objects.diagnostics_settings import (
    DEFAULT_GLOBAL_DNS_PROBE_DOMAIN,
    DEFAULT_GLOBAL_ICMP_TARGET,
)
from netcheck.domain.value_objects.parse_result import (
    ParseResult,
    StructuredFacts,
    StructuredValue,
)

IPV4_PATTERN = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
IPV6_PATTERN = re.compile(r"\b(?:[A-F0-9]{1,4}:){2,7}[A-F0-9]{1,4}\b", re.IGNORECASE)
GATEWAY_SENTINEL_PATTERN = re.compile(r"GATEWAY:([^\r\n]+)", re.IGNORECASE)
GATEWAY_NOT_FOUND = "NOT_FOUND"

EVIDENCE_DIAGNOSIS_LINES = 3
EVIDENCE_FACT_PAIRS = 4


class ParseContext(BaseModel, frozen=True):
    exit_code: int | None = None
    probe_domain: str = DEFAULT_GLOBAL_DNS_PROBE_DOMAIN
    probe_target: str = DEFAULT_GLOBAL_ICMP_TARGET


Parser = Callable[[str, ParseContext], ParseResult]


def unique(values: Iterable[str]) -> list[str]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(values))


def split_lines(output: str) -> list[str]:
    return re.split(r"\r?\n", output)


def non_blank_lines(output: str) -> list[str]:
    return [line.strip() for line in split_lines(output) if line.strip()]


def to_number(raw: str | None) -> int | float | None:
    """Parse a numeric token; integral values come back as int."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if value.is_integer():
        return int(value)
    return value


def find_ipv4(output: str) -> list[str]:
    return unique(IPV4_PATTERN.findall(output))


def find_ipv6(output: str) -> list[str]:
    return unique(IPV6_PATTERN.findall(output))


def extract_gateway(output: str) -> str | None:
    """Read the GATEWAY:<addr> sentinel line; None when absent or NOT_FOUND."""
    match = GATEWAY_SENTINEL_PATTERN.search(output)
    if not match:
        return None
    value = match.group(1).strip()
    if not value or value.upper() == GATEWAY_NOT_FOUND:
        return None
    return value


def render_value(value: StructuredValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def synthesize_evidence(structured: StructuredFacts, diagnosis: list[str]) -> list[str]:
    evidence = list(diagnosis[:EVIDENCE_DIAGNOSIS_LINES])
    for key, value in list(structured.items())[:EVIDENCE_FACT_PAIRS]:
        evidence.append(f"{key}={render_value(value)}")
    return evidence


def with_evidence(result: ParseResult) -> ParseResult:
    """Fill in evidence when a parser supplied none.

    Evidence is never empty: if there is nothing to quote, a placeholder
    line says so.
    """
    if result.evidence:
        return result

    evidence = synthesize_evidence(result.structured, result.diagnosis)
    if not evidence:
        evidence = ["No output was captured."]

    return result.model_copy(update={"evidence": evidence})
