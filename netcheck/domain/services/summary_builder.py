"""Roll workflow items up into layer health and ranked root causes.

Everything here is a pure function of its inputs: the same items and layers
always produce an equal OverviewSummary, and nothing is mutated.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from netcheck.domain.entities.workflow_item import WorkflowItem
from netcheck.domain.value_objects.check_id import CheckId
from netcheck.domain.value_objects.job_status import LayerStatus, Severity, WorkflowStatus
from netcheck.domain.value_objects.parse_result import StructuredValue
from netcheck.domain.value_objects.summary import (
    DEFAULT_WARNING_VOCABULARY,
    LayerDefinition,
    LayerSummary,
    OverviewSummary,
    RootCause,
    WarningVocabulary,
)

MAX_ROOT_CAUSES = 3
UNSTABLE_LOSS_PERCENT = 5
TOTAL_LOSS_PERCENT = 100

LAYER_NOTES = {
    LayerStatus.PENDING: "No checks selected",
    LayerStatus.RUNNING: "Checks in progress",
    LayerStatus.FAILED: "This layer has failed checks",
    LayerStatus.WARNING: "This layer has warning signals",
    LayerStatus.PASSED: "Healthy",
}


def _number(value: StructuredValue | None) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value


def _no_adapter_up(item: WorkflowItem) -> bool:
    adapter_count = _number(item.structured.get("adapter_count"))
    link_up_count = _number(item.structured.get("link_up_count"))
    return (
        adapter_count is not None
        and adapter_count > 0
        and link_up_count is not None
        and link_up_count == 0
    )


def has_warning(
    item: WorkflowItem, vocabulary: WarningVocabulary = DEFAULT_WARNING_VOCABULARY
) -> bool:
    """Return True when a completed item still shows a problem signal.

    Pending, running and failed items are never warnings; failure is
    reported separately.
    """
    if item.status != WorkflowStatus.COMPLETED:
        return False
    if item.timed_out:
        return True

    if item.check_id == CheckId.NIC_LINK_STATUS:
        return _no_adapter_up(item)
    if item.check_id == CheckId.PROXY_CONFLICT_CHECK:
        return item.structured.get("proxy_conflict") is True
    if item.check_id == CheckId.VIRTUAL_ADAPTER_CHECK:
        return item.structured.get("default_route_is_virtual") is True

    packet_loss = _number(item.structured.get("packet_loss_percent"))
    if packet_loss is not None and packet_loss > UNSTABLE_LOSS_PERCENT:
        return True

    if (
        item.structured.get("has_default_route") is False
        or item.structured.get("resolved") is False
    ):
        return True

    return any(vocabulary.matches(line) for line in item.diagnosis)


def first_evidence(item: WorkflowItem, fallback: str) -> str:
    for line in item.evidence:
        if line.strip():
            return line
    for line in item.diagnosis:
        if line.strip():
            return line
    return fallback


def _layer_status(
    related: list[WorkflowItem], warns: Callable[[WorkflowItem], bool]
) -> LayerStatus:
    if not related:
        return LayerStatus.PENDING
    if any(item.status in (WorkflowStatus.PENDING, WorkflowStatus.RUNNING) for item in related):
        return LayerStatus.RUNNING
    if any(item.status == WorkflowStatus.FAILED or item.timed_out for item in related):
        return LayerStatus.FAILED
    if any(warns(item) for item in related):
        return LayerStatus.WARNING
    return LayerStatus.PASSED


@dataclass(frozen=True)
class RootCauseRule:
    """One named inference over a single check's structured facts."""

    check_id: CheckId
    title: str
    severity: Severity
    triggered: Callable[[WorkflowItem], bool]
    canned_evidence: Callable[[WorkflowItem], str]

    def evaluate(self, item: WorkflowItem | None) -> RootCause | None:
        if item is None or not self.triggered(item):
            return None
        return RootCause(
            title=self.title,
            evidence=first_evidence(item, self.canned_evidence(item)),
            severity=self.severity,
        )


def _global_loss(item: WorkflowItem) -> int | float | None:
    return _number(item.structured.get("packet_loss_percent"))


def _total_outage(item: WorkflowItem) -> bool:
    loss = _global_loss(item)
    return loss is not None and loss >= TOTAL_LOSS_PERCENT


def _unstable_egress(item: WorkflowItem) -> bool:
    loss = _global_loss(item)
    return loss is not None and UNSTABLE_LOSS_PERCENT < loss < TOTAL_LOSS_PERCENT


def _probe_fact(item: WorkflowItem, key: str, default: str) -> str:
    value = item.structured.get(key)
    return str(value) if isinstance(value, str) and value else default


ROOT_CAUSE_RULES: tuple[RootCauseRule, ...] = (
    RootCauseRule(
        check_id=CheckId.NIC_LINK_STATUS,
        title="No usable network adapter",
        severity=Severity.HIGH,
        triggered=_no_adapter_up,
        canned_evidence=lambda item: "Adapter link status shows zero adapters UP.",
    ),
    RootCauseRule(
        check_id=CheckId.VIRTUAL_ADAPTER_CHECK,
        title="A virtual adapter owns the default route",
        severity=Severity.MEDIUM,
        triggered=lambda item: item.structured.get("default_route_is_virtual") is True,
        canned_evidence=lambda item: "The default route is carried by a virtual adapter.",
    ),
    RootCauseRule(
        check_id=CheckId.DEFAULT_ROUTE_CHECK,
        title="Default route missing",
        severity=Severity.HIGH,
        triggered=lambda item: item.structured.get("has_default_route") is False,
        canned_evidence=lambda item: "No default route found in the routing table.",
    ),
    RootCauseRule(
        check_id=CheckId.GLOBAL_DNS_PROBE,
        title="DNS resolution failed",
        severity=Severity.HIGH,
        triggered=lambda item: item.structured.get("resolved") is False,
        canned_evidence=lambda item: (
            "The global DNS probe could not resolve "
            f"{_probe_fact(item, 'probe_domain', 'the probe domain')}."
        ),
    ),
    RootCauseRule(
        check_id=CheckId.PROXY_CONFLICT_CHECK,
        title="Proxy configuration conflict",
        severity=Severity.MEDIUM,
        triggered=lambda item: item.structured.get("proxy_conflict") is True,
        canned_evidence=lambda item: "A system proxy and an environment proxy are both set.",
    ),
    RootCauseRule(
        check_id=CheckId.GLOBAL_INTERNET_ICMP,
        title="No internet connectivity",
        severity=Severity.HIGH,
        triggered=_total_outage,
        canned_evidence=lambda item: (
            "The global ICMP probe to "
            f"{_probe_fact(item, 'probe_target', 'the probe target')} lost 100% of packets."
        ),
    ),
    RootCauseRule(
        check_id=CheckId.GLOBAL_INTERNET_ICMP,
        title="Unstable internet egress",
        severity=Severity.MEDIUM,
        triggered=_unstable_egress,
        canned_evidence=lambda item: (
            f"The global ICMP probe lost {_global_loss(item)}% of packets."
        ),
    ),
)


def _generic_cause(failed: int, warnings: int) -> RootCause:
    if failed > 0:
        return RootCause(
            title="Some checks failed",
            evidence=f"{failed} check(s) failed to run; review the check matrix and live output.",
            severity=Severity.HIGH,
        )
    if warnings > 0:
        return RootCause(
            title="Warning signals present",
            evidence=f"{warnings} check(s) raised warnings; review the check matrix.",
            severity=Severity.MEDIUM,
        )
    return RootCause(
        title="Checks completed",
        evidence="All checks completed and no problem was detected.",
        severity=Severity.LOW,
    )


def build_summary(
    items: Sequence[WorkflowItem],
    layers: Sequence[LayerDefinition],
    vocabulary: WarningVocabulary = DEFAULT_WARNING_VOCABULARY,
) -> OverviewSummary:
    """Compute counts, per-layer status and up to three ranked root causes.

    Args:
        items: Current workflow items, at most one per check id is expected;
            a later duplicate shadows an earlier one.
        layers: Static layer topology. A layer with no member present is
            reported as pending.
        vocabulary: Diagnosis keywords treated as warning signals.
    """

    def warns(item: WorkflowItem) -> bool:
        return has_warning(item, vocabulary)

    total = len(items)
    running = sum(1 for item in items if item.status == WorkflowStatus.RUNNING)
    completed = sum(1 for item in items if item.status == WorkflowStatus.COMPLETED)
    failed = sum(1 for item in items if item.status == WorkflowStatus.FAILED)
    warnings = sum(1 for item in items if warns(item))

    by_id = {item.check_id: item for item in items}

    layer_summaries: list[LayerSummary] = []
    for layer in layers:
        related = [by_id[check_id] for check_id in layer.check_ids if check_id in by_id]
        status = _layer_status(related, warns)
        layer_summaries.append(
            LayerSummary(id=layer.id, label=layer.label, status=status, note=LAYER_NOTES[status])
        )

    causes = [
        cause
        for rule in ROOT_CAUSE_RULES
        if (cause := rule.evaluate(by_id.get(rule.check_id.value))) is not None
    ]

    if not causes and total > 0 and running == 0:
        causes.append(_generic_cause(failed, warnings))

    # sorted() is stable, so equal severities keep rule order.
    ranked = sorted(causes, key=lambda cause: cause.severity.weight, reverse=True)

    return OverviewSummary(
        total=total,
        running=running,
        completed=completed,
        failed=failed,
        warnings=warnings,
        layers=layer_summaries,
        causes=ranked[:MAX_ROOT_CAUSES],
    )
