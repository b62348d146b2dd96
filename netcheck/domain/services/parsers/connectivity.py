"""Parsers for reachability checks: ping, traceroute, routes, gateway, HTTP."""

import re
from enum import Enum

from netcheck.domain.services.parsers.common import (
    IPV4_PATTERN,
    ParseContext,
    extract_gateway,
    split_lines,
    to_number,
)
from netcheck.domain.value_objects.parse_result import ParseResult, StructuredFacts

# Windows: "Lost = 0 (0% loss)", localized "(0% 丢失)"
WINDOWS_LOSS_PATTERN = re.compile(r"\(([\d.]+)%\s*(?:loss|丢失)\)", re.IGNORECASE)
# Inline variants: "loss = 25%", "丢失 = 25%"
INLINE_LOSS_PATTERN = re.compile(r"(?:loss|丢失)\s*[=:：]?\s*([\d.]+)%", re.IGNORECASE)
# Unix: "4 packets transmitted, 4 received, 0% packet loss"
UNIX_LOSS_PATTERN = re.compile(r"([\d.]+)%\s*packet\s*loss", re.IGNORECASE)

# Windows: "Average = 20ms", localized "平均 = 20ms"
WINDOWS_AVG_PATTERN = re.compile(r"(?:Average|平均)\s*[=:：]\s*(\d+)\s*ms", re.IGNORECASE)
# Unix: "rtt min/avg/max/mdev = 18.1/20.0/22.3/1.1 ms"
UNIX_AVG_PATTERN = re.compile(r"=\s*[\d.]+/([\d.]+)/[\d.]+(?:/[\d.]+)?\s*ms", re.IGNORECASE)

ACCEPTABLE_LOSS_PERCENT = 5
HIGH_LATENCY_MS = 200

HOP_LINE_PATTERN = re.compile(r"^\s*\d+\s+")

WINDOWS_DEFAULT_ROUTE_PATTERN = re.compile(r"\b0\.0\.0\.0\s+0\.0\.0\.0\b")
DEFAULT_ROUTE_KEYWORD_PATTERN = re.compile(r"\bdefault\b|默认", re.IGNORECASE)

NEIGHBOR_STATE_PATTERN = re.compile(
    r"\b(Reachable|Stale|Delay|Probe|Incomplete|Unreachable|Permanent|Failed)\b",
    re.IGNORECASE,
)
RESOLVED_NEIGHBOR_STATES = {"reachable", "stale", "permanent"}
UNRESOLVED_NEIGHBOR_STATES = {"incomplete", "unreachable", "failed"}

HTTP_STATUS_PATTERN = re.compile(r"HTTP/\d(?:\.\d)?\s+(\d{3})", re.IGNORECASE)


class LossClass(str, Enum):
    ACCEPTABLE = "acceptable"
    UNSTABLE = "unstable"
    UNREACHABLE = "unreachable"
    UNKNOWN = "unknown"


def classify_loss(packet_loss: float | None) -> LossClass:
    if packet_loss is None:
        return LossClass.UNKNOWN
    if packet_loss >= 100:
        return LossClass.UNREACHABLE
    if packet_loss > ACCEPTABLE_LOSS_PERCENT:
        return LossClass.UNSTABLE
    return LossClass.ACCEPTABLE


def _first_group(output: str, *patterns: re.Pattern[str]) -> str | None:
    for pattern in patterns:
        match = pattern.search(output)
        if match:
            return match.group(1)
    return None


def parse_ping(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    packet_loss = to_number(
        _first_group(output, WINDOWS_LOSS_PATTERN, INLINE_LOSS_PATTERN, UNIX_LOSS_PATTERN)
    )
    avg_latency = to_number(_first_group(output, WINDOWS_AVG_PATTERN, UNIX_AVG_PATTERN))

    if packet_loss is not None:
        structured["packet_loss_percent"] = packet_loss
    if avg_latency is not None:
        structured["avg_latency_ms"] = avg_latency

    loss_class = classify_loss(packet_loss)
    if loss_class == LossClass.UNKNOWN:
        diagnosis.append("Could not parse packet loss; the target may be unreachable.")
    elif loss_class == LossClass.UNREACHABLE:
        diagnosis.append(
            "Packet loss is 100%; the target is unreachable. "
            "Check the gateway, routing, firewall or upstream link."
        )
    elif loss_class == LossClass.UNSTABLE:
        diagnosis.append("Packet loss is above 5%; the link or upstream path may be unstable.")
    else:
        diagnosis.append("Packet loss is within the acceptable range.")

    if avg_latency is not None:
        if avg_latency > HIGH_LATENCY_MS:
            diagnosis.append(f"Average latency is high (>{HIGH_LATENCY_MS} ms).")
        else:
            diagnosis.append("Average latency is within the normal range.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_global_internet_icmp(output: str, ctx: ParseContext) -> ParseResult:
    base = parse_ping(output, ctx)
    diagnosis = list(base.diagnosis)

    packet_loss = base.structured.get("packet_loss_percent")
    if packet_loss == 0:
        diagnosis.append("Global ICMP probe is healthy.")
    elif packet_loss is not None:
        diagnosis.append("Global ICMP probe is losing packets; the egress path may be unstable.")

    structured = {**base.structured, "probe_target": ctx.probe_target}
    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_trace_route(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    hop_lines = [line for line in split_lines(output) if HOP_LINE_PATTERN.match(line)]
    timeout_lines = [line for line in hop_lines if "*" in line]

    structured["hop_count"] = len(hop_lines)
    structured["timeout_hop_count"] = len(timeout_lines)

    if not hop_lines:
        diagnosis.append("Could not parse any hops from the trace.")
    elif len(timeout_lines) > len(hop_lines) / 2:
        diagnosis.append(
            "Most hops are timing out; intermediate devices may filter probes "
            "or the path is unstable."
        )
    else:
        diagnosis.append("The route is traceable with few timed-out hops.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_default_route(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    lines = split_lines(output)
    route_lines = [line for line in lines if line.strip()]
    default_lines = [
        line
        for line in lines
        if WINDOWS_DEFAULT_ROUTE_PATTERN.search(line) or DEFAULT_ROUTE_KEYWORD_PATTERN.search(line)
    ]

    structured["route_line_count"] = len(route_lines)
    structured["default_route_count"] = len(default_lines)
    structured["has_default_route"] = len(default_lines) > 0

    if default_lines:
        diagnosis.append("A default route is present.")
    else:
        diagnosis.append("No default route found; internet connectivity is likely missing.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_gateway_reachability(output: str, ctx: ParseContext) -> ParseResult:
    base = parse_ping(output, ctx)
    structured: StructuredFacts = dict(base.structured)
    diagnosis: list[str] = []

    gateway = extract_gateway(output)
    structured["gateway_found"] = gateway is not None
    if gateway is None:
        diagnosis.append("No default gateway detected.")
        return ParseResult(structured=structured, diagnosis=diagnosis)

    structured["gateway"] = gateway

    packet_loss = structured.get("packet_loss_percent")
    if isinstance(packet_loss, int | float):
        if packet_loss >= 100:
            diagnosis.append(
                "The default gateway is unreachable; check the link to the switch or gateway."
            )
        elif packet_loss > 0:
            diagnosis.append(
                "The default gateway is dropping packets; the local link or gateway "
                "may be unstable."
            )
        else:
            diagnosis.append("The default gateway is reachable.")
    else:
        diagnosis.append("Could not parse packet loss to the default gateway.")

    avg_latency = structured.get("avg_latency_ms")
    if isinstance(avg_latency, int | float):
        diagnosis.append(f"Average latency to the default gateway is {avg_latency} ms.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def _contains_address(line: str, address: str) -> bool:
    return re.search(rf"(?<![\w.]){re.escape(address)}(?![\w.])", line) is not None


def parse_arp_neighbors(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    gateway = extract_gateway(output)
    structured["gateway_found"] = gateway is not None
    if gateway is not None:
        structured["gateway"] = gateway

    neighbor_lines = [
        line
        for line in split_lines(output)
        if IPV4_PATTERN.search(line) and not line.strip().upper().startswith("GATEWAY:")
    ]

    def count_state(state: str) -> int:
        return sum(1 for line in neighbor_lines if re.search(rf"\b{state}\b", line, re.IGNORECASE))

    structured["neighbor_count"] = len(neighbor_lines)
    structured["reachable_count"] = count_state("Reachable")
    structured["stale_count"] = count_state("Stale")
    structured["incomplete_count"] = count_state("Incomplete")

    gateway_state: str | None = None
    if gateway is not None:
        gateway_line = next(
            (line for line in neighbor_lines if _contains_address(line, gateway)), None
        )
        if gateway_line:
            state_match = NEIGHBOR_STATE_PATTERN.search(gateway_line)
            if state_match:
                gateway_state = state_match.group(1)
                structured["gateway_state"] = gateway_state

    if gateway is None:
        diagnosis.append("No default gateway detected.")
    elif gateway_state is None:
        diagnosis.append("The default gateway was not found in the neighbor table.")
    elif gateway_state.lower() in RESOLVED_NEIGHBOR_STATES:
        diagnosis.append("The default gateway ARP entry is resolved.")
    elif gateway_state.lower() in UNRESOLVED_NEIGHBOR_STATES:
        diagnosis.append("The default gateway ARP entry is unresolved; check layer 2 connectivity.")
    else:
        diagnosis.append(
            f"The default gateway neighbor state is {gateway_state}; confirm with the raw output."
        )

    if not neighbor_lines:
        diagnosis.append("The neighbor table has no IPv4 entries.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_http_head(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    status_match = HTTP_STATUS_PATTERN.search(output)
    status_code = int(status_match.group(1)) if status_match else None

    if status_code is None:
        diagnosis.append(
            "Could not parse an HTTP status code; check the URL, TLS and connectivity."
        )
    else:
        structured["status_code"] = status_code
        if status_code >= 500:
            diagnosis.append(
                "The server returned 5xx; the target is reachable "
                "but the backend reported a failure."
            )
        elif status_code >= 400:
            diagnosis.append(
                "The server returned 4xx; connectivity is usually fine, check the request."
            )
        else:
            diagnosis.append("The HTTP target is reachable and returned a non-error status.")

    return ParseResult(structured=structured, diagnosis=diagnosis)
