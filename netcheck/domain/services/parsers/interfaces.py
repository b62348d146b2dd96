"""Parsers for adapters, addressing, DHCP and the Winsock catalog."""

import json
import re
from typing import Any

from netcheck.domain.services.parsers.common import (
    IPV4_PATTERN,
    ParseContext,
    find_ipv4,
    split_lines,
)
from netcheck.domain.value_objects.parse_result import ParseResult, StructuredFacts

LINK_STATUS_PATTERN = re.compile(r"\b(UP|DOWN|Up|Down|Disconnected|Disabled)\b")
LINK_UP_PATTERN = re.compile(r"\b(UP|Up)\b")
LINK_DOWN_PATTERN = re.compile(r"\b(DOWN|Down|Disconnected|Disabled)\b")

VIRTUAL_ADAPTER_PATTERN = re.compile(
    r"virtual|vmware|virtualbox|hyper-v|vethernet|tap|tun|wireguard|openvpn|anyconnect"
    r"|fortinet|zscaler|wintun|loopback|npcap|vpn",
    re.IGNORECASE,
)
ADAPTER_UP_PATTERN = re.compile(r"Up|Connected", re.IGNORECASE)
JSON_MARKER = "JSON:"

# Summary lines printed ahead of the JSON payload, English or localized.
VIRTUAL_COUNT_PATTERN = re.compile(r"(?:Virtual adapters|虚拟网卡数量)\s*[:：]\s*(\d+)", re.IGNORECASE)
PHYSICAL_COUNT_PATTERN = re.compile(r"(?:Physical adapters|物理网卡数量)\s*[:：]\s*(\d+)", re.IGNORECASE)
ROUTE_TYPE_PATTERN = re.compile(r"(?:Default route type|默认路由类型)\s*[:：]\s*(\S+)", re.IGNORECASE)
VIRTUAL_ROUTE_TYPES = {"virtual", "虚拟网卡"}

GATEWAY_VALUE_PATTERN = re.compile(
    r"(?:Default Gateway|默认网关)[ .]*[:：][ \t]*"
    r"((?:\d{1,3}\.){3}\d{1,3}|[0-9a-f]{0,4}(?::[0-9a-f]{0,4}){2,}(?:%\w+)?)",
    re.IGNORECASE,
)
DEFAULT_VIA_PATTERN = re.compile(r"\bdefault via\b", re.IGNORECASE)

DHCP_KEYWORD_PATTERN = re.compile(r"DHCP", re.IGNORECASE)
DHCP_ENABLED_PATTERN = re.compile(r"\b(Enabled|Yes)\b", re.IGNORECASE)
DHCP_DISABLED_PATTERN = re.compile(r"\b(Disabled|No)\b", re.IGNORECASE)

CATALOG_ENTRIES_PATTERN = re.compile(r"Catalog Entries\s*:\s*(\d+)", re.IGNORECASE)
CATALOG_PROVIDER_ENTRY_PATTERN = re.compile(r"Catalog Provider Entry", re.IGNORECASE)
LAYERED_CHAIN_ENTRY_PATTERN = re.compile(r"Layered\s+Chain\s+Entry", re.IGNORECASE)


def parse_nic_link_status(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    status_lines = [line for line in split_lines(output) if LINK_STATUS_PATTERN.search(line)]
    up_count = sum(1 for line in status_lines if LINK_UP_PATTERN.search(line))
    down_count = sum(1 for line in status_lines if LINK_DOWN_PATTERN.search(line))

    structured["adapter_count"] = len(status_lines)
    structured["link_up_count"] = up_count
    structured["link_down_or_disabled_count"] = down_count

    if not status_lines:
        diagnosis.append("Could not parse adapter link status.")
    elif up_count == 0:
        diagnosis.append("No adapter is in the UP state.")
    else:
        diagnosis.append(f"{up_count} adapter(s) are UP.")

    if down_count > 0:
        diagnosis.append(
            f"{down_count} adapter(s) are disconnected or disabled (possibly virtual adapters)."
        )

    return ParseResult(structured=structured, diagnosis=diagnosis)


def _as_list(value: Any) -> list[dict[str, Any]]:
    # ConvertTo-Json emits a bare object instead of a one-element array.
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return []


def _load_adapter_payload(output: str) -> dict[str, Any] | None:
    candidates: list[str] = []
    if JSON_MARKER in output:
        candidates.append(output.rsplit(JSON_MARKER, 1)[1])
    candidates.append(output)
    start, end = output.find("{"), output.rfind("}")
    if 0 <= start < end:
        candidates.append(output[start : end + 1])

    for candidate in candidates:
        try:
            payload = json.loads(candidate.strip())
        except ValueError:
            continue
        if isinstance(payload, dict):
            return payload
    return None


def _is_virtual(adapter: dict[str, Any]) -> bool:
    label = f"{adapter.get('Name') or ''} {adapter.get('InterfaceDescription') or ''}"
    return VIRTUAL_ADAPTER_PATTERN.search(label) is not None


def _is_up(adapter: dict[str, Any]) -> bool:
    return ADAPTER_UP_PATTERN.search(str(adapter.get("Status") or "")) is not None


def _route_metric(route: dict[str, Any]) -> float:
    try:
        return float(route.get("RouteMetric"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return float("inf")


def _facts_from_payload(payload: dict[str, Any]) -> tuple[StructuredFacts, str | None]:
    adapters = _as_list(payload.get("Adapters"))
    routes = sorted(_as_list(payload.get("DefaultRoutes")), key=_route_metric)

    virtual = [adapter for adapter in adapters if _is_virtual(adapter)]
    physical = [adapter for adapter in adapters if not _is_virtual(adapter)]

    structured: StructuredFacts = {
        "adapter_count": len(adapters),
        "virtual_adapter_count": len(virtual),
        "physical_adapter_count": len(physical),
        "virtual_up_count": sum(1 for adapter in virtual if _is_up(adapter)),
        "physical_up_count": sum(1 for adapter in physical if _is_up(adapter)),
        "default_route_found": bool(routes),
        "default_route_is_virtual": False,
    }

    if not routes:
        return structured, None

    primary = routes[0]
    interface = str(primary.get("InterfaceAlias") or "")
    if interface:
        structured["default_route_interface"] = interface

    owner = next(
        (
            adapter
            for adapter in adapters
            if adapter.get("InterfaceIndex") is not None
            and adapter.get("InterfaceIndex") == primary.get("InterfaceIndex")
        ),
        None,
    )
    if owner is not None:
        structured["default_route_is_virtual"] = _is_virtual(owner)
        interface = interface or str(owner.get("Name") or "")

    return structured, interface or None


def _facts_from_summary(output: str) -> StructuredFacts | None:
    virtual_match = VIRTUAL_COUNT_PATTERN.search(output)
    physical_match = PHYSICAL_COUNT_PATTERN.search(output)
    if not virtual_match and not physical_match:
        return None

    structured: StructuredFacts = {}
    if virtual_match:
        structured["virtual_adapter_count"] = int(virtual_match.group(1))
    if physical_match:
        structured["physical_adapter_count"] = int(physical_match.group(1))

    route_type = ROUTE_TYPE_PATTERN.search(output)
    structured["default_route_found"] = route_type is not None
    structured["default_route_is_virtual"] = (
        route_type is not None and route_type.group(1).lower() in VIRTUAL_ROUTE_TYPES
    )
    return structured


def parse_virtual_adapters(output: str, ctx: ParseContext) -> ParseResult:
    diagnosis: list[str] = []
    interface: str | None = None

    payload = _load_adapter_payload(output)
    if payload is not None:
        structured, interface = _facts_from_payload(payload)
    else:
        structured = _facts_from_summary(output) or {}

    if not structured:
        diagnosis.append("Could not parse adapter or default route details.")
        return ParseResult(structured=structured, diagnosis=diagnosis)

    diagnosis.append(
        f"Detected {structured.get('virtual_adapter_count', 0)} virtual adapter(s) and "
        f"{structured.get('physical_adapter_count', 0)} physical adapter(s)."
    )

    route_label = f" ({interface})" if interface else ""
    if structured.get("default_route_is_virtual") is True:
        diagnosis.append(
            f"The default route goes through a virtual adapter{route_label}; "
            "VPN or virtualization software may be capturing traffic."
        )
    elif structured.get("default_route_found") is True:
        diagnosis.append(f"The default route goes through a physical adapter{route_label}.")
    else:
        diagnosis.append("No default route candidate was reported.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def _has_default_gateway(output: str) -> bool:
    if GATEWAY_VALUE_PATTERN.search(output) or DEFAULT_VIA_PATTERN.search(output):
        return True
    return any(
        "gateway" in line.lower() and IPV4_PATTERN.search(line) for line in split_lines(output)
    )


def parse_nic_ip_config(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    ipv4_addresses = [
        address
        for address in find_ipv4(output)
        if address != "0.0.0.0" and not address.startswith("255.")
    ]
    has_default_gateway = _has_default_gateway(output)

    structured["ipv4_address_count"] = len(ipv4_addresses)
    structured["has_default_gateway"] = has_default_gateway

    if not ipv4_addresses:
        diagnosis.append("No IPv4 address found in the adapter configuration.")
    else:
        diagnosis.append(
            f"Found {len(ipv4_addresses)} IPv4 address(es) in the adapter configuration."
        )

    if has_default_gateway:
        diagnosis.append("A default gateway is configured.")
    else:
        diagnosis.append("No default gateway was explicitly found.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_dhcp_status(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    has_dhcp_keyword = DHCP_KEYWORD_PATTERN.search(output) is not None
    enabled_count = len(DHCP_ENABLED_PATTERN.findall(output))
    disabled_count = len(DHCP_DISABLED_PATTERN.findall(output))

    structured["detected_dhcp_fields"] = has_dhcp_keyword
    structured["dhcp_enabled_count"] = enabled_count
    structured["dhcp_disabled_count"] = disabled_count

    if not has_dhcp_keyword:
        diagnosis.append("No DHCP fields found in the command output.")
    elif enabled_count > 0:
        diagnosis.append("At least one adapter uses DHCP.")
    else:
        diagnosis.append("No adapter was explicitly found using DHCP.")

    if disabled_count > 0:
        diagnosis.append("Some adapters may use a static configuration.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_lsp_catalog(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    entries_match = CATALOG_ENTRIES_PATTERN.search(output)
    provider_entries = len(CATALOG_PROVIDER_ENTRY_PATTERN.findall(output))
    layered_count = len(LAYERED_CHAIN_ENTRY_PATTERN.findall(output))

    catalog_entries: int | None = None
    if entries_match:
        catalog_entries = int(entries_match.group(1))
    elif provider_entries > 0:
        catalog_entries = provider_entries

    if catalog_entries is not None:
        structured["catalog_entries"] = catalog_entries
    structured["layered_provider_count"] = layered_count

    if catalog_entries is None and layered_count == 0:
        diagnosis.append("Could not clearly parse Winsock catalog details.")
    else:
        diagnosis.append("Winsock catalog output collected.")

    if layered_count > 0:
        diagnosis.append(f"Found {layered_count} layered chain entries.")

    return ParseResult(structured=structured, diagnosis=diagnosis)
