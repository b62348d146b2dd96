"""Dispatch table from check id to output parser.

Parsing is a pure function of (check id, output text, exit code). Every
entry point here returns a ParseResult with non-empty evidence and never
raises, whatever the input.
"""

import re

from loguru import logger

from netcheck.domain.services.parsers.common import ParseContext, Parser, with_evidence
from netcheck.domain.services.parsers.connectivity import (
    parse_arp_neighbors,
    parse_default_route,
    parse_gateway_reachability,
    parse_global_internet_icmp,
    parse_http_head,
    parse_ping,
    parse_trace_route,
)
from netcheck.domain.services.parsers.dns import (
    parse_dns_lookup,
    parse_dns_server_config,
    parse_dns_server_probe,
    parse_global_dns_probe,
    parse_hosts_file,
)
from netcheck.domain.services.parsers.interfaces import (
    parse_dhcp_status,
    parse_lsp_catalog,
    parse_nic_ip_config,
    parse_nic_link_status,
    parse_virtual_adapters,
)
from netcheck.domain.services.parsers.proxy import (
    parse_ie_proxy,
    parse_network_env_vars,
    parse_proxy_conflict,
    parse_winhttp_proxy,
)
from netcheck.domain.value_objects.check_id import CheckId, to_check_id
from netcheck.domain.value_objects.diagnostics_settings import (
    DEFAULT_GLOBAL_DNS_PROBE_DOMAIN,
    DEFAULT_GLOBAL_ICMP_TARGET,
)
from netcheck.domain.value_objects.parse_result import ParseResult

UNSUPPORTED_PLATFORM_MARKER = "UNSUPPORTED_PLATFORM:"
UNSUPPORTED_FEATURE_PATTERN = re.compile(r"UNSUPPORTED_PLATFORM:\s*([^\r\n]+)", re.IGNORECASE)

PARSERS: dict[CheckId, Parser] = {
    CheckId.PING_TARGET: parse_ping,
    CheckId.TRACE_ROUTE: parse_trace_route,
    CheckId.HTTP_HEAD: parse_http_head,
    CheckId.DEFAULT_ROUTE_CHECK: parse_default_route,
    CheckId.GATEWAY_REACHABILITY: parse_gateway_reachability,
    CheckId.ARP_NEIGHBOR_CHECK: parse_arp_neighbors,
    CheckId.GLOBAL_INTERNET_ICMP: parse_global_internet_icmp,
    CheckId.DNS_LOOKUP: parse_dns_lookup,
    CheckId.GLOBAL_DNS_PROBE: parse_global_dns_probe,
    CheckId.DNS_SERVER_CONFIG: parse_dns_server_config,
    CheckId.DNS_SERVER_PROBE: parse_dns_server_probe,
    CheckId.HOSTS_FILE_CHECK: parse_hosts_file,
    CheckId.NIC_LINK_STATUS: parse_nic_link_status,
    CheckId.VIRTUAL_ADAPTER_CHECK: parse_virtual_adapters,
    CheckId.NIC_IP_CONFIG: parse_nic_ip_config,
    CheckId.DHCP_STATUS: parse_dhcp_status,
    CheckId.LSP_CATALOG_CHECK: parse_lsp_catalog,
    CheckId.IE_PROXY_CHECK: parse_ie_proxy,
    CheckId.WINHTTP_PROXY_CHECK: parse_winhttp_proxy,
    CheckId.PROXY_CONFLICT_CHECK: parse_proxy_conflict,
    CheckId.NETWORK_ENV_VARS: parse_network_env_vars,
}


def is_unsupported_platform_output(output: str) -> bool:
    return UNSUPPORTED_PLATFORM_MARKER in output


def parse_unsupported_platform(output: str) -> ParseResult:
    match = UNSUPPORTED_FEATURE_PATTERN.search(output)
    feature = match.group(1).strip() if match else ""
    feature = feature or "this check"
    return ParseResult(
        structured={"supported_on_current_platform": False, "feature": feature},
        diagnosis=[f"The current operating system does not support {feature}."],
    )


def parse_fallback(exit_code: int | None) -> ParseResult:
    return ParseResult(
        structured={"exit_code": exit_code if exit_code is not None else -1},
        diagnosis=["The command finished; there is no structured parsing rule for it yet."],
    )


def _degraded(check_id: CheckId, error: Exception) -> ParseResult:
    logger.warning("Parser for {} raised {}: {}", check_id.value, type(error).__name__, error)
    return ParseResult(
        structured={"parse_error": type(error).__name__},
        diagnosis=[f"Could not parse the {check_id.value} output; review the raw output."],
    )


def parse_output(
    check_id: CheckId | str,
    output: str,
    exit_code: int | None = None,
    *,
    probe_domain: str = DEFAULT_GLOBAL_DNS_PROBE_DOMAIN,
    probe_target: str = DEFAULT_GLOBAL_ICMP_TARGET,
) -> ParseResult:
    """Turn the full text of a check's output into facts, diagnosis and evidence.

    Args:
        check_id: Check the output came from. Ids outside the known set get the
            fallback result, which records the exit code.
        output: Complete decoded output (stdout and stderr interleaved).
        exit_code: Process exit code, or None when the process had none.
        probe_domain: Domain the global DNS probe resolved.
        probe_target: Address the global ICMP probe pinged.

    Returns:
        ParseResult whose evidence is never empty.
    """
    if is_unsupported_platform_output(output):
        return with_evidence(parse_unsupported_platform(output))

    resolved = check_id if isinstance(check_id, CheckId) else to_check_id(check_id)
    parser = PARSERS.get(resolved) if resolved is not None else None
    if resolved is None or parser is None:
        return with_evidence(parse_fallback(exit_code))

    ctx = ParseContext(exit_code=exit_code, probe_domain=probe_domain, probe_target=probe_target)
    try:
        result = parser(output, ctx)
    except Exception as e:
        result = _degraded(resolved, e)

    return with_evidence(result)
