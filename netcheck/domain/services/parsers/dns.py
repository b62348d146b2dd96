"""Parsers for name resolution: lookups, resolver config, hosts file."""

import re

from netcheck.domain.services.parsers.common import (
    ParseContext,
    find_ipv4,
    find_ipv6,
    non_blank_lines,
    split_lines,
    unique,
)
from netcheck.domain.value_objects.parse_result import ParseResult, StructuredFacts

DNS_FAILURE_PATTERN = re.compile(
    r"(non-existent domain|can't find|timed out|server failed|NXDOMAIN|SERVFAIL)",
    re.IGNORECASE,
)
LOOPBACK_IPV6_PATTERN = re.compile(r"(?<![\w:])::1(?![\w:])")
DNS_SERVER_NONE_PATTERN = re.compile(r"^DNS_SERVER:NONE$", re.IGNORECASE)
DNS_SERVER_RESULT_PATTERN = re.compile(r"^DNS_SERVER:(\S+)\s+(OK|FAIL)$", re.IGNORECASE)

HOSTS_ADVISORY_ENTRY_COUNT = 25


def parse_dns_lookup(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    failure = DNS_FAILURE_PATTERN.search(output) is not None
    ipv4_addresses = find_ipv4(output)
    ipv6_addresses = find_ipv6(output)

    structured["resolved"] = not failure
    structured["ipv4_count"] = len(ipv4_addresses)
    structured["ipv6_count"] = len(ipv6_addresses)

    if failure:
        diagnosis.append(
            "DNS resolution failed; check the local resolver configuration "
            "or upstream DNS connectivity."
        )
    elif not ipv4_addresses and not ipv6_addresses:
        diagnosis.append("The DNS query completed but returned no A/AAAA records.")
    else:
        diagnosis.append("DNS resolution succeeded.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_global_dns_probe(output: str, ctx: ParseContext) -> ParseResult:
    base = parse_dns_lookup(output, ctx)
    diagnosis = list(base.diagnosis)

    if base.structured.get("resolved") is True:
        diagnosis.append(f"Global DNS probe resolved {ctx.probe_domain}.")
    else:
        diagnosis.append(f"Global DNS probe could not resolve {ctx.probe_domain}.")

    structured = {**base.structured, "probe_domain": ctx.probe_domain}
    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_dns_server_config(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    ipv4_servers = find_ipv4(output)
    ipv6_servers = find_ipv6(output)
    has_loopback = any(server.startswith("127.") for server in ipv4_servers) or bool(
        LOOPBACK_IPV6_PATTERN.search(output)
    )

    structured["ipv4_dns_server_count"] = len(ipv4_servers)
    structured["ipv6_dns_server_count"] = len(ipv6_servers)
    structured["has_loopback_dns"] = has_loopback

    if not ipv4_servers and not ipv6_servers:
        diagnosis.append("No DNS server addresses found in the local configuration.")
    else:
        diagnosis.append(
            f"Found {len(ipv4_servers)} IPv4 and {len(ipv6_servers)} IPv6 DNS server addresses."
        )

    if has_loopback:
        diagnosis.append(
            "A loopback DNS server is configured; make sure the local resolver is running."
        )

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_dns_server_probe(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    lines = non_blank_lines(output)
    if any(DNS_SERVER_NONE_PATTERN.match(line) for line in lines):
        structured["dns_server_count"] = 0
        structured["dns_server_success_count"] = 0
        structured["dns_server_fail_count"] = 0
        diagnosis.append("No DNS servers are configured.")
        return ParseResult(structured=structured, diagnosis=diagnosis)

    results = [match for line in lines if (match := DNS_SERVER_RESULT_PATTERN.match(line))]
    total = len(results)
    success_count = sum(1 for match in results if match.group(2).upper() == "OK")
    fail_count = total - success_count

    structured["dns_server_count"] = total
    structured["dns_server_success_count"] = success_count
    structured["dns_server_fail_count"] = fail_count

    if total == 0:
        diagnosis.append("Could not parse any DNS server probe results.")
    elif fail_count > 0:
        failed_servers = [match.group(1) for match in results if match.group(2).upper() != "OK"]
        diagnosis.append(
            "Some DNS servers failed to resolve; check upstream DNS or connectivity "
            f"({', '.join(failed_servers)})."
        )
    else:
        diagnosis.append("All configured DNS servers can resolve.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_hosts_file(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    entries = [
        entry
        for entry in (line.split("#", 1)[0].strip() for line in split_lines(output))
        if entry
    ]
    hosts = [host.lower() for entry in entries for host in entry.split()[1:]]
    duplicate_host_count = len(hosts) - len(unique(hosts))
    localhost_mapped = "localhost" in hosts

    structured["entry_count"] = len(entries)
    structured["localhost_mapped"] = localhost_mapped
    structured["duplicate_host_count"] = duplicate_host_count

    if not entries:
        diagnosis.append("The hosts file has no active mappings.")
    else:
        diagnosis.append(f"The hosts file has {len(entries)} active mapping lines.")

    if not localhost_mapped:
        diagnosis.append("The hosts file has no localhost mapping.")

    if duplicate_host_count > 0:
        diagnosis.append("Duplicate host mappings found; confirm the override order is intended.")

    if len(entries) > HOSTS_ADVISORY_ENTRY_COUNT:
        diagnosis.append("The hosts file has many overrides; consider removing stale entries.")

    return ParseResult(structured=structured, diagnosis=diagnosis)
