"""Allowlisted diagnostic commands per platform.

Only the validated target, count and timeout ever reach an argument list;
nothing here builds a shell string from user input.
"""

import sys
from collections.abc import Callable

from netcheck.domain.ports.command_catalog_port import (
    CheckDefinition,
    CommandCatalogPort,
    UnknownCheckError,
)
from netcheck.domain.value_objects.check_id import CheckId, check_id_value
from netcheck.domain.value_objects.diagnostics_settings import DiagnosticsSettings
from netcheck.domain.value_objects.invocation import CommandInput, CommandInvocation

WINDOWS = "win32"
LINUX = "linux"
MACOS = "darwin"

NO_TARGET_HINT = "No target needed."
LOCAL_TARGET = "localhost"

POWERSHELL = "powershell"

DEFAULT_GATEWAY_PS = (
    "$gw = (Get-NetRoute -DestinationPrefix '0.0.0.0/0' | Sort-Object RouteMetric "
    "| Select-Object -First 1).NextHop; "
)

VIRTUAL_ADAPTER_PATTERN_PS = (
    "virtual|vmware|virtualbox|hyper-v|vethernet|tap|tun|wireguard|openvpn|anyconnect"
    "|fortinet|zscaler|wintun|loopback|npcap|vpn"
)

VIRTUAL_ADAPTER_SCRIPT = (
    "$adapters = Get-NetAdapter | Select-Object Name,InterfaceDescription,Status,LinkSpeed,"
    "InterfaceIndex,MacAddress; "
    "$routes = Get-NetRoute -DestinationPrefix '0.0.0.0/0' | Sort-Object RouteMetric "
    "| Select-Object -First 3 InterfaceIndex,InterfaceAlias,NextHop,RouteMetric; "
    f"$pattern = '{VIRTUAL_ADAPTER_PATTERN_PS}'; "
    '$virtual = $adapters | Where-Object { ("$($_.Name) $($_.InterfaceDescription)") -match $pattern }; '
    '$physical = $adapters | Where-Object { ("$($_.Name) $($_.InterfaceDescription)") -notmatch $pattern }; '
    'Write-Output "Adapters: $(($adapters | Measure-Object).Count)"; '
    'Write-Output "Virtual adapters: $(($virtual | Measure-Object).Count)"; '
    'Write-Output "Physical adapters: $(($physical | Measure-Object).Count)"; '
    "if ($routes) { "
    "$primary = $routes | Select-Object -First 1; "
    "$owner = $adapters | Where-Object { $_.InterfaceIndex -eq $primary.InterfaceIndex } "
    "| Select-Object -First 1; "
    "$type = 'unknown'; "
    'if ($owner) { $type = if (("$($owner.Name) $($owner.InterfaceDescription)") -match $pattern) '
    "{ 'virtual' } else { 'physical' } }; "
    'Write-Output "Default route: $($primary.InterfaceAlias) -> $($primary.NextHop) '
    '(Metric=$($primary.RouteMetric))"; '
    'Write-Output "Default route type: $type" '
    "} else { Write-Output 'No default route found' }; "
    "$json = [PSCustomObject]@{Adapters=$adapters; DefaultRoutes=$routes} | ConvertTo-Json -Depth 4; "
    'Write-Output "JSON:$json"'
)

PROXY_CONFLICT_SCRIPT = (
    "$setting = Get-ItemProperty -Path "
    "'HKCU:\\Software\\Microsoft\\Windows\\CurrentVersion\\Internet Settings'; "
    "$proxyEnabled = $setting.ProxyEnable -eq 1; "
    "$envProxy = $env:HTTP_PROXY; if (!$envProxy) { $envProxy = $env:HTTPS_PROXY }; "
    'Write-Output "SYS_PROXY_ENABLED:$proxyEnabled"; '
    'Write-Output "SYS_PROXY_SERVER:$($setting.ProxyServer)"; '
    'Write-Output "SYS_PAC:$($setting.AutoConfigURL)"; '
    'Write-Output "ENV_PROXY:$envProxy"; '
    'Write-Output "ENV_NO_PROXY:$env:NO_PROXY"'
)

PROXY_ENV_VAR_REGEX = (
    "^(HTTP_PROXY|HTTPS_PROXY|NO_PROXY|ALL_PROXY|http_proxy|https_proxy|no_proxy|all_proxy)$"
)

Builder = Callable[[CommandInput], CommandInvocation]


def normalize_http_target(target: str) -> str:
    if target.startswith(("http://", "https://")):
        return target
    return f"https://{target}"


def unsupported_platform(feature: str) -> CommandInvocation:
    """Invocation that only prints the unsupported-platform marker."""
    return CommandInvocation(
        executable=sys.executable,
        args=["-c", f"print({f'UNSUPPORTED_PLATFORM: {feature}'!r})"],
    )


def _powershell(script: str, display_line: str | None = None) -> CommandInvocation:
    return CommandInvocation(
        executable=POWERSHELL,
        args=["-NoProfile", "-Command", script],
        display_line=display_line,
    )


def _sh(script: str, display_line: str | None = None) -> CommandInvocation:
    return CommandInvocation(executable="sh", args=["-c", script], display_line=display_line)


class CommandCatalog(CommandCatalogPort):
    """Static catalog of the diagnostic checks, resolved for one platform."""

    def __init__(
        self,
        settings: DiagnosticsSettings | None = None,
        platform: str | None = None,
    ) -> None:
        self._settings = settings or DiagnosticsSettings()
        self._platform = platform or sys.platform
        self._definitions = {definition.id: definition for definition in self._build_definitions()}

    @property
    def platform(self) -> str:
        return self._platform

    def get(self, check_id: str) -> CheckDefinition:
        key = str(check_id_value(check_id))
        definition = self._definitions.get(key)
        if definition is None:
            raise UnknownCheckError(key)
        return definition

    def list_definitions(self) -> list[CheckDefinition]:
        return list(self._definitions.values())

    # Per-platform selection

    def _pick(
        self,
        feature: str,
        windows: Builder | None = None,
        linux: Builder | None = None,
        macos: Builder | None = None,
        other: Builder | None = None,
    ) -> Builder:
        builder = {WINDOWS: windows, LINUX: linux, MACOS: macos}.get(self._platform) or other
        if builder is None:
            return lambda _: unsupported_platform(feature)
        return builder

    def _ping(self, count: int, target: str) -> CommandInvocation:
        flag = "-n" if self._platform == WINDOWS else "-c"
        return CommandInvocation(executable="ping", args=[flag, str(count), target])

    def _define(
        self,
        check_id: CheckId,
        title: str,
        description: str,
        category: str,
        build: Builder,
        *,
        target_hint: str = NO_TARGET_HINT,
        default_target: str = LOCAL_TARGET,
        supports_count: bool = False,
        requires_target: bool = False,
    ) -> CheckDefinition:
        return CheckDefinition(
            id=check_id.value,
            title=title,
            description=description,
            category=category,
            target_hint=target_hint,
            default_target=default_target,
            supports_count=supports_count,
            requires_target=requires_target,
            build=build,
        )

    def _build_definitions(self) -> list[CheckDefinition]:
        probe_domain = self._settings.global_dns_probe_domain
        icmp_target = self._settings.global_icmp_target

        return [
            self._define(
                CheckId.PING_TARGET,
                "Ping connectivity",
                "Measure packet loss and latency to a target host.",
                "Connectivity",
                lambda cmd: self._ping(cmd.count, cmd.target),
                target_hint="e.g. 8.8.8.8 or example.org",
                default_target="8.8.8.8",
                supports_count=True,
                requires_target=True,
            ),
            self._define(
                CheckId.DNS_LOOKUP,
                "DNS lookup",
                "Query DNS records and check that the name resolves.",
                "DNS",
                lambda cmd: CommandInvocation(executable="nslookup", args=[cmd.target]),
                target_hint="e.g. example.org",
                default_target="example.org",
                requires_target=True,
            ),
            self._define(
                CheckId.TRACE_ROUTE,
                "Trace route",
                "List the hops on the path to a target and spot bottlenecks.",
                "Path analysis",
                self._pick(
                    "Trace route",
                    windows=lambda cmd: CommandInvocation(
                        executable="tracert", args=["-d", cmd.target]
                    ),
                    other=lambda cmd: CommandInvocation(
                        executable="traceroute", args=["-n", cmd.target]
                    ),
                ),
                target_hint="e.g. 1.1.1.1 or cloudflare.com",
                default_target="1.1.1.1",
                requires_target=True,
            ),
            self._define(
                CheckId.HTTP_HEAD,
                "HTTP availability",
                "Check the HTTP status code and basic reachability of a URL.",
                "HTTP",
                lambda cmd: CommandInvocation(
                    executable="curl",
                    args=[
                        "-I",
                        "--max-time",
                        str(cmd.timeout_seconds),
                        normalize_http_target(cmd.target),
                    ],
                ),
                target_hint="e.g. https://example.org",
                default_target="https://example.org",
                requires_target=True,
            ),
            self._define(
                CheckId.DEFAULT_ROUTE_CHECK,
                "Default route",
                "Check that the host has a usable default route.",
                "Connectivity",
                self._pick(
                    "Default route",
                    windows=lambda _: CommandInvocation(executable="route", args=["print", "-4"]),
                    linux=lambda _: CommandInvocation(executable="ip", args=["route"]),
                    macos=lambda _: CommandInvocation(executable="netstat", args=["-rn"]),
                ),
            ),
            self._define(
                CheckId.GATEWAY_REACHABILITY,
                "Default gateway reachability",
                "Ping the default gateway to verify the local link.",
                "Connectivity",
                self._pick(
                    "Default gateway reachability",
                    windows=lambda _: _powershell(
                        DEFAULT_GATEWAY_PS
                        + "if (!$gw) { Write-Output 'GATEWAY:NOT_FOUND'; exit 1 }; "
                        'Write-Output "GATEWAY:$gw"; ping -n 2 $gw',
                        display_line="PowerShell: ping the default gateway",
                    ),
                    linux=lambda _: _sh(
                        "gw=$(ip route show default | awk '/default/ {print $3; exit}'); "
                        'if [ -z "$gw" ]; then echo GATEWAY:NOT_FOUND; exit 1; fi; '
                        'echo "GATEWAY:$gw"; ping -c 2 "$gw"',
                        display_line="sh: ping the default gateway",
                    ),
                ),
            ),
            self._define(
                CheckId.ARP_NEIGHBOR_CHECK,
                "ARP neighbor table",
                "Check that the default gateway is in the neighbor table and resolved.",
                "Connectivity",
                self._pick(
                    "ARP neighbor table",
                    windows=lambda _: _powershell(
                        DEFAULT_GATEWAY_PS
                        + "if ($gw) { Write-Output \"GATEWAY:$gw\" } "
                        "else { Write-Output 'GATEWAY:NOT_FOUND' }; "
                        "Get-NetNeighbor -AddressFamily IPv4 | Select-Object IPAddress,"
                        "LinkLayerAddress,State,InterfaceAlias | Format-Table -AutoSize",
                        display_line="PowerShell: default gateway and IPv4 neighbor table",
                    ),
                    linux=lambda _: _sh(
                        "gw=$(ip route show default | awk '/default/ {print $3; exit}'); "
                        'echo "GATEWAY:${gw:-NOT_FOUND}"; ip -4 neigh show',
                        display_line="sh: default gateway and IPv4 neighbor table",
                    ),
                ),
            ),
            self._define(
                CheckId.GLOBAL_INTERNET_ICMP,
                "Global ICMP",
                f"Ping a public address ({icmp_target}) to check internet egress.",
                "Connectivity",
                lambda cmd: self._ping(cmd.count, icmp_target),
                supports_count=True,
            ),
            self._define(
                CheckId.GLOBAL_DNS_PROBE,
                "Global DNS probe",
                f"Resolve a public domain ({probe_domain}) through the local resolver.",
                "DNS",
                lambda _: CommandInvocation(executable="nslookup", args=[probe_domain]),
            ),
            self._define(
                CheckId.NIC_LINK_STATUS,
                "Adapter link status",
                "Check adapter status, link speed and MAC address.",
                "Network interfaces",
                self._pick(
                    "Adapter link status",
                    windows=lambda _: _powershell(
                        "Get-NetAdapter | Select-Object Name,Status,LinkSpeed,MacAddress "
                        "| Format-Table -AutoSize"
                    ),
                    linux=lambda _: CommandInvocation(executable="ip", args=["-brief", "link"]),
                    macos=lambda _: CommandInvocation(executable="ifconfig"),
                ),
            ),
            self._define(
                CheckId.VIRTUAL_ADAPTER_CHECK,
                "Virtual adapters and routing",
                "Find virtual adapters and whether one of them carries the default route.",
                "Network interfaces",
                self._pick(
                    "Virtual adapters and routing",
                    windows=lambda _: _powershell(
                        VIRTUAL_ADAPTER_SCRIPT,
                        display_line="PowerShell: summarize virtual adapters and default routes",
                    ),
                ),
            ),
            self._define(
                CheckId.NIC_IP_CONFIG,
                "Adapter IP configuration",
                "Check adapter addresses and the default gateway.",
                "Network interfaces",
                self._pick(
                    "Adapter IP configuration",
                    windows=lambda _: CommandInvocation(executable="ipconfig", args=["/all"]),
                    linux=lambda _: _sh(
                        "ip addr; ip route show default",
                        display_line="ip addr && ip route show default",
                    ),
                    macos=lambda _: CommandInvocation(executable="ifconfig"),
                ),
            ),
            self._define(
                CheckId.DHCP_STATUS,
                "DHCP status",
                "Check whether adapters use DHCP or a static address.",
                "Network interfaces",
                self._pick(
                    "DHCP status",
                    windows=lambda _: _powershell(
                        "Get-NetIPInterface -AddressFamily IPv4 | Select-Object "
                        "InterfaceAlias,Dhcp,ConnectionState | Format-Table -AutoSize"
                    ),
                ),
            ),
            self._define(
                CheckId.DNS_SERVER_CONFIG,
                "DNS server configuration",
                "List the DNS servers configured on the host.",
                "DNS",
                self._pick(
                    "DNS server configuration",
                    windows=lambda _: _powershell(
                        "Get-DnsClientServerAddress -AddressFamily IPv4 | Select-Object "
                        "InterfaceAlias,ServerAddresses | Format-List"
                    ),
                    linux=lambda _: CommandInvocation(executable="cat", args=["/etc/resolv.conf"]),
                    macos=lambda _: CommandInvocation(executable="scutil", args=["--dns"]),
                ),
            ),
            self._define(
                CheckId.DNS_SERVER_PROBE,
                "DNS server availability",
                f"Ask each configured DNS server to resolve {probe_domain}.",
                "DNS",
                self._pick(
                    "DNS server availability",
                    windows=lambda _: _powershell(
                        "$servers = (Get-DnsClientServerAddress -AddressFamily IPv4 "
                        "| Select-Object -ExpandProperty ServerAddresses) | Where-Object { $_ }; "
                        "$unique = $servers | Select-Object -Unique; "
                        "if (-not $unique) { Write-Output 'DNS_SERVER:NONE'; exit 1 }; "
                        "foreach ($s in $unique) { try { "
                        f"Resolve-DnsName -Name '{probe_domain}' -Server $s -ErrorAction Stop "
                        '| Out-Null; Write-Output "DNS_SERVER:$s OK" } '
                        'catch { Write-Output "DNS_SERVER:$s FAIL" } }',
                        display_line="PowerShell: probe each DNS server",
                    ),
                    linux=lambda _: _sh(
                        "servers=$(awk '/^nameserver/ {print $2}' /etc/resolv.conf | sort -u); "
                        'if [ -z "$servers" ]; then echo DNS_SERVER:NONE; exit 1; fi; '
                        "for s in $servers; do "
                        f'if nslookup {probe_domain} "$s" >/dev/null 2>&1; '
                        'then echo "DNS_SERVER:$s OK"; else echo "DNS_SERVER:$s FAIL"; fi; done',
                        display_line="sh: probe each DNS server",
                    ),
                ),
            ),
            self._define(
                CheckId.HOSTS_FILE_CHECK,
                "Hosts file",
                "Inspect hosts file mappings for risky overrides.",
                "DNS",
                self._pick(
                    "Hosts file",
                    windows=lambda _: _powershell(
                        'Get-Content -Path "$env:SystemRoot\\System32\\drivers\\etc\\hosts"'
                    ),
                    other=lambda _: CommandInvocation(executable="cat", args=["/etc/hosts"]),
                ),
            ),
            self._define(
                CheckId.LSP_CATALOG_CHECK,
                "Winsock catalog",
                "Inspect Winsock catalog entries and layered service providers.",
                "Windows protocol stack",
                self._pick(
                    "Winsock catalog",
                    windows=lambda _: CommandInvocation(
                        executable="netsh", args=["winsock", "show", "catalog"]
                    ),
                ),
            ),
            self._define(
                CheckId.IE_PROXY_CHECK,
                "System proxy",
                "Read the Internet Settings proxy and PAC configuration.",
                "Proxy",
                self._pick(
                    "System proxy",
                    windows=lambda _: _powershell(
                        "$setting = Get-ItemProperty -Path "
                        "'HKCU:\\Software\\Microsoft\\Windows\\CurrentVersion\\Internet Settings'; "
                        "[PSCustomObject]@{ ProxyEnable = $setting.ProxyEnable; "
                        "ProxyServer = $setting.ProxyServer; "
                        "AutoConfigURL = $setting.AutoConfigURL; "
                        "AutoDetect = $setting.AutoDetect } | Format-List"
                    ),
                ),
            ),
            self._define(
                CheckId.WINHTTP_PROXY_CHECK,
                "WinHTTP proxy",
                "Check the WinHTTP proxy, which may differ from the user proxy.",
                "Proxy",
                self._pick(
                    "WinHTTP proxy",
                    windows=lambda _: CommandInvocation(
                        executable="netsh", args=["winhttp", "show", "proxy"]
                    ),
                ),
            ),
            self._define(
                CheckId.PROXY_CONFLICT_CHECK,
                "Proxy conflict",
                "Check whether the system proxy and environment proxy disagree.",
                "Proxy",
                self._pick(
                    "Proxy conflict",
                    windows=lambda _: _powershell(
                        PROXY_CONFLICT_SCRIPT,
                        display_line="PowerShell: compare system and environment proxies",
                    ),
                ),
            ),
            self._define(
                CheckId.NETWORK_ENV_VARS,
                "Network environment variables",
                "List proxy-related environment variables used by toolchains.",
                "Environment",
                self._pick(
                    "Network environment variables",
                    windows=lambda _: _powershell(
                        "Get-ChildItem Env: | Where-Object { $_.Name -match "
                        f"'{PROXY_ENV_VAR_REGEX}' }} | Sort-Object Name | Format-Table -AutoSize"
                    ),
                    other=lambda _: _sh(
                        "env | grep -E '^(HTTP_PROXY|HTTPS_PROXY|NO_PROXY|ALL_PROXY|http_proxy"
                        "|https_proxy|no_proxy|all_proxy)=' | sort; true",
                        display_line="env | grep proxy variables",
                    ),
                ),
            ),
        ]
