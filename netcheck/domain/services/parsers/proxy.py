"""Parsers for system, WinHTTP and environment proxy settings.

Every proxy value stored as a fact goes through mask_proxy_value first.
"""

import re

from netcheck.domain.services.parsers.common import ParseContext, split_lines
from netcheck.domain.services.proxy_masking import mask_proxy_value
from netcheck.domain.value_objects.parse_result import ParseResult, StructuredFacts

# Whitespace classes exclude line breaks so an empty value never swallows the next line.
PROXY_ENABLE_PATTERN = re.compile(r"ProxyEnable[^\S\r\n]*:[^\S\r\n]*(\d+)", re.IGNORECASE)
PROXY_SERVER_PATTERN = re.compile(r"ProxyServer[^\S\r\n]*:[^\S\r\n]*([^\r\n]*)", re.IGNORECASE)
AUTO_CONFIG_URL_PATTERN = re.compile(r"AutoConfigURL[^\S\r\n]*:[^\S\r\n]*([^\r\n]*)", re.IGNORECASE)
AUTO_DETECT_PATTERN = re.compile(r"AutoDetect[^\S\r\n]*:[^\S\r\n]*(\d+)", re.IGNORECASE)

WINHTTP_DIRECT_PATTERN = re.compile(r"Direct access \(no proxy server\)|直接访问", re.IGNORECASE)
WINHTTP_SERVER_PATTERN = re.compile(
    r"(?:Proxy Server\(s\)|代理服务器)[^\S\r\n]*[:：][^\S\r\n]*([^\r\n]*)", re.IGNORECASE
)
WINHTTP_BYPASS_PATTERN = re.compile(
    r"(?:Bypass List|绕过列表)[^\S\r\n]*[:：][^\S\r\n]*([^\r\n]*)", re.IGNORECASE
)

SYS_PROXY_ENABLED_PATTERN = re.compile(r"SYS_PROXY_ENABLED:([^\r\n]+)", re.IGNORECASE)
SYS_PROXY_SERVER_PATTERN = re.compile(r"SYS_PROXY_SERVER:([^\r\n]*)", re.IGNORECASE)
SYS_PAC_PATTERN = re.compile(r"SYS_PAC:([^\r\n]*)", re.IGNORECASE)
ENV_PROXY_PATTERN = re.compile(r"ENV_PROXY:([^\r\n]*)", re.IGNORECASE)
ENV_NO_PROXY_PATTERN = re.compile(r"ENV_NO_PROXY:([^\r\n]*)", re.IGNORECASE)

ENV_ASSIGNMENT_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$")
ENV_TABLE_ROW_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s+(.+)$")

PROXY_ENV_VAR_NAMES = frozenset(
    {
        "HTTP_PROXY",
        "HTTPS_PROXY",
        "NO_PROXY",
        "ALL_PROXY",
        "http_proxy",
        "https_proxy",
        "no_proxy",
        "all_proxy",
    }
)
PROXY_URL_VAR_NAMES = frozenset({"HTTP_PROXY", "HTTPS_PROXY", "http_proxy", "https_proxy"})
NO_PROXY_VAR_NAMES = frozenset({"NO_PROXY", "no_proxy"})


def _field(pattern: re.Pattern[str], output: str) -> str:
    match = pattern.search(output)
    return match.group(1).strip() if match else ""


def parse_ie_proxy(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    proxy_enabled = _field(PROXY_ENABLE_PATTERN, output) == "1"
    proxy_server = mask_proxy_value(_field(PROXY_SERVER_PATTERN, output))
    auto_config_url = mask_proxy_value(_field(AUTO_CONFIG_URL_PATTERN, output))
    auto_detect_enabled = _field(AUTO_DETECT_PATTERN, output) == "1"

    structured["proxy_enabled"] = proxy_enabled
    structured["auto_detect_enabled"] = auto_detect_enabled
    structured["has_proxy_server"] = bool(proxy_server)
    structured["has_pac_url"] = bool(auto_config_url)
    if proxy_server:
        structured["proxy_server"] = proxy_server

    if proxy_enabled and proxy_server:
        diagnosis.append("A manual system proxy is enabled.")
    elif proxy_enabled and auto_config_url:
        diagnosis.append("The proxy is enabled with a PAC URL.")
    elif proxy_enabled:
        diagnosis.append("The proxy appears enabled but no proxy address is set.")
    else:
        diagnosis.append("No manual system proxy is enabled.")

    if auto_detect_enabled:
        diagnosis.append("WPAD auto-detection is enabled.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_winhttp_proxy(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    direct = WINHTTP_DIRECT_PATTERN.search(output) is not None
    proxy_server = mask_proxy_value(_field(WINHTTP_SERVER_PATTERN, output))
    bypass_list = _field(WINHTTP_BYPASS_PATTERN, output)

    enabled = bool(proxy_server) and not direct
    structured["winhttp_proxy_enabled"] = enabled
    structured["has_bypass_list"] = bool(bypass_list)
    if proxy_server:
        structured["winhttp_proxy_server"] = proxy_server
    if bypass_list:
        structured["winhttp_bypass_list"] = bypass_list

    if direct:
        diagnosis.append("WinHTTP uses direct access with no proxy.")
    elif enabled:
        diagnosis.append(
            "A WinHTTP proxy is configured; system services using WinHTTP go through it."
        )
    else:
        diagnosis.append("Could not parse WinHTTP proxy settings.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def parse_proxy_conflict(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    system_enabled = _field(SYS_PROXY_ENABLED_PATTERN, output).lower() == "true"
    system_server = mask_proxy_value(_field(SYS_PROXY_SERVER_PATTERN, output))
    system_pac = mask_proxy_value(_field(SYS_PAC_PATTERN, output))
    env_proxy = mask_proxy_value(_field(ENV_PROXY_PATTERN, output))
    env_no_proxy = _field(ENV_NO_PROXY_PATTERN, output)

    has_system_proxy = system_enabled and bool(system_server)
    has_env_proxy = bool(env_proxy)
    has_pac_url = bool(system_pac)
    has_no_proxy = bool(env_no_proxy)
    proxy_conflict = has_system_proxy and has_env_proxy

    structured["system_proxy_enabled"] = system_enabled
    structured["system_proxy_server"] = system_server
    structured["system_pac_url"] = system_pac
    structured["env_proxy"] = env_proxy
    structured["env_no_proxy"] = env_no_proxy
    structured["has_system_proxy"] = has_system_proxy
    structured["has_env_proxy"] = has_env_proxy
    structured["has_pac_url"] = has_pac_url
    structured["has_no_proxy"] = has_no_proxy
    structured["proxy_conflict"] = proxy_conflict

    if proxy_conflict:
        diagnosis.append(
            "Both a system proxy and an environment proxy are set; they may conflict."
        )
    elif has_system_proxy:
        diagnosis.append("A system proxy is configured.")
    elif has_env_proxy:
        diagnosis.append("An environment variable proxy is configured.")
    else:
        diagnosis.append("No proxy configuration detected.")

    if has_env_proxy and not has_no_proxy:
        diagnosis.append(
            "The environment proxy has no NO_PROXY; local and intranet requests may be affected."
        )

    if has_pac_url:
        diagnosis.append("A PAC script is configured; make sure it is reachable.")

    return ParseResult(structured=structured, diagnosis=diagnosis)


def _collect_proxy_env_vars(output: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in split_lines(output):
        stripped = line.strip()
        if not stripped:
            continue
        match = ENV_ASSIGNMENT_PATTERN.match(stripped) or ENV_TABLE_ROW_PATTERN.match(stripped)
        if match and match.group(1) in PROXY_ENV_VAR_NAMES:
            values[match.group(1)] = match.group(2).strip()
    return values


def parse_network_env_vars(output: str, ctx: ParseContext) -> ParseResult:
    structured: StructuredFacts = {}
    diagnosis: list[str] = []

    values = _collect_proxy_env_vars(output)

    structured["proxy_env_var_count"] = len(values)
    for name, value in values.items():
        structured[f"env_{name}"] = mask_proxy_value(value)

    if not values:
        diagnosis.append("No proxy-related environment variables found.")
    else:
        diagnosis.append(f"Found {len(values)} proxy-related environment variable(s).")

    has_proxy = any(name in values for name in PROXY_URL_VAR_NAMES)
    has_no_proxy = any(name in values for name in NO_PROXY_VAR_NAMES)
    if has_proxy and not has_no_proxy:
        diagnosis.append(
            "A proxy is configured but NO_PROXY is not set; local and intranet requests "
            "may be affected."
        )

    return ParseResult(structured=structured, diagnosis=diagnosis)
