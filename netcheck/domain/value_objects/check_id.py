from enum import Enum


class CheckId(str, Enum):
    # Connectivity
    PING_TARGET = "ping_target"
    TRACE_ROUTE = "trace_route"
    HTTP_HEAD = "http_head"
    DEFAULT_ROUTE_CHECK = "default_route_check"
    GATEWAY_REACHABILITY = "gateway_reachability"
    ARP_NEIGHBOR_CHECK = "arp_neighbor_check"
    GLOBAL_INTERNET_ICMP = "global_internet_icmp"

    # DNS
    DNS_LOOKUP = "dns_lookup"
    GLOBAL_DNS_PROBE = "global_dns_probe"
    DNS_SERVER_CONFIG = "dns_server_config"
    DNS_SERVER_PROBE = "dns_server_probe"
    HOSTS_FILE_CHECK = "hosts_file_check"

    # Network interfaces
    NIC_LINK_STATUS = "nic_link_status"
    VIRTUAL_ADAPTER_CHECK = "virtual_adapter_check"
    NIC_IP_CONFIG = "nic_ip_config"
    DHCP_STATUS = "dhcp_status"

    # Windows protocol stack
    LSP_CATALOG_CHECK = "lsp_catalog_check"

    # Proxy and environment
    IE_PROXY_CHECK = "ie_proxy_check"
    WINHTTP_PROXY_CHECK = "winhttp_proxy_check"
    PROXY_CONFLICT_CHECK = "proxy_conflict_check"
    NETWORK_ENV_VARS = "network_env_vars"


def to_check_id(value: str) -> CheckId | None:
    """Return the matching CheckId, or None for ids outside the closed set."""
    try:
        return CheckId(value)
    except ValueError:
        return None


def check_id_value(value: object) -> object:
    """Plain string form of a check id, for pydantic `mode="before"` validators.

    Str-based enum members hash by member name, so dict lookups keyed by the
    wire spelling need the plain value.
    """
    if isinstance(value, CheckId):
        return value.value
    return value
