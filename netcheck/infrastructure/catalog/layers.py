from netcheck.domain.value_objects.check_id import CheckId
from netcheck.domain.value_objects.summary import LayerDefinition

DEFAULT_LAYERS: list[LayerDefinition] = [
    LayerDefinition(
        id="adapter",
        label="Adapter layer",
        check_ids=[
            CheckId.NIC_LINK_STATUS,
            CheckId.VIRTUAL_ADAPTER_CHECK,
            CheckId.NIC_IP_CONFIG,
            CheckId.DHCP_STATUS,
        ],
    ),
    LayerDefinition(
        id="route",
        label="Routing layer",
        check_ids=[
            CheckId.DEFAULT_ROUTE_CHECK,
            CheckId.GATEWAY_REACHABILITY,
            CheckId.ARP_NEIGHBOR_CHECK,
            CheckId.TRACE_ROUTE,
        ],
    ),
    LayerDefinition(
        id="dns",
        label="DNS layer",
        check_ids=[
            CheckId.DNS_SERVER_CONFIG,
            CheckId.DNS_SERVER_PROBE,
            CheckId.HOSTS_FILE_CHECK,
            CheckId.DNS_LOOKUP,
            CheckId.GLOBAL_DNS_PROBE,
        ],
    ),
    LayerDefinition(
        id="proxy",
        label="Proxy layer",
        check_ids=[
            CheckId.IE_PROXY_CHECK,
            CheckId.WINHTTP_PROXY_CHECK,
            CheckId.PROXY_CONFLICT_CHECK,
            CheckId.NETWORK_ENV_VARS,
            CheckId.LSP_CATALOG_CHECK,
        ],
    ),
    LayerDefinition(
        id="internet",
        label="Internet layer",
        check_ids=[
            CheckId.GLOBAL_INTERNET_ICMP,
            CheckId.HTTP_HEAD,
            CheckId.PING_TARGET,
        ],
    ),
]

# Checks run by the one-click diagnosis, in execution order.
ONE_CLICK_PRESET: list[CheckId] = [
    CheckId.NIC_LINK_STATUS,
    CheckId.VIRTUAL_ADAPTER_CHECK,
    CheckId.NIC_IP_CONFIG,
    CheckId.DHCP_STATUS,
    CheckId.DEFAULT_ROUTE_CHECK,
    CheckId.GATEWAY_REACHABILITY,
    CheckId.ARP_NEIGHBOR_CHECK,
    CheckId.DNS_SERVER_CONFIG,
    CheckId.DNS_SERVER_PROBE,
    CheckId.HOSTS_FILE_CHECK,
    CheckId.LSP_CATALOG_CHECK,
    CheckId.IE_PROXY_CHECK,
    CheckId.WINHTTP_PROXY_CHECK,
    CheckId.PROXY_CONFLICT_CHECK,
    CheckId.NETWORK_ENV_VARS,
    CheckId.GLOBAL_INTERNET_ICMP,
    CheckId.GLOBAL_DNS_PROBE,
]
