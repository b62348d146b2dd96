import json

import pytest

from netcheck.domain.services.parsers import LossClass, classify_loss, parse_output
from netcheck.domain.value_objects.check_id import CheckId
from netcheck.domain.value_objects.parse_result import ParseResult


def joined(result: ParseResult) -> str:
    return "; ".join(result.diagnosis)


def assert_evidence(result: ParseResult) -> None:
    assert result.evidence
    assert all(isinstance(line, str) for line in result.evidence)


WINDOWS_PING_OK = "\n".join(
    [
        "Pinging 1.1.1.1 with 32 bytes of data:",
        "Reply from 1.1.1.1: bytes=32 time=20ms TTL=56",
        "",
        "Ping statistics for 1.1.1.1:",
        "    Packets: Sent = 4, Received = 4, Lost = 0 (0% loss),",
        "Approximate round trip times in milli-seconds:",
        "    Minimum = 18ms, Maximum = 22ms, Average = 20ms",
        "",
    ]
)

ADAPTER_PAYLOAD = {
    "Adapters": [
        {
            "Name": "Ethernet",
            "InterfaceDescription": "Intel(R) Ethernet",
            "Status": "Up",
            "InterfaceIndex": 12,
        },
        {
            "Name": "vEthernet (Default Switch)",
            "InterfaceDescription": "Hyper-V Virtual Ethernet Adapter",
            "Status": "Up",
            "InterfaceIndex": 5,
        },
    ],
    "DefaultRoutes": [{"InterfaceIndex": 5, "InterfaceAlias": "vEthernet", "NextHop": "192.168.1.1"}],
}


class TestLossClassification:
    @pytest.mark.parametrize(
        ("loss", "expected"),
        [
            (None, LossClass.UNKNOWN),
            (0, LossClass.ACCEPTABLE),
            (5, LossClass.ACCEPTABLE),
            (5.1, LossClass.UNSTABLE),
            (99, LossClass.UNSTABLE),
            (100, LossClass.UNREACHABLE),
        ],
    )
    def test_boundaries(self, loss: float | None, expected: LossClass) -> None:
        assert classify_loss(loss) == expected


class TestPingParsers:
    def test_windows_ping_zero_loss_with_average(self) -> None:
        result = parse_output(CheckId.PING_TARGET, WINDOWS_PING_OK, 0)

        assert result.structured["packet_loss_percent"] == 0
        assert result.structured["avg_latency_ms"] == 20
        assert "acceptable" in joined(result)
        assert_evidence(result)
        assert any("acceptable" in line for line in result.evidence)

    def test_windows_ping_total_loss(self) -> None:
        output = "Ping statistics for 8.8.8.8:\n    Packets: Sent = 4, Received = 0, Lost = 4 (100% loss),\n"

        result = parse_output("ping_target", output, 1)

        assert result.structured["packet_loss_percent"] == 100
        assert "100%" in joined(result)
        assert_evidence(result)

    def test_unparseable_ping(self) -> None:
        output = "Ping request could not find host invalid.example. Please check the name and try again.\n"

        result = parse_output("ping_target", output, 1)

        assert "packet_loss_percent" not in result.structured
        assert "Could not parse packet loss" in joined(result)
        assert_evidence(result)

    def test_unix_ping_summary(self) -> None:
        output = "\n".join(
            [
                "4 packets transmitted, 3 received, 25% packet loss, time 3004ms",
                "rtt min/avg/max/mdev = 10.1/12.5/15.0/1.9 ms",
            ]
        )

        result = parse_output("ping_target", output, 0)

        assert result.structured["packet_loss_percent"] == 25
        assert result.structured["avg_latency_ms"] == 12.5
        assert "unstable" in joined(result)

    def test_localized_windows_ping(self) -> None:
        output = "数据包: 已发送 = 4，已接收 = 4，丢失 = 0 (0% 丢失)，\n最短 = 1ms，最长 = 3ms，平均 = 2ms\n"

        result = parse_output("ping_target", output, 0)

        assert result.structured["packet_loss_percent"] == 0
        assert result.structured["avg_latency_ms"] == 2

    def test_high_latency(self) -> None:
        output = "Lost = 0 (0% loss),\n    Minimum = 250ms, Maximum = 350ms, Average = 300ms\n"

        result = parse_output("ping_target", output, 0)

        assert "latency is high" in joined(result)

    def test_global_icmp_adds_probe_target(self) -> None:
        output = "Ping statistics for 1.1.1.1:\n    Packets: Sent = 4, Received = 4, Lost = 0 (0% loss),\n"

        result = parse_output("global_internet_icmp", output, 0)

        assert result.structured["probe_target"] == "1.1.1.1"
        assert result.structured["packet_loss_percent"] == 0
        assert "Global ICMP probe is healthy" in joined(result)
        assert_evidence(result)

    def test_global_icmp_uses_configured_target(self) -> None:
        result = parse_output("global_internet_icmp", "", None, probe_target="9.9.9.9")

        assert result.structured["probe_target"] == "9.9.9.9"


class TestRouteParsers:
    def test_windows_default_route(self) -> None:
        output = "\n".join(
            [
                "IPv4 Route Table",
                "=" * 73,
                "Active Routes:",
                "Network Destination        Netmask          Gateway       Interface  Metric",
                "          0.0.0.0          0.0.0.0      192.168.1.1   192.168.1.10     25",
                "",
            ]
        )

        result = parse_output("default_route_check", output, 0)

        assert result.structured["has_default_route"] is True
        assert "default route is present" in joined(result)
        assert_evidence(result)

    def test_linux_default_route(self) -> None:
        output = "default via 10.0.0.1 dev eth0 proto dhcp metric 100\n10.0.0.0/24 dev eth0\n"

        result = parse_output("default_route_check", output, 0)

        assert result.structured["has_default_route"] is True
        assert result.structured["route_line_count"] == 2

    def test_missing_default_route(self) -> None:
        result = parse_output("default_route_check", "10.0.0.0/24 dev eth0\n", 0)

        assert result.structured["has_default_route"] is False

    def test_trace_route_counts_hops_and_timeouts(self) -> None:
        output = "\n".join(
            [
                "Tracing route to 1.1.1.1 over a maximum of 30 hops",
                "",
                "  1     1 ms     1 ms     1 ms  192.168.1.1",
                "  2     *        *        *     Request timed out.",
                "  3    10 ms    11 ms    10 ms  10.0.0.1",
                "",
            ]
        )

        result = parse_output("trace_route", output, 0)

        assert result.structured["hop_count"] == 3
        assert result.structured["timeout_hop_count"] == 1
        assert_evidence(result)

    def test_gateway_reachability(self) -> None:
        output = "\n".join(
            [
                "GATEWAY:192.168.1.1",
                "Ping statistics for 192.168.1.1:",
                "    Packets: Sent = 2, Received = 2, Lost = 0 (0% loss),",
                "",
            ]
        )

        result = parse_output("gateway_reachability", output, 0)

        assert result.structured["gateway_found"] is True
        assert result.structured["gateway"] == "192.168.1.1"
        assert result.structured["packet_loss_percent"] == 0
        assert "gateway is reachable" in joined(result)
        assert_evidence(result)

    def test_gateway_not_found(self) -> None:
        result = parse_output("gateway_reachability", "GATEWAY:NOT_FOUND\n", 1)

        assert result.structured["gateway_found"] is False
        assert "gateway" not in result.structured
        assert "No default gateway" in joined(result)

    def test_arp_neighbor_gateway_state(self) -> None:
        output = "\n".join(
            [
                "GATEWAY:192.168.1.1",
                "IPAddress      LinkLayerAddress      State       InterfaceAlias",
                "---------      ----------------      -----       --------------",
                "192.168.1.1    00-11-22-33-44-55      Reachable   Ethernet",
                "192.168.1.100  66-77-88-99-AA-BB      Stale       Ethernet",
                "",
            ]
        )

        result = parse_output("arp_neighbor_check", output, 0)

        assert result.structured["gateway_found"] is True
        assert result.structured["gateway"] == "192.168.1.1"
        assert result.structured["gateway_state"] == "Reachable"
        assert result.structured["neighbor_count"] == 2
        assert result.structured["stale_count"] == 1
        assert "ARP entry is resolved" in joined(result)
        assert_evidence(result)

    def test_arp_gateway_does_not_match_longer_address(self) -> None:
        output = "GATEWAY:192.168.1.1\n192.168.1.100 dev eth0 lladdr aa:bb:cc:dd:ee:ff STALE\n"

        result = parse_output("arp_neighbor_check", output, 0)

        assert "gateway_state" not in result.structured
        assert "not found in the neighbor table" in joined(result)

    def test_http_head_status_code(self) -> None:
        output = "HTTP/2 204\ndate: Mon, 16 Feb 2026 00:00:00 GMT\n"

        result = parse_output("http_head", output, 0)

        assert result.structured["status_code"] == 204
        assert "reachable" in joined(result)
        assert_evidence(result)

    def test_http_head_server_error(self) -> None:
        result = parse_output("http_head", "HTTP/1.1 503 Service Unavailable\n", 0)

        assert result.structured["status_code"] == 503
        assert "5xx" in joined(result)


class TestDnsParsers:
    def test_lookup_success(self) -> None:
        output = "\n".join(
            [
                "Server:  resolver1.opendns.com",
                "Address:  208.67.222.222",
                "",
                "Non-authoritative answer:",
                "Name:    openai.com",
                "Addresses:  104.18.12.123",
                "          104.18.13.123",
                "",
            ]
        )

        result = parse_output("dns_lookup", output, 0)

        assert result.structured["resolved"] is True
        assert result.structured["ipv4_count"] >= 1
        assert "DNS resolution succeeded" in joined(result)
        assert_evidence(result)

    def test_lookup_failure(self) -> None:
        result = parse_output("dns_lookup", "*** Can't find openai.com: Non-existent domain\n", 1)

        assert result.structured["resolved"] is False
        assert "DNS resolution failed" in joined(result)
        assert_evidence(result)

    def test_lookup_without_records_still_counts_as_resolved(self) -> None:
        result = parse_output("dns_lookup", "Non-authoritative answer:\nName: example.org\n", 0)

        assert result.structured["resolved"] is True
        assert result.structured["ipv4_count"] == 0
        assert result.structured["ipv6_count"] == 0
        assert "no A/AAAA records" in joined(result)

    def test_global_probe_adds_probe_domain(self) -> None:
        output = "Name:    example.com\nAddress: 93.184.216.34\n"

        result = parse_output("global_dns_probe", output, 0)

        assert result.structured["probe_domain"] == "example.com"
        assert result.structured["resolved"] is True
        assert "Global DNS probe resolved example.com" in joined(result)
        assert_evidence(result)

    def test_global_probe_uses_configured_domain(self) -> None:
        result = parse_output("global_dns_probe", "timed out\n", 1, probe_domain="example.net")

        assert result.structured["probe_domain"] == "example.net"
        assert result.structured["resolved"] is False
        assert "could not resolve example.net" in joined(result)

    def test_server_config_detects_loopback(self) -> None:
        output = "InterfaceAlias : Ethernet\nServerAddresses : {127.0.0.1, 8.8.8.8}\n"

        result = parse_output("dns_server_config", output, 0)

        assert result.structured["ipv4_dns_server_count"] == 2
        assert result.structured["has_loopback_dns"] is True
        assert_evidence(result)

    def test_server_probe_counts_results(self) -> None:
        output = "DNS_SERVER:8.8.8.8 OK\nDNS_SERVER:1.1.1.1 FAIL\n"

        result = parse_output("dns_server_probe", output, 0)

        assert result.structured["dns_server_count"] == 2
        assert result.structured["dns_server_success_count"] == 1
        assert result.structured["dns_server_fail_count"] == 1
        assert "Some DNS servers failed" in joined(result)
        assert "1.1.1.1" in joined(result)
        assert_evidence(result)

    def test_server_probe_none_configured(self) -> None:
        result = parse_output("dns_server_probe", "DNS_SERVER:NONE\n", 1)

        assert result.structured["dns_server_count"] == 0
        assert "No DNS servers are configured" in joined(result)

    def test_hosts_file_counts(self) -> None:
        output = "\n".join(
            [
                "# comment",
                "",
                "127.0.0.1 localhost",
                "10.0.0.1 internal.local",
                "10.0.0.2 internal.local",
                "",
            ]
        )

        result = parse_output("hosts_file_check", output, 0)

        assert result.structured["entry_count"] == 3
        assert result.structured["localhost_mapped"] is True
        assert result.structured["duplicate_host_count"] == 1
        assert_evidence(result)


class TestInterfaceParsers:
    def test_nic_link_status_counts(self) -> None:
        output = "\n".join(
            [
                "Name                      Status       LinkSpeed",
                "----                      ------       ---------",
                "Ethernet0                 Up           1 Gbps",
                "Wi-Fi                     Disconnected 0 bps",
                "vEthernet (Default Switch) Up          10 Gbps",
                "",
            ]
        )

        result = parse_output("nic_link_status", output, 0)

        assert result.structured["adapter_count"] == 3
        assert result.structured["link_up_count"] == 2
        assert result.structured["link_down_or_disabled_count"] == 1
        assert result.diagnosis
        assert_evidence(result)

    def test_virtual_adapter_bare_json(self) -> None:
        result = parse_output("virtual_adapter_check", json.dumps(ADAPTER_PAYLOAD), 0)

        assert result.structured["virtual_adapter_count"] == 1
        assert result.structured["physical_adapter_count"] == 1
        assert result.structured["default_route_is_virtual"] is True
        assert result.structured["default_route_interface"] == "vEthernet"
        assert "virtual adapter" in joined(result)
        assert_evidence(result)

    def test_virtual_adapter_json_after_marker(self) -> None:
        output = "\n".join(
            [
                "Adapters: 2",
                "Virtual adapters: 1",
                "Physical adapters: 1",
                f"JSON:{json.dumps(ADAPTER_PAYLOAD)}",
            ]
        )

        result = parse_output("virtual_adapter_check", output, 0)

        assert result.structured["virtual_adapter_count"] == 1
        assert result.structured["physical_adapter_count"] == 1
        assert result.structured["default_route_is_virtual"] is True

    def test_virtual_adapter_single_object_route(self) -> None:
        payload = {
            "Adapters": {"Name": "Ethernet", "Status": "Up", "InterfaceIndex": 3},
            "DefaultRoutes": {"InterfaceIndex": 3, "InterfaceAlias": "Ethernet"},
        }

        result = parse_output("virtual_adapter_check", f"JSON:{json.dumps(payload)}", 0)

        assert result.structured["adapter_count"] == 1
        assert result.structured["default_route_is_virtual"] is False
        assert "physical adapter (Ethernet)" in joined(result)

    def test_virtual_adapter_summary_lines_without_json(self) -> None:
        output = "Virtual adapters: 2\nPhysical adapters: 1\nDefault route type: virtual\n"

        result = parse_output("virtual_adapter_check", output, 0)

        assert result.structured["virtual_adapter_count"] == 2
        assert result.structured["default_route_is_virtual"] is True

    def test_nic_ip_config(self) -> None:
        output = "\n".join(
            [
                "Windows IP Configuration",
                "",
                "   IPv4 Address. . . . . . . . . . . : 192.168.1.10",
                "   Subnet Mask . . . . . . . . . . . : 255.255.255.0",
                "   Default Gateway . . . . . . . . . : 192.168.1.1",
                "",
            ]
        )

        result = parse_output("nic_ip_config", output, 0)

        assert result.structured["ipv4_address_count"] >= 1
        assert result.structured["has_default_gateway"] is True
        assert_evidence(result)

    def test_nic_ip_config_empty_gateway(self) -> None:
        output = "   IPv4 Address. . . : 192.168.1.10\n   Default Gateway . . . :\n   DHCP Enabled. . . : Yes\n"

        result = parse_output("nic_ip_config", output, 0)

        assert result.structured["has_default_gateway"] is False

    def test_dhcp_status_counts(self) -> None:
        output = "\n".join(
            [
                "InterfaceAlias Dhcp     ConnectionState",
                "-------------- ----     ---------------",
                "Ethernet       Enabled  Connected",
                "Wi-Fi          Disabled Disconnected",
                "",
            ]
        )

        result = parse_output("dhcp_status", output, 0)

        assert result.structured["detected_dhcp_fields"] is True
        assert result.structured["dhcp_enabled_count"] >= 1
        assert result.structured["dhcp_disabled_count"] >= 1
        assert_evidence(result)

    def test_lsp_catalog_counts(self) -> None:
        output = "Catalog Entries : 10\n\nLayered Chain Entry\nLayered Chain Entry\n"

        result = parse_output("lsp_catalog_check", output, 0)

        assert result.structured["catalog_entries"] == 10
        assert result.structured["layered_provider_count"] == 2
        assert_evidence(result)


class TestRegistry:
    def test_unsupported_platform_marker_wins(self) -> None:
        result = parse_output("dhcp_status", "UNSUPPORTED_PLATFORM: DHCP status\n", 0)

        assert result.structured == {
            "supported_on_current_platform": False,
            "feature": "DHCP status",
        }
        assert "does not support DHCP status" in joined(result)
        assert_evidence(result)

    def test_unknown_check_falls_back_to_exit_code(self) -> None:
        result = parse_output("unknown_command", "hello", 0)

        assert result.structured == {"exit_code": 0}
        assert_evidence(result)

    def test_fallback_without_exit_code(self) -> None:
        result = parse_output("unknown_command", "", None)

        assert result.structured["exit_code"] == -1

    @pytest.mark.parametrize("check_id", list(CheckId))
    def test_empty_output_never_raises(self, check_id: CheckId) -> None:
        result = parse_output(check_id, "", None)

        assert_evidence(result)

    @pytest.mark.parametrize("check_id", list(CheckId))
    def test_garbage_output_never_raises(self, check_id: CheckId) -> None:
        result = parse_output(check_id, "\x00�{not json: [\r\n***\n", 1)

        assert_evidence(result)

    def test_string_and_enum_ids_agree(self) -> None:
        assert parse_output("ping_target", WINDOWS_PING_OK, 0) == parse_output(
            CheckId.PING_TARGET, WINDOWS_PING_OK, 0
        )

    def test_parsing_is_deterministic(self) -> None:
        first = parse_output("virtual_adapter_check", json.dumps(ADAPTER_PAYLOAD), 0)
        second = parse_output("virtual_adapter_check", json.dumps(ADAPTER_PAYLOAD), 0)

        assert first == second
