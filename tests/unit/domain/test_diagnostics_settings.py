import pytest
from pydantic import ValidationError

from netcheck.domain.value_objects.diagnostics_settings import (
    DEFAULT_CONCURRENCY,
    DEFAULT_GLOBAL_DNS_PROBE_DOMAIN,
    DiagnosticsSettings,
    clamp_concurrency,
    normalize_probe_domain,
)


class TestDiagnosticsSettings:
    def test_defaults(self) -> None:
        settings = DiagnosticsSettings()

        assert settings.default_concurrency == DEFAULT_CONCURRENCY
        assert settings.job_capacity == 50
        assert settings.global_dns_probe_domain == "example.com"
        assert settings.global_icmp_target == "1.1.1.1"

    def test_from_empty_env(self) -> None:
        assert DiagnosticsSettings.from_env({}) == DiagnosticsSettings()

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1", 1), ("6", 6), ("20", 8), ("0", 1), ("-3", 1), ("abc", DEFAULT_CONCURRENCY)],
    )
    def test_concurrency_from_env(self, raw: str, expected: int) -> None:
        settings = DiagnosticsSettings.from_env({"NET_CHECK_CONCURRENCY": raw})

        assert settings.default_concurrency == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Example.NET", "example.net"),
            ("  probe.example.org ", "probe.example.org"),
            ("bad domain!", DEFAULT_GLOBAL_DNS_PROBE_DOMAIN),
            ("", DEFAULT_GLOBAL_DNS_PROBE_DOMAIN),
        ],
    )
    def test_probe_domain_from_env(self, raw: str, expected: str) -> None:
        settings = DiagnosticsSettings.from_env({"NET_CHECK_GLOBAL_DNS_PROBE_DOMAIN": raw})

        assert settings.global_dns_probe_domain == expected

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NET_CHECK_CONCURRENCY", "2")

        assert DiagnosticsSettings.from_env().default_concurrency == 2

    def test_settings_are_validated(self) -> None:
        with pytest.raises(ValidationError):
            DiagnosticsSettings(default_concurrency=9)

    def test_helpers(self) -> None:
        assert clamp_concurrency(100) == 8
        assert normalize_probe_domain(None) == DEFAULT_GLOBAL_DNS_PROBE_DOMAIN
