import os
import re
from collections.abc import Mapping

from loguru import logger
from pydantic import BaseModel, Field

DNS_PROBE_DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9.-]+$")

DEFAULT_GLOBAL_DNS_PROBE_DOMAIN = "example.com"
DEFAULT_GLOBAL_ICMP_TARGET = "1.1.1.1"

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 8
DEFAULT_CONCURRENCY = 4

JOB_CAPACITY = 50


def clamp_concurrency(value: int) -> int:
    return max(MIN_CONCURRENCY, min(MAX_CONCURRENCY, value))


def normalize_probe_domain(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value or not DNS_PROBE_DOMAIN_PATTERN.match(value):
        return DEFAULT_GLOBAL_DNS_PROBE_DOMAIN
    return value.lower()


class DiagnosticsSettings(BaseModel, frozen=True):
    default_count: int = Field(default=4, ge=1, le=20)
    default_timeout_seconds: int = Field(default=10, ge=1, le=30)
    default_concurrency: int = Field(
        default=DEFAULT_CONCURRENCY, ge=MIN_CONCURRENCY, le=MAX_CONCURRENCY
    )
    job_capacity: int = Field(default=JOB_CAPACITY, ge=1)
    evidence_limit: int = Field(default=8, ge=1)
    global_dns_probe_domain: str = DEFAULT_GLOBAL_DNS_PROBE_DOMAIN
    global_icmp_target: str = DEFAULT_GLOBAL_ICMP_TARGET

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DiagnosticsSettings":
        """Build settings from NET_CHECK_* environment variables.

        Invalid values fall back to defaults instead of failing startup.
        """
        env = os.environ if environ is None else environ

        concurrency = DEFAULT_CONCURRENCY
        raw_concurrency = env.get("NET_CHECK_CONCURRENCY")
        if raw_concurrency:
            try:
                concurrency = clamp_concurrency(int(raw_concurrency))
            except ValueError:
                logger.warning("Ignoring invalid NET_CHECK_CONCURRENCY: {}", raw_concurrency)

        return cls(
            default_concurrency=concurrency,
            global_dns_probe_domain=normalize_probe_domain(
                env.get("NET_CHECK_GLOBAL_DNS_PROBE_DOMAIN")
            ),
        )
