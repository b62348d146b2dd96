from netcheck.domain.services.parsers import parse_output
from netcheck.domain.services.proxy_masking import mask_proxy_value
from netcheck.domain.services.summary_builder import build_summary, has_warning

__all__ = [
    "build_summary",
    "has_warning",
    "mask_proxy_value",
    "parse_output",
]
