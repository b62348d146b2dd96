from netcheck.infrastructure.encoding.code_page import (
    code_page_to_encoding,
    console_encoding,
    parse_chcp_output,
)
from netcheck.infrastructure.encoding.stream_decoder import (
    StreamDecoder,
    create_stream_decoder,
    looks_like_mojibake,
)

__all__ = [
    "StreamDecoder",
    "code_page_to_encoding",
    "console_encoding",
    "create_stream_decoder",
    "looks_like_mojibake",
    "parse_chcp_output",
]
