import codecs
import re
from dataclasses import dataclass

from loguru import logger

from netcheck.domain.value_objects.check_id import CheckId
from netcheck.infrastructure.encoding.code_page import UTF8, console_encoding, is_windows

# UTF-8 Chinese words ("directory", "provider", "protocol", ...) read as GBK.
MOJIBAKE_PATTERN = re.compile(
    r"鐩綍|鎻愪緵|绋嬪簭|鍗忚|鍦板潃|鏈嶅姟|绫诲瀷|鐗堟湰|璺緞|搴"
)

# Checks whose tool may print UTF-8 whatever the console code page says.
UTF8_RECOVERY_CHECKS = frozenset({CheckId.LSP_CATALOG_CHECK.value})


def _canonical(encoding: str) -> str:
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        return UTF8


def _incremental_decoder(encoding: str) -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder(_canonical(encoding))(errors="replace")


def looks_like_mojibake(text: str) -> bool:
    return MOJIBAKE_PATTERN.search(text) is not None


@dataclass
class DecoderState:
    encoding: str
    swapped: bool = False


class StreamDecoder:
    """Incremental bytes-to-text decoder for one output stream.

    Multi-byte sequences split across chunks are buffered until the next
    chunk or the final flush. With ``recover_utf8`` set, the first chunk
    that decodes to UTF-8 mojibake switches the stream to UTF-8 and is
    decoded again; this happens at most once.
    """

    def __init__(self, encoding: str = UTF8, *, recover_utf8: bool = False) -> None:
        self._state = DecoderState(encoding=_canonical(encoding))
        self._decoder = _incremental_decoder(self._state.encoding)
        self._recover_utf8 = recover_utf8
        self._flushed = False

    @property
    def encoding(self) -> str:
        return self._state.encoding

    @property
    def swapped(self) -> bool:
        return self._state.swapped

    def _should_swap(self, text: str) -> bool:
        return (
            self._recover_utf8
            and not self._state.swapped
            and self._state.encoding != UTF8
            and looks_like_mojibake(text)
        )

    def decode(self, chunk: bytes) -> str:
        # Incomplete sequence carried over from the previous chunk.
        pending, _ = self._decoder.getstate()
        text = self._decoder.decode(chunk)
        if self._should_swap(text):
            logger.debug("Switching stream decoder from {} to {}", self._state.encoding, UTF8)
            self._state = DecoderState(encoding=UTF8, swapped=True)
            self._decoder = _incremental_decoder(UTF8)
            text = self._decoder.decode(pending + chunk)
        return text

    def flush(self) -> str:
        """Emit buffered bytes at end of stream. Safe to call repeatedly."""
        if self._flushed:
            return ""
        self._flushed = True
        return self._decoder.decode(b"", final=True)


def create_stream_decoder(check_id: str, platform: str | None = None) -> StreamDecoder:
    if not is_windows(platform):
        return StreamDecoder(UTF8)
    return StreamDecoder(console_encoding(), recover_utf8=check_id in UTF8_RECOVERY_CHECKS)
