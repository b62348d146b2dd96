import pytest

from netcheck.infrastructure.encoding import code_page
from netcheck.infrastructure.encoding import stream_decoder as stream_decoder_module
from netcheck.infrastructure.encoding.code_page import (
    code_page_to_encoding,
    is_windows,
    parse_chcp_output,
)
from netcheck.infrastructure.encoding.stream_decoder import (
    StreamDecoder,
    create_stream_decoder,
    looks_like_mojibake,
)

PROTOCOL_TEXT = "目录提供程序协议\n"


class TestCodePage:
    @pytest.mark.parametrize(
        ("page", "encoding"),
        [
            ("65001", "utf-8"),
            ("936", "gbk"),
            ("54936", "gb18030"),
            ("950", "big5"),
            ("932", "shift_jis"),
            ("949", "euc_kr"),
            ("1252", "cp1252"),
        ],
    )
    def test_known_code_pages(self, page: str, encoding: str) -> None:
        assert code_page_to_encoding(page) == encoding

    def test_unknown_code_page_is_utf8(self) -> None:
        assert code_page_to_encoding("437") == "utf-8"

    def test_failed_probe_falls_back_to_gbk(self) -> None:
        assert code_page_to_encoding(None) == "gbk"

    @pytest.mark.parametrize(
        ("output", "page"),
        [
            ("Active code page: 936", "936"),
            ("活动代码页: 65001\r\n", "65001"),
            ("no digits here", None),
        ],
    )
    def test_parse_chcp_output(self, output: str, page: str | None) -> None:
        assert parse_chcp_output(output) == page

    def test_is_windows(self) -> None:
        assert is_windows("win32") is True
        assert is_windows("linux") is False

    def test_console_encoding_off_windows(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(code_page.sys, "platform", "linux")
        code_page.console_encoding.cache_clear()
        try:
            assert code_page.console_encoding() == "utf-8"
        finally:
            code_page.console_encoding.cache_clear()


class TestStreamDecoder:
    def test_split_multibyte_sequence(self) -> None:
        decoder = StreamDecoder()
        encoded = "你好".encode()

        first = decoder.decode(encoded[:4])
        second = decoder.decode(encoded[4:])

        assert first == "你"
        assert second == "好"
        assert decoder.flush() == ""

    def test_flush_emits_dangling_bytes_once(self) -> None:
        decoder = StreamDecoder()

        assert decoder.decode("你".encode()[:2]) == ""
        assert decoder.flush() == "�"
        assert decoder.flush() == ""

    def test_gbk_stream(self) -> None:
        decoder = StreamDecoder("gbk")

        assert decoder.decode("默认网关".encode("gbk")) == "默认网关"
        assert decoder.encoding == "gbk"

    def test_unknown_encoding_uses_utf8(self) -> None:
        assert StreamDecoder("no-such-codec").encoding == "utf-8"

    def test_mojibake_switches_to_utf8_once(self) -> None:
        decoder = StreamDecoder("gbk", recover_utf8=True)

        text = decoder.decode(PROTOCOL_TEXT.encode("utf-8"))

        assert text == PROTOCOL_TEXT
        assert decoder.swapped is True
        assert decoder.encoding == "utf-8"
        assert decoder.decode("更多\n".encode("utf-8")) == "更多\n"

    def test_swap_keeps_bytes_buffered_from_previous_chunk(self) -> None:
        decoder = StreamDecoder("gbk", recover_utf8=True)
        encoded = PROTOCOL_TEXT.encode("utf-8")

        first = decoder.decode(b"abc" + encoded[:1])
        second = decoder.decode(encoded[1:])

        assert first == "abc"
        assert decoder.swapped is True
        assert second == PROTOCOL_TEXT
        assert decoder.flush() == ""

    def test_no_recovery_without_flag(self) -> None:
        decoder = StreamDecoder("gbk")

        text = decoder.decode(PROTOCOL_TEXT.encode("utf-8"))

        assert text != PROTOCOL_TEXT
        assert looks_like_mojibake(text)
        assert decoder.swapped is False

    def test_real_gbk_text_is_not_swapped(self) -> None:
        decoder = StreamDecoder("gbk", recover_utf8=True)

        assert decoder.decode(PROTOCOL_TEXT.encode("gbk")) == PROTOCOL_TEXT
        assert decoder.swapped is False


class TestCreateStreamDecoder:
    def test_non_windows_is_utf8(self) -> None:
        decoder = create_stream_decoder("lsp_catalog_check", platform="linux")

        assert decoder.encoding == "utf-8"

    def test_windows_uses_console_code_page(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(stream_decoder_module, "console_encoding", lambda: "gbk")

        ping = create_stream_decoder("ping_target", platform="win32")
        winsock = create_stream_decoder("lsp_catalog_check", platform="win32")

        assert ping.encoding == "gbk"
        assert winsock.decode(PROTOCOL_TEXT.encode("utf-8")) == PROTOCOL_TEXT
        assert ping.decode(PROTOCOL_TEXT.encode("utf-8")) != PROTOCOL_TEXT
