import re
import subprocess
import sys
from functools import lru_cache

from loguru import logger

UTF8 = "utf-8"
# Used when the code page cannot be probed at all.
PROBE_FAILURE_ENCODING = "gbk"
PROBE_TIMEOUT_SECONDS = 5

CODE_PAGE_ENCODINGS = {
    "65001": "utf-8",
    "936": "gbk",
    "54936": "gb18030",
    "950": "big5",
    "932": "shift_jis",
    "949": "euc_kr",
    "1252": "cp1252",
}

CODE_PAGE_PATTERN = re.compile(r"(\d{3,5})")


def code_page_to_encoding(code_page: str | None) -> str:
    """Map a Windows console code page to a Python codec name.

    Unknown code pages decode as UTF-8; a missing value means the probe
    failed and the regional fallback applies.
    """
    if not code_page:
        return PROBE_FAILURE_ENCODING
    return CODE_PAGE_ENCODINGS.get(code_page, UTF8)


def parse_chcp_output(output: str) -> str | None:
    match = CODE_PAGE_PATTERN.search(output)
    return match.group(1) if match else None


def is_windows(platform: str | None = None) -> bool:
    return (platform or sys.platform) == "win32"


@lru_cache(maxsize=1)
def console_encoding() -> str:
    """Encoding of child process console output, probed once per process."""
    if not is_windows():
        return UTF8

    try:
        result = subprocess.run(
            ["cmd", "/d", "/s", "/c", "chcp"],
            capture_output=True,
            text=True,
            encoding=UTF8,
            errors="replace",
            timeout=PROBE_TIMEOUT_SECONDS,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Code page probe failed: {}", e)
        return PROBE_FAILURE_ENCODING

    code_page = parse_chcp_output(f"{result.stdout}\n{result.stderr}")
    encoding = code_page_to_encoding(code_page)
    logger.debug("Console code page {} -> {}", code_page, encoding)
    return encoding
