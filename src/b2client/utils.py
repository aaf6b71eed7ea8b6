from __future__ import annotations

import logging
import re
import time
from typing import Any
from urllib.parse import quote

from .errors import B2ValidationError

logger = logging.getLogger("b2client")

MAX_FILE_NAME_BYTES = 1024
MAX_FILE_INFO_ITEMS = 10
BUCKET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9-]{6,50}$")
FILE_INFO_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,50}$")


def debug(message: str, *args: Any) -> None:
    """Log at debug level. Callers never pass authorization tokens."""
    logger.debug("b2client: " + message, *args)


def now_millis() -> int:
    return int(time.time() * 1000)


def quote_file_name(name: str) -> str:
    """Percent-encode a file name for headers and ``/file/`` URLs; ``/`` is kept."""
    return quote(name, safe="/")


def validate_bucket_name(name: str) -> str:
    if not BUCKET_NAME_PATTERN.match(name or ""):
        raise B2ValidationError(
            "bucket name must be 6-50 characters of letters, digits and '-'"
        )
    if name.lower().startswith("b2-"):
        raise B2ValidationError("bucket names starting with 'b2-' are reserved")
    return name


def validate_file_name(name: str) -> str:
    if not name:
        raise B2ValidationError("file name is required")
    if name.startswith("/") or name.endswith("/") or "//" in name:
        raise B2ValidationError(
            "file name cannot start or end with '/' or contain '//'"
        )
    if len(name.encode("utf-8")) > MAX_FILE_NAME_BYTES:
        raise B2ValidationError(f"file name is longer than {MAX_FILE_NAME_BYTES} bytes")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in name):
        raise B2ValidationError("file name cannot contain control characters")
    return name


def build_file_info(
    info: dict[str, str] | None, last_modified_millis: int | None
) -> dict[str, str]:
    """Merge user metadata with ``src_last_modified_millis`` (defaults to now)."""
    file_info = {str(k): str(v) for k, v in (info or {}).items()}
    for key in file_info:
        if not FILE_INFO_KEY_PATTERN.match(key):
            raise B2ValidationError(f"invalid file info key: {key!r}")
    millis = last_modified_millis if last_modified_millis is not None else now_millis()
    file_info["src_last_modified_millis"] = str(int(millis))
    check_file_info_room(file_info)
    return file_info


def check_file_info_room(file_info: dict[str, str], reserved: int = 0) -> None:
    """Raise unless ``file_info`` plus ``reserved`` extra keys fits B2's limit."""
    if len(file_info) + reserved > MAX_FILE_INFO_ITEMS:
        raise B2ValidationError(
            f"at most {MAX_FILE_INFO_ITEMS} file info entries are allowed"
            + (f", {reserved} of them reserved for large files" if reserved else "")
        )


__all__ = [
    "debug",
    "now_millis",
    "quote_file_name",
    "validate_bucket_name",
    "validate_file_name",
    "build_file_info",
    "check_file_info_room",
]
