from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from ._results import build_file_descriptor
from .errors import B2Error
from .types import FileDescriptor

MAX_PAGE_SIZE = 1000

FetchPage = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def build_list_payload(
    bucket_id: str, start_file_name: str | None, max_file_count: int
) -> dict[str, Any]:
    payload: dict[str, Any] = {"bucketId": bucket_id, "maxFileCount": int(max_file_count)}
    if start_file_name is not None:
        payload["startFileName"] = start_file_name
    return payload


async def collect_file_names(
    fetch_page: FetchPage,
    bucket_id: str,
    *,
    name_filter: str | None = None,
    page_size: int = MAX_PAGE_SIZE,
) -> list[FileDescriptor]:
    """Walk ``b2_list_file_names`` pages into one list, in server order.

    With ``name_filter`` a single one-entry page is requested and only an
    exact match is kept; the server otherwise answers with the next name
    after the filter.
    """
    if name_filter is not None:
        page = await fetch_page(build_list_payload(bucket_id, name_filter, 1))
        return [
            build_file_descriptor(raw)
            for raw in page.get("files", [])
            if raw.get("fileName") == name_filter
        ]

    page_size = max(1, min(int(page_size), MAX_PAGE_SIZE))
    files: list[FileDescriptor] = []
    cursor: str | None = None
    while True:
        page = await fetch_page(build_list_payload(bucket_id, cursor, page_size))
        files.extend(build_file_descriptor(raw) for raw in page.get("files", []))
        next_cursor = page.get("nextFileName")
        if not next_cursor:
            return files
        if cursor is not None and next_cursor <= cursor:
            raise B2Error(f"listing cursor did not advance past {cursor!r}")
        cursor = next_cursor


__all__ = ["MAX_PAGE_SIZE", "build_list_payload", "collect_file_names"]
