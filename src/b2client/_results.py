from __future__ import annotations

from typing import Any, cast
from urllib.parse import unquote

import httpx

from .types import Bucket, BucketType, DownloadedFile, FileAction, FileDescriptor

WIRE_BUCKET_TYPES: dict[str, BucketType] = {"allPublic": "public", "allPrivate": "private"}
INFO_HEADER_PREFIX = "x-bz-info-"


def normalize_sha1(value: str | None) -> str | None:
    """Strip the ``unverified:`` marker and map ``none`` to None."""
    if not value or value == "none":
        return None
    if value.startswith("unverified:"):
        return value[len("unverified:") :]
    return value


def build_bucket(raw: dict[str, Any]) -> Bucket:
    wire_type = raw["bucketType"]
    return Bucket(
        id=raw["bucketId"],
        name=raw["bucketName"],
        type=WIRE_BUCKET_TYPES.get(wire_type, cast(BucketType, wire_type)),
    )


def build_file_descriptor(raw: dict[str, Any]) -> FileDescriptor:
    return FileDescriptor(
        id=raw["fileId"],
        name=raw["fileName"],
        content_sha1=normalize_sha1(raw.get("contentSha1")),
        size=int(raw.get("contentLength") or 0),
        content_type=raw.get("contentType"),
        info=dict(raw.get("fileInfo") or {}),
        bucket_id=raw.get("bucketId"),
        action=cast(FileAction, raw.get("action") or "upload"),
        upload_timestamp=raw.get("uploadTimestamp"),
    )


def build_downloaded_file(response: httpx.Response) -> DownloadedFile:
    headers = response.headers
    info = {
        key[len(INFO_HEADER_PREFIX) :]: unquote(value)
        for key, value in headers.items()
        if key.lower().startswith(INFO_HEADER_PREFIX)
    }
    content = response.content
    content_length = headers.get("content-length")
    return DownloadedFile(
        file_id=headers.get("x-bz-file-id"),
        file_name=unquote(headers.get("x-bz-file-name", "")),
        content_sha1=normalize_sha1(headers.get("x-bz-content-sha1")),
        size=int(content_length) if content_length else len(content),
        content_type=headers.get("content-type"),
        info=info,
        content=content,
    )
