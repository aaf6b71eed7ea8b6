"""SHA-1 digests and byte ranges over in-memory buffers and seekable streams.

Every upload reads its bytes through :func:`read_range`, hashes that exact
buffer, and transmits the same buffer, so the digest sent in
``X-Bz-Content-Sha1`` always describes the bytes on the wire.
"""

from __future__ import annotations

import hashlib
import io
from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Any

from .errors import B2IntegrityError, B2ValidationError

READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class BytesSource:
    data: bytes


@dataclass(frozen=True, slots=True)
class StreamSource:
    """A seekable binary stream, anchored at ``start``, ``size`` bytes long."""

    stream: IO[bytes]
    start: int
    size: int


ContentSource = BytesSource | StreamSource


def _is_seekable(stream: Any) -> bool:
    seekable = getattr(stream, "seekable", None)
    if callable(seekable):
        try:
            return bool(seekable())
        except (OSError, ValueError):
            return False
    return hasattr(stream, "seek") and hasattr(stream, "tell")


def as_source(body: Any) -> ContentSource:
    """Classify an upload body as in-memory bytes or a seekable stream."""
    if body is None:
        raise B2ValidationError("body is required")
    if isinstance(body, ContentSource):
        return body
    if isinstance(body, str):
        return BytesSource(body.encode("utf-8"))
    if isinstance(body, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(body))
    if isinstance(body, Mapping):
        raise B2ValidationError(
            "Body must be a string, buffer or stream. "
            "You sent a mapping, double check what you're trying to upload."
        )
    if isinstance(body, io.TextIOBase):
        raise B2ValidationError("text streams are not accepted; open the file in binary mode")
    if hasattr(body, "read"):
        if _is_seekable(body):
            start = body.tell()
            body.seek(0, io.SEEK_END)
            end = body.tell()
            body.seek(start)
            return StreamSource(body, start, end - start)
        # Unseekable: buffer so the hash and the upload see the same bytes.
        data = body.read()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise B2ValidationError("stream must yield bytes; open the file in binary mode")
        return BytesSource(bytes(data))
    raise B2ValidationError(f"unsupported body type: {type(body).__name__}")


def source_size(source: ContentSource) -> int:
    if isinstance(source, BytesSource):
        return len(source.data)
    return source.size


def _resolve_range(source: ContentSource, offset: int, length: int | None) -> tuple[int, int]:
    if offset < 0 or (length is not None and length < 0):
        raise B2ValidationError(f"malformed range: offset={offset}, length={length}")
    size = source_size(source)
    if length is None:
        length = max(size - offset, 0)
    if offset + length > size:
        raise B2IntegrityError(
            f"range [{offset}, {offset + length}) exceeds source size",
            expected=offset + length,
            actual=size,
        )
    return offset, length


def _iter_stream_range(source: StreamSource, offset: int, length: int):
    stream = source.stream
    position = stream.tell()
    try:
        stream.seek(source.start + offset)
        remaining = length
        while remaining > 0:
            chunk = stream.read(min(READ_CHUNK_SIZE, remaining))
            if isinstance(chunk, str):
                raise B2ValidationError("stream must yield bytes; open the file in binary mode")
            if not chunk:
                raise B2IntegrityError(
                    "stream ended before the requested range",
                    expected=length,
                    actual=length - remaining,
                )
            remaining -= len(chunk)
            yield chunk
    finally:
        stream.seek(position)


def read_range(source: ContentSource, offset: int = 0, length: int | None = None) -> bytes:
    """Return exactly ``length`` bytes starting at ``offset``."""
    offset, length = _resolve_range(source, offset, length)
    if isinstance(source, BytesSource):
        return source.data[offset : offset + length]
    return b"".join(_iter_stream_range(source, offset, length))


def digest(
    source: ContentSource | bytes, offset: int = 0, length: int | None = None
) -> tuple[str, int]:
    """Return ``(sha1_hex, byte_length)`` of a range of ``source``.

    ``length=None`` means "to the end". Streams are restored to the position
    they had before the call.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = BytesSource(bytes(source))
    offset, length = _resolve_range(source, offset, length)
    sha1 = hashlib.sha1()
    if isinstance(source, BytesSource):
        sha1.update(memoryview(source.data)[offset : offset + length])
    else:
        for chunk in _iter_stream_range(source, offset, length):
            sha1.update(chunk)
    return sha1.hexdigest(), length


__all__ = [
    "BytesSource",
    "StreamSource",
    "ContentSource",
    "as_source",
    "source_size",
    "read_range",
    "digest",
]
