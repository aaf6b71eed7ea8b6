from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

BucketType = Literal["public", "private"]
FileAction = Literal["upload", "hide", "start", "folder"]


@dataclass(frozen=True, slots=True)
class Bucket:
    id: str
    name: str
    type: BucketType


@dataclass(frozen=True, slots=True)
class FileDescriptor:
    id: str
    name: str
    content_sha1: str | None
    size: int
    content_type: str | None
    info: dict[str, str] = field(default_factory=dict)
    bucket_id: str | None = None
    action: FileAction = "upload"
    upload_timestamp: int | None = None

    @property
    def uploaded_at(self) -> datetime | None:
        if self.upload_timestamp is None:
            return None
        return datetime.fromtimestamp(self.upload_timestamp / 1000, tz=timezone.utc)


class UploadStrategy(str, Enum):
    STANDARD = "standard"
    MULTIPART = "multipart"


@dataclass(frozen=True, slots=True)
class UploadPlan:
    size: int
    strategy: UploadStrategy
    part_size: int
    part_count: int

    def part_range(self, part_number: int) -> tuple[int, int]:
        """Return ``(offset, length)`` of a 1-based part."""
        if not 1 <= part_number <= self.part_count:
            raise IndexError(f"part {part_number} outside 1..{self.part_count}")
        offset = (part_number - 1) * self.part_size
        return offset, min(self.part_size, self.size - offset)

    def iter_part_ranges(self) -> Iterator[tuple[int, int, int]]:
        """Yield ``(part_number, offset, length)`` in ascending part order."""
        for part_number in range(1, self.part_count + 1):
            offset, length = self.part_range(part_number)
            yield part_number, offset, length


@dataclass(frozen=True, slots=True)
class PartResult:
    part_number: int
    offset: int
    length: int
    sha1: str


@dataclass(frozen=True, slots=True)
class AuthContext:
    account_id: str
    token: str = field(repr=False)
    api_url: str
    download_url: str
    recommended_part_size: int
    absolute_minimum_part_size: int


@dataclass(frozen=True, slots=True)
class UploadTarget:
    url: str
    token: str = field(repr=False)


@dataclass(slots=True)
class DownloadedFile:
    file_id: str | None
    file_name: str
    content_sha1: str | None
    size: int
    content_type: str | None
    info: dict[str, str]
    content: bytes
