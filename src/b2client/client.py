"""B2 API client classes."""

from __future__ import annotations

import asyncio
import os
import time
from typing import Any

import httpx

from ._core import _BaseB2Client
from ._http import AsyncTransport, BlockingTransport, HTTPConfig, run_sync
from .api import SleepFn
from .listing import MAX_PAGE_SIZE
from .types import Bucket, BucketType, DownloadedFile, FileDescriptor


class B2Client(_BaseB2Client):
    """Synchronous client for the B2 API.

    Authorization happens lazily on the first call and again whenever the
    server rejects the cached token.
    """

    def __init__(
        self,
        account_id: str | None = None,
        application_key: str | None = None,
        *,
        config: HTTPConfig | None = None,
        http_client: httpx.Client | None = None,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        transport = BlockingTransport(config or HTTPConfig.from_env(), client=http_client)
        self._setup(
            transport,
            account_id=account_id,
            application_key=application_key,
            sleep_fn=sleep_fn,
            blocking=True,
        )

    def authorize(self) -> None:
        """Authorize now instead of on the first request."""
        run_sync(self._auth.refresh())

    def create_bucket(self, name: str, bucket_type: BucketType = "private") -> Bucket:
        """Create a bucket with the given name and visibility."""
        return run_sync(self._create_bucket(name, bucket_type))

    def list_buckets(self) -> list[Bucket]:
        """Return every bucket on the account."""
        return run_sync(self._list_buckets())

    def get_bucket(self, name: str) -> Bucket | None:
        return run_sync(self._get_bucket(name))

    def update_bucket(
        self,
        bucket_type: BucketType,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
    ) -> Bucket:
        """Change a bucket's visibility."""
        return run_sync(
            self._update_bucket(bucket_type, bucket_id=bucket_id, bucket_name=bucket_name)
        )

    def delete_bucket(self, *, bucket_id: str | None = None, bucket_name: str | None = None) -> bool:
        """Delete an empty bucket."""
        return run_sync(self._delete_bucket(bucket_id=bucket_id, bucket_name=bucket_name))

    def upload(self, body: Any, *, file_name: str, **kwargs: Any) -> FileDescriptor:
        """Upload bytes, a string or a binary stream as ``file_name``.

        Accepts ``bucket_id`` or ``bucket_name``, plus ``content_type``,
        ``info``, ``last_modified_millis``, ``large_file_threshold`` and
        ``concurrency`` (parallel large-file parts, default 1).
        """
        return run_sync(self._upload(body, file_name=file_name, **kwargs))

    def upload_file(
        self, path: str | os.PathLike[str], *, file_name: str | None = None, **kwargs: Any
    ) -> FileDescriptor:
        """Upload a local file; the name defaults to the file's base name."""
        return run_sync(self._upload_file(path, file_name=file_name, **kwargs))

    def list_files(
        self,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
        name_filter: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[FileDescriptor]:
        """List the latest version of every file in a bucket, in name order."""
        return run_sync(
            self._list_files(
                bucket_id=bucket_id,
                bucket_name=bucket_name,
                name_filter=name_filter,
                page_size=page_size,
            )
        )

    def file_exists(
        self, file_name: str, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> bool:
        return run_sync(
            self._file_exists(file_name, bucket_id=bucket_id, bucket_name=bucket_name)
        )

    def get_file_info(self, file_id: str) -> FileDescriptor:
        return run_sync(self._get_file_info(file_id))

    def delete_file(self, file_id: str, file_name: str | None = None) -> bool:
        """Delete one file version; the name is looked up when not given."""
        return run_sync(self._delete_file(file_id, file_name))

    def hide_file(
        self, file_name: str, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> FileDescriptor:
        return run_sync(
            self._hide_file(file_name, bucket_id=bucket_id, bucket_name=bucket_name)
        )

    def cancel_large_file(self, file_id: str) -> bool:
        """Abandon an unfinished large file and discard its parts."""
        return run_sync(self._cancel_large_file(file_id))

    def download(
        self,
        *,
        file_id: str | None = None,
        bucket_name: str | None = None,
        file_name: str | None = None,
        save_as: str | os.PathLike[str] | None = None,
    ) -> DownloadedFile:
        """Download a file by id, or by bucket name and file name."""
        return run_sync(
            self._download(
                file_id=file_id, bucket_name=bucket_name, file_name=file_name, save_as=save_as
            )
        )

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> B2Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class AsyncB2Client(_BaseB2Client):
    """Asynchronous client for the B2 API."""

    def __init__(
        self,
        account_id: str | None = None,
        application_key: str | None = None,
        *,
        config: HTTPConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep_fn: SleepFn = asyncio.sleep,
    ) -> None:
        self._async_transport = AsyncTransport(
            config or HTTPConfig.from_env(), client=http_client
        )
        self._setup(
            self._async_transport,
            account_id=account_id,
            application_key=application_key,
            sleep_fn=sleep_fn,
            blocking=False,
        )

    async def authorize(self) -> None:
        """Authorize now instead of on the first request."""
        await self._auth.refresh()

    async def create_bucket(self, name: str, bucket_type: BucketType = "private") -> Bucket:
        """Create a bucket with the given name and visibility."""
        return await self._create_bucket(name, bucket_type)

    async def list_buckets(self) -> list[Bucket]:
        """Return every bucket on the account."""
        return await self._list_buckets()

    async def get_bucket(self, name: str) -> Bucket | None:
        return await self._get_bucket(name)

    async def update_bucket(
        self,
        bucket_type: BucketType,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
    ) -> Bucket:
        """Change a bucket's visibility."""
        return await self._update_bucket(bucket_type, bucket_id=bucket_id, bucket_name=bucket_name)

    async def delete_bucket(
        self, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> bool:
        """Delete an empty bucket."""
        return await self._delete_bucket(bucket_id=bucket_id, bucket_name=bucket_name)

    async def upload(self, body: Any, *, file_name: str, **kwargs: Any) -> FileDescriptor:
        """Upload bytes, a string or a binary stream as ``file_name``."""
        return await self._upload(body, file_name=file_name, **kwargs)

    async def upload_file(
        self, path: str | os.PathLike[str], *, file_name: str | None = None, **kwargs: Any
    ) -> FileDescriptor:
        """Upload a local file; the name defaults to the file's base name."""
        return await self._upload_file(path, file_name=file_name, **kwargs)

    async def list_files(
        self,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
        name_filter: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[FileDescriptor]:
        """List the latest version of every file in a bucket, in name order."""
        return await self._list_files(
            bucket_id=bucket_id,
            bucket_name=bucket_name,
            name_filter=name_filter,
            page_size=page_size,
        )

    async def file_exists(
        self, file_name: str, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> bool:
        return await self._file_exists(file_name, bucket_id=bucket_id, bucket_name=bucket_name)

    async def get_file_info(self, file_id: str) -> FileDescriptor:
        return await self._get_file_info(file_id)

    async def delete_file(self, file_id: str, file_name: str | None = None) -> bool:
        """Delete one file version; the name is looked up when not given."""
        return await self._delete_file(file_id, file_name)

    async def hide_file(
        self, file_name: str, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> FileDescriptor:
        return await self._hide_file(file_name, bucket_id=bucket_id, bucket_name=bucket_name)

    async def cancel_large_file(self, file_id: str) -> bool:
        """Abandon an unfinished large file and discard its parts."""
        return await self._cancel_large_file(file_id)

    async def download(
        self,
        *,
        file_id: str | None = None,
        bucket_name: str | None = None,
        file_name: str | None = None,
        save_as: str | os.PathLike[str] | None = None,
    ) -> DownloadedFile:
        """Download a file by id, or by bucket name and file name."""
        return await self._download(
            file_id=file_id, bucket_name=bucket_name, file_name=file_name, save_as=save_as
        )

    async def aclose(self) -> None:
        await self._async_transport.aclose()

    async def __aenter__(self) -> AsyncB2Client:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


__all__ = ["B2Client", "AsyncB2Client"]
