"""Core business logic shared by the sync and async B2 clients."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from ._http import BaseTransport, HTTPConfig, require_credentials
from .api import B2RequestClient, SleepFn
from .auth import AccountAuthorizer, AuthorizationCache
from .buckets import BucketRegistry
from .content import as_source
from .download import Downloader
from .files import FileOperations
from .listing import MAX_PAGE_SIZE
from .types import Bucket, BucketType, DownloadedFile, FileDescriptor
from .upload import UploadSession, create_part_runtime
from .utils import build_file_info, validate_file_name


class _BaseB2Client:
    """Base class for the B2 API with shared async implementation."""

    _transport: BaseTransport
    _blocking: bool

    def _setup(
        self,
        transport: BaseTransport,
        *,
        account_id: str | None,
        application_key: str | None,
        sleep_fn: SleepFn,
        blocking: bool,
    ) -> None:
        resolved_id, resolved_key = require_credentials(account_id, application_key)
        self._transport = transport
        self._blocking = blocking
        self._request_client = B2RequestClient(transport=transport, sleep_fn=sleep_fn)
        self._auth = AuthorizationCache(
            AccountAuthorizer(self._request_client, resolved_id, resolved_key)
        )
        self._buckets = BucketRegistry(self._request_client, self._auth)
        self._files = FileOperations(self._request_client, self._auth)
        self._downloader = Downloader(self._request_client, self._auth)

    @property
    def config(self) -> HTTPConfig:
        return self._transport.config

    @property
    def auth(self) -> AuthorizationCache:
        return self._auth

    async def _resolve_bucket_id(self, bucket_id: str | None, bucket_name: str | None) -> str:
        return await self._buckets.resolve_bucket_id(bucket_id, bucket_name)

    # Buckets

    async def _create_bucket(self, name: str, bucket_type: BucketType) -> Bucket:
        return await self._buckets.create_bucket(name, bucket_type)

    async def _list_buckets(self) -> list[Bucket]:
        return await self._buckets.list_buckets()

    async def _get_bucket(self, name: str) -> Bucket | None:
        return await self._buckets.get_bucket(name)

    async def _update_bucket(
        self,
        bucket_type: BucketType,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
    ) -> Bucket:
        resolved = await self._resolve_bucket_id(bucket_id, bucket_name)
        return await self._buckets.update_bucket(resolved, bucket_type)

    async def _delete_bucket(
        self, *, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> bool:
        resolved = await self._resolve_bucket_id(bucket_id, bucket_name)
        await self._buckets.delete_bucket(resolved)
        return True

    # Files

    async def _upload(
        self,
        body: Any,
        *,
        file_name: str,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
        content_type: str | None = None,
        info: dict[str, str] | None = None,
        last_modified_millis: int | None = None,
        large_file_threshold: int | None = None,
        concurrency: int = 1,
    ) -> FileDescriptor:
        source = as_source(body)
        # Input errors surface before the bucket lookup goes to the network.
        validate_file_name(file_name)
        file_info = build_file_info(info, last_modified_millis)
        resolved = await self._resolve_bucket_id(bucket_id, bucket_name)
        session = UploadSession(
            self._request_client,
            self._auth,
            bucket_id=resolved,
            file_name=file_name,
            content_type=content_type,
            file_info=file_info,
            last_modified_millis=int(file_info["src_last_modified_millis"]),
            large_file_threshold=(
                large_file_threshold
                if large_file_threshold is not None
                else self.config.large_file_threshold
            ),
            runtime=create_part_runtime(concurrency, blocking=self._blocking),
        )
        return await session.upload(source)

    async def _upload_file(
        self,
        path: str | os.PathLike[str],
        *,
        file_name: str | None = None,
        **kwargs: Any,
    ) -> FileDescriptor:
        local = Path(path)
        if kwargs.get("last_modified_millis") is None:
            kwargs["last_modified_millis"] = int(local.stat().st_mtime * 1000)
        with local.open("rb") as stream:
            return await self._upload(stream, file_name=file_name or local.name, **kwargs)

    async def _list_files(
        self,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
        name_filter: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[FileDescriptor]:
        resolved = await self._resolve_bucket_id(bucket_id, bucket_name)
        return await self._files.list_files(resolved, name_filter, page_size=page_size)

    async def _file_exists(
        self,
        file_name: str,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
    ) -> bool:
        matches = await self._list_files(
            bucket_id=bucket_id, bucket_name=bucket_name, name_filter=file_name
        )
        return bool(matches)

    async def _get_file_info(self, file_id: str) -> FileDescriptor:
        return await self._files.get_file_info(file_id)

    async def _delete_file(self, file_id: str, file_name: str | None = None) -> bool:
        await self._files.delete_file(file_id, file_name)
        return True

    async def _hide_file(
        self,
        file_name: str,
        *,
        bucket_id: str | None = None,
        bucket_name: str | None = None,
    ) -> FileDescriptor:
        resolved = await self._resolve_bucket_id(bucket_id, bucket_name)
        return await self._files.hide_file(resolved, file_name)

    async def _cancel_large_file(self, file_id: str) -> bool:
        await self._files.cancel_large_file(file_id)
        return True

    async def _download(
        self,
        *,
        file_id: str | None = None,
        bucket_name: str | None = None,
        file_name: str | None = None,
        save_as: str | os.PathLike[str] | None = None,
    ) -> DownloadedFile:
        return await self._downloader.download(
            file_id=file_id, bucket_name=bucket_name, file_name=file_name, save_as=save_as
        )


__all__ = ["_BaseB2Client"]
