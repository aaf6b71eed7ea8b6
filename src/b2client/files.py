from __future__ import annotations

from typing import Any

from ._results import build_file_descriptor
from .api import B2RequestClient
from .auth import AuthorizationCache
from .listing import MAX_PAGE_SIZE, collect_file_names
from .types import AuthContext, FileDescriptor
from .utils import validate_file_name


class FileOperations:
    """Listing and per-file calls that are not part of an upload."""

    def __init__(self, request_client: B2RequestClient, auth: AuthorizationCache) -> None:
        self._request_client = request_client
        self._auth = auth

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        async def operation(context: AuthContext) -> dict[str, Any]:
            return await self._request_client.call_api(context, endpoint, payload)

        return await self._auth.call_with_refresh(operation)

    async def list_files(
        self,
        bucket_id: str,
        name_filter: str | None = None,
        *,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[FileDescriptor]:
        async def fetch_page(payload: dict[str, Any]) -> dict[str, Any]:
            return await self._call("b2_list_file_names", payload)

        return await collect_file_names(
            fetch_page, bucket_id, name_filter=name_filter, page_size=page_size
        )

    async def get_file_info(self, file_id: str) -> FileDescriptor:
        return build_file_descriptor(await self._call("b2_get_file_info", {"fileId": file_id}))

    async def delete_file(self, file_id: str, file_name: str | None = None) -> str:
        if file_name is None:
            file_name = (await self.get_file_info(file_id)).name
        raw = await self._call("b2_delete_file_version", {"fileId": file_id, "fileName": file_name})
        return str(raw["fileId"])

    async def hide_file(self, bucket_id: str, file_name: str) -> FileDescriptor:
        validate_file_name(file_name)
        raw = await self._call("b2_hide_file", {"bucketId": bucket_id, "fileName": file_name})
        return build_file_descriptor(raw)

    async def cancel_large_file(self, file_id: str) -> str:
        raw = await self._call("b2_cancel_large_file", {"fileId": file_id})
        return str(raw["fileId"])


__all__ = ["FileOperations"]
