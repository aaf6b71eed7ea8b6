from __future__ import annotations

from typing import Any

from ._results import build_bucket
from .api import B2RequestClient
from .auth import AuthorizationCache
from .errors import B2APIError, B2ValidationError, ErrorKind
from .types import AuthContext, Bucket, BucketType
from .utils import validate_bucket_name

BUCKET_TYPES: dict[str, str] = {"public": "allPublic", "private": "allPrivate"}


def to_wire_bucket_type(bucket_type: str) -> str:
    try:
        return BUCKET_TYPES[bucket_type]
    except KeyError:
        raise B2ValidationError(
            f"bucket type must be one of {sorted(BUCKET_TYPES)}, got {bucket_type!r}"
        ) from None


class BucketRegistry:
    """Bucket CRUD and name-to-id resolution."""

    def __init__(self, request_client: B2RequestClient, auth: AuthorizationCache) -> None:
        self._request_client = request_client
        self._auth = auth

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        async def operation(context: AuthContext) -> dict[str, Any]:
            return await self._request_client.call_api(
                context, endpoint, {"accountId": context.account_id, **payload}
            )

        return await self._auth.call_with_refresh(operation)

    async def create_bucket(self, name: str, bucket_type: BucketType) -> Bucket:
        wire_type = to_wire_bucket_type(bucket_type)
        validate_bucket_name(name)
        raw = await self._call("b2_create_bucket", {"bucketName": name, "bucketType": wire_type})
        return build_bucket(raw)

    async def list_buckets(self, *, name: str | None = None) -> list[Bucket]:
        payload = {"bucketName": name} if name else {}
        raw = await self._call("b2_list_buckets", payload)
        return [build_bucket(item) for item in raw.get("buckets", [])]

    async def get_bucket(self, name: str) -> Bucket | None:
        for bucket in await self.list_buckets(name=name):
            if bucket.name == name:
                return bucket
        return None

    async def update_bucket(self, bucket_id: str, bucket_type: BucketType) -> Bucket:
        wire_type = to_wire_bucket_type(bucket_type)
        raw = await self._call("b2_update_bucket", {"bucketId": bucket_id, "bucketType": wire_type})
        return build_bucket(raw)

    async def delete_bucket(self, bucket_id: str) -> Bucket:
        raw = await self._call("b2_delete_bucket", {"bucketId": bucket_id})
        return build_bucket(raw)

    async def resolve_bucket_id(
        self, bucket_id: str | None = None, bucket_name: str | None = None
    ) -> str:
        if bucket_id:
            return bucket_id
        if not bucket_name:
            raise B2ValidationError("either bucket_id or bucket_name is required")
        bucket = await self.get_bucket(bucket_name)
        if bucket is None:
            raise B2APIError(404, ErrorKind.NOT_FOUND.value, f"bucket {bucket_name!r} not found")
        return bucket.id


__all__ = ["BucketRegistry", "BUCKET_TYPES", "to_wire_bucket_type"]
