from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, cast

import anyio

from ._http import BytesBody, run_sync
from ._results import build_file_descriptor
from .api import B2RequestClient
from .auth import AuthorizationCache
from .content import ContentSource, digest, read_range, source_size
from .errors import B2Error, B2IntegrityError, B2MultipartUploadError
from .planner import plan
from .types import AuthContext, FileDescriptor, PartResult, UploadPlan, UploadStrategy, UploadTarget
from .utils import (
    build_file_info,
    check_file_info_room,
    debug,
    quote_file_name,
    validate_file_name,
)

DEFAULT_CONTENT_TYPE = "b2/x-auto"
LARGE_FILE_SHA1_KEY = "large_file_sha1"
MAX_CONCURRENCY = 6

# (part_number, offset, data)
PartPayload = tuple[int, int, bytes]
UploadPartFn = Callable[[int, int, bytes], Awaitable[PartResult]]


async def _await_if_necessary(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await cast(Awaitable[Any], value)
    return value


def build_upload_headers(
    target: UploadTarget,
    *,
    file_name: str,
    content_type: str,
    sha1: str,
    size: int,
    file_info: dict[str, str],
) -> dict[str, str]:
    headers = {
        "authorization": target.token,
        "x-bz-file-name": quote_file_name(file_name),
        "content-type": content_type,
        "content-length": str(size),
        "x-bz-content-sha1": sha1,
    }
    for key, value in file_info.items():
        headers[f"x-bz-info-{key}"] = quote_file_name(value)
    return headers


def build_part_headers(target: UploadTarget, *, part_number: int, sha1: str, size: int) -> dict[str, str]:
    return {
        "authorization": target.token,
        "x-bz-part-number": str(part_number),
        "content-length": str(size),
        "x-bz-content-sha1": sha1,
    }


def order_part_results(parts: list[PartResult], part_count: int) -> list[PartResult]:
    """Sort parts by number and check they are exactly 1..part_count."""
    ordered = sorted(parts, key=lambda part: part.part_number)
    numbers = [part.part_number for part in ordered]
    if numbers != list(range(1, part_count + 1)):
        raise B2IntegrityError(
            "large file parts are incomplete", expected=part_count, actual=len(set(numbers))
        )
    return ordered


def iter_part_payloads(source: ContentSource, upload_plan: UploadPlan) -> Iterator[PartPayload]:
    """Read each part into its own buffer, in ascending part order."""
    for part_number, offset, length in upload_plan.iter_part_ranges():
        yield part_number, offset, read_range(source, offset, length)


def _check_part_response(raw: dict[str, Any], sha1: str, length: int) -> None:
    if raw.get("contentSha1") != sha1:
        raise B2IntegrityError("part SHA-1 mismatch", expected=sha1, actual=raw.get("contentSha1"))
    if int(raw.get("contentLength", length)) != length:
        raise B2IntegrityError(
            "part size mismatch", expected=length, actual=raw.get("contentLength")
        )


class _SyncPartRuntime:
    """Uploads parts from the calling thread, or a thread pool when concurrency > 1."""

    def __init__(self, concurrency: int = 1) -> None:
        self._concurrency = max(1, min(int(concurrency), MAX_CONCURRENCY))

    def upload(self, payloads: Iterator[PartPayload], upload_one: UploadPartFn) -> list[PartResult]:
        if self._concurrency == 1:
            return [run_sync(upload_one(*payload)) for payload in payloads]

        results: list[PartResult] = []
        with ThreadPoolExecutor(max_workers=self._concurrency) as executor:
            inflight: set[Future[PartResult]] = set()
            try:
                for payload in payloads:
                    inflight.add(executor.submit(lambda p: run_sync(upload_one(*p)), payload))
                    if len(inflight) >= self._concurrency:
                        done, inflight = wait(inflight, return_when=FIRST_COMPLETED)
                        results.extend(future.result() for future in done)
                done, inflight = wait(inflight)
                results.extend(future.result() for future in done)
            finally:
                for future in inflight:
                    future.cancel()
        return results


class _AsyncPartRuntime:
    """Uploads parts as tasks, at most ``concurrency`` at a time."""

    def __init__(self, concurrency: int = 1) -> None:
        self._concurrency = max(1, min(int(concurrency), MAX_CONCURRENCY))

    async def upload(
        self, payloads: Iterator[PartPayload], upload_one: UploadPartFn
    ) -> list[PartResult]:
        if self._concurrency == 1:
            return [await upload_one(*payload) for payload in payloads]

        semaphore = anyio.Semaphore(self._concurrency)
        results: list[PartResult] = []

        async def run_part(payload: PartPayload) -> None:
            try:
                results.append(await upload_one(*payload))
            finally:
                semaphore.release()

        try:
            async with anyio.create_task_group() as task_group:
                while True:
                    # Read the next part only once a slot is free.
                    await semaphore.acquire()
                    payload = next(payloads, None)
                    if payload is None:
                        semaphore.release()
                        break
                    task_group.start_soon(run_part, payload)
        except ExceptionGroup as group:
            raise group.exceptions[0] from None
        return results


def create_part_runtime(concurrency: int, *, blocking: bool) -> _SyncPartRuntime | _AsyncPartRuntime:
    if blocking:
        return _SyncPartRuntime(concurrency)
    return _AsyncPartRuntime(concurrency)


class UploadSession:
    """Uploads one file to one bucket, as a single request or a large file."""

    def __init__(
        self,
        request_client: B2RequestClient,
        auth: AuthorizationCache,
        *,
        bucket_id: str,
        file_name: str,
        content_type: str | None = None,
        file_info: dict[str, str] | None = None,
        last_modified_millis: int | None = None,
        large_file_threshold: int,
        runtime: _SyncPartRuntime | _AsyncPartRuntime | None = None,
    ) -> None:
        self._request_client = request_client
        self._auth = auth
        self.bucket_id = bucket_id
        self.file_name = validate_file_name(file_name)
        self.content_type = content_type or DEFAULT_CONTENT_TYPE
        self.file_info = build_file_info(file_info, last_modified_millis)
        self._large_file_threshold = large_file_threshold
        self._runtime = runtime or _AsyncPartRuntime()

    async def upload(self, source: ContentSource) -> FileDescriptor:
        context = await self._auth.get_context()
        upload_plan = plan(
            source_size(source), self._large_file_threshold, context.recommended_part_size
        )
        debug(
            "uploading %s (%d bytes) as %s",
            self.file_name,
            upload_plan.size,
            upload_plan.strategy.value,
        )
        if upload_plan.strategy is UploadStrategy.STANDARD:
            return await self.upload_standard(source)
        return await self.upload_multipart(source, upload_plan)

    async def _get_upload_target(self, context: AuthContext) -> UploadTarget:
        raw = await self._request_client.call_api(
            context, "b2_get_upload_url", {"bucketId": self.bucket_id}
        )
        return UploadTarget(url=raw["uploadUrl"], token=raw["authorizationToken"])

    async def upload_standard(self, source: ContentSource) -> FileDescriptor:
        data = read_range(source)
        sha1, size = digest(data)

        async def operation(context: AuthContext) -> dict[str, Any]:
            target = await self._get_upload_target(context)
            return cast(
                dict[str, Any],
                await self._request_client.send(
                    "POST",
                    target.url,
                    headers=build_upload_headers(
                        target,
                        file_name=self.file_name,
                        content_type=self.content_type,
                        sha1=sha1,
                        size=size,
                        file_info=self.file_info,
                    ),
                    body=BytesBody(data, self.content_type),
                ),
            )

        file = build_file_descriptor(await self._auth.call_with_refresh(operation))
        if file.content_sha1 is not None and file.content_sha1 != sha1:
            raise B2IntegrityError("uploaded SHA-1 mismatch", expected=sha1, actual=file.content_sha1)
        return file

    async def start_large_file(self, file_info: dict[str, str]) -> str:
        async def operation(context: AuthContext) -> dict[str, Any]:
            return await self._request_client.call_api(
                context,
                "b2_start_large_file",
                {
                    "bucketId": self.bucket_id,
                    "fileName": self.file_name,
                    "contentType": self.content_type,
                    "fileInfo": file_info,
                },
            )

        raw = await self._auth.call_with_refresh(operation)
        return cast(str, raw["fileId"])

    async def upload_part(self, file_id: str, part_number: int, offset: int, data: bytes) -> PartResult:
        sha1, length = digest(data)

        async def operation(context: AuthContext) -> dict[str, Any]:
            # Upload part URLs are not reused across parts.
            raw = await self._request_client.call_api(
                context, "b2_get_upload_part_url", {"fileId": file_id}
            )
            target = UploadTarget(url=raw["uploadUrl"], token=raw["authorizationToken"])
            return cast(
                dict[str, Any],
                await self._request_client.send(
                    "POST",
                    target.url,
                    headers=build_part_headers(
                        target, part_number=part_number, sha1=sha1, size=length
                    ),
                    body=BytesBody(data),
                ),
            )

        raw = await self._auth.call_with_refresh(operation)
        _check_part_response(raw, sha1, length)
        debug("uploaded part %d of %s", part_number, file_id)
        return PartResult(part_number=part_number, offset=offset, length=length, sha1=sha1)

    async def finish_large_file(self, file_id: str, parts: list[PartResult]) -> FileDescriptor:
        part_sha1s = [part.sha1 for part in parts]

        async def operation(context: AuthContext) -> dict[str, Any]:
            return await self._request_client.call_api(
                context,
                "b2_finish_large_file",
                {"fileId": file_id, "partSha1Array": part_sha1s},
            )

        return build_file_descriptor(await self._auth.call_with_refresh(operation))

    async def upload_multipart(self, source: ContentSource, upload_plan: UploadPlan) -> FileDescriptor:
        if LARGE_FILE_SHA1_KEY not in self.file_info:
            check_file_info_room(self.file_info, reserved=1)
        whole_sha1, _ = digest(source)
        file_id = await self.start_large_file({**self.file_info, LARGE_FILE_SHA1_KEY: whole_sha1})
        completed: list[PartResult] = []

        async def upload_one(part_number: int, offset: int, data: bytes) -> PartResult:
            part = await self.upload_part(file_id, part_number, offset, data)
            completed.append(part)
            return part

        payloads = iter_part_payloads(source, upload_plan)
        try:
            parts = cast(
                list[PartResult],
                await _await_if_necessary(self._runtime.upload(payloads, upload_one)),
            )
        except B2Error as exc:
            raise B2MultipartUploadError(
                file_id, sorted(completed, key=lambda part: part.part_number), exc
            ) from exc
        ordered = order_part_results(parts, upload_plan.part_count)
        return await self.finish_large_file(file_id, ordered)


__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "MAX_CONCURRENCY",
    "UploadSession",
    "build_upload_headers",
    "build_part_headers",
    "order_part_results",
    "iter_part_payloads",
    "create_part_runtime",
]
