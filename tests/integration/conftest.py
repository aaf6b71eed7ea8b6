"""In-memory B2 server for integration tests, served through respx."""

from __future__ import annotations

import base64
import hashlib
import itertools
import json
from collections.abc import Generator
from typing import Any
from urllib.parse import unquote

import httpx
import pytest
import respx

from b2client._http import DEFAULT_AUTHORIZE_URL

API_URL = "https://api.b2.test"
DOWNLOAD_URL = "https://download.b2.test"
UPLOAD_URL = "https://upload.b2.test"
ACCOUNT_ID = "acct123"
KEY_ID = "test_key_id_123456789"
APPLICATION_KEY = "K000test_application_key"


def _error(status: int, code: str, message: str = "") -> httpx.Response:
    return httpx.Response(status, json={"status": status, "code": code, "message": message})


def _sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


class FakeB2:
    """Just enough of the B2 API to upload, list and download files."""

    def __init__(self, *, part_size: int = 100, minimum_part_size: int = 5) -> None:
        self.part_size = part_size
        self.minimum_part_size = minimum_part_size
        self.buckets: dict[str, dict[str, Any]] = {}
        self.files: list[dict[str, Any]] = []
        self.large_files: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.uploaded_parts: list[int] = []
        self.upload_tokens: dict[str, str] = {}
        self.auth_count = 0
        self.token = ""
        self.fail_part: int | None = None
        self.expire_token_once = False
        self._ids = itertools.count(1)

    # -- helpers -----------------------------------------------------------

    def add_bucket(self, name: str, bucket_type: str = "allPrivate") -> dict[str, Any]:
        bucket = {
            "accountId": ACCOUNT_ID,
            "bucketId": f"bucket-{next(self._ids)}",
            "bucketName": name,
            "bucketType": bucket_type,
        }
        self.buckets[bucket["bucketId"]] = bucket
        return bucket

    def add_file(
        self,
        bucket_id: str,
        name: str,
        content: bytes,
        *,
        content_type: str = "application/octet-stream",
        info: dict[str, str] | None = None,
        action: str = "upload",
        content_sha1: str | None = None,
    ) -> dict[str, Any]:
        record = {
            "accountId": ACCOUNT_ID,
            "bucketId": bucket_id,
            "fileId": f"file-{next(self._ids)}",
            "fileName": name,
            "contentLength": len(content),
            "contentSha1": content_sha1 or _sha1(content),
            "contentType": content_type,
            "fileInfo": dict(info or {}),
            "action": action,
            "uploadTimestamp": 1700000000000 + next(self._ids),
            "content": content,
        }
        self.files.append(record)
        return record

    @staticmethod
    def public(record: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in record.items() if key != "content"}

    def visible_files(self, bucket_id: str) -> list[dict[str, Any]]:
        latest: dict[str, dict[str, Any]] = {}
        for record in self.files:
            if record["bucketId"] == bucket_id:
                latest[record["fileName"]] = record
        return [
            latest[name] for name in sorted(latest) if latest[name]["action"] == "upload"
        ]

    def stored(self, name: str) -> dict[str, Any]:
        return next(record for record in reversed(self.files) if record["fileName"] == name)

    # -- handlers ----------------------------------------------------------

    def authorize(self, request: httpx.Request) -> httpx.Response:
        expected = base64.b64encode(f"{KEY_ID}:{APPLICATION_KEY}".encode()).decode()
        if request.headers.get("authorization") != f"Basic {expected}":
            return _error(401, "unauthorized", "bad credentials")
        self.auth_count += 1
        self.token = f"token-{self.auth_count}"
        return httpx.Response(
            200,
            json={
                "accountId": ACCOUNT_ID,
                "authorizationToken": self.token,
                "apiUrl": API_URL,
                "downloadUrl": DOWNLOAD_URL,
                "recommendedPartSize": self.part_size,
                "absoluteMinimumPartSize": self.minimum_part_size,
            },
        )

    def api(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(endpoint)
        if self.expire_token_once:
            self.expire_token_once = False
            return _error(401, "expired_auth_token", "Authorization token has expired")
        if request.headers.get("authorization") != self.token:
            return _error(401, "bad_auth_token", "Invalid authorization token")
        payload = json.loads(request.content or b"{}")
        handler = getattr(self, endpoint, None)
        if handler is None:
            return _error(400, "bad_request", f"unknown endpoint {endpoint}")
        return handler(payload)

    def b2_create_bucket(self, payload: dict[str, Any]) -> httpx.Response:
        if any(b["bucketName"] == payload["bucketName"] for b in self.buckets.values()):
            return _error(400, "duplicate_bucket_name", "Bucket name is already in use.")
        return httpx.Response(200, json=self.add_bucket(payload["bucketName"], payload["bucketType"]))

    def b2_list_buckets(self, payload: dict[str, Any]) -> httpx.Response:
        buckets = [
            bucket
            for bucket in self.buckets.values()
            if "bucketName" not in payload or bucket["bucketName"] == payload["bucketName"]
        ]
        return httpx.Response(200, json={"buckets": buckets})

    def b2_update_bucket(self, payload: dict[str, Any]) -> httpx.Response:
        bucket = self.buckets.get(payload["bucketId"])
        if bucket is None:
            return _error(400, "bad_request", "Invalid bucketId")
        bucket["bucketType"] = payload["bucketType"]
        return httpx.Response(200, json=bucket)

    def b2_delete_bucket(self, payload: dict[str, Any]) -> httpx.Response:
        bucket = self.buckets.get(payload["bucketId"])
        if bucket is None:
            return _error(400, "bad_request", "Invalid bucketId")
        if any(record["bucketId"] == bucket["bucketId"] for record in self.files):
            return _error(400, "cannot_delete_non_empty_bucket", "Bucket is not empty")
        del self.buckets[bucket["bucketId"]]
        return httpx.Response(200, json=bucket)

    def b2_get_upload_url(self, payload: dict[str, Any]) -> httpx.Response:
        n = next(self._ids)
        url = f"{UPLOAD_URL}/file/{payload['bucketId']}/{n}"
        self.upload_tokens[url] = f"upload-token-{n}"
        return httpx.Response(
            200,
            json={
                "bucketId": payload["bucketId"],
                "uploadUrl": url,
                "authorizationToken": self.upload_tokens[url],
            },
        )

    def b2_start_large_file(self, payload: dict[str, Any]) -> httpx.Response:
        file_id = f"large-{next(self._ids)}"
        self.large_files[file_id] = {**payload, "parts": {}}
        return httpx.Response(200, json={"fileId": file_id, **payload, "action": "start"})

    def b2_get_upload_part_url(self, payload: dict[str, Any]) -> httpx.Response:
        if payload["fileId"] not in self.large_files:
            return _error(400, "bad_request", "No active upload")
        n = next(self._ids)
        url = f"{UPLOAD_URL}/part/{payload['fileId']}/{n}"
        self.upload_tokens[url] = f"upload-token-{n}"
        return httpx.Response(
            200,
            json={
                "fileId": payload["fileId"],
                "uploadUrl": url,
                "authorizationToken": self.upload_tokens[url],
            },
        )

    def b2_finish_large_file(self, payload: dict[str, Any]) -> httpx.Response:
        large = self.large_files.pop(payload["fileId"], None)
        if large is None:
            return _error(400, "bad_request", "No active upload")
        parts = large["parts"]
        expected = [parts[n][1] for n in sorted(parts)]
        if payload["partSha1Array"] != expected:
            return _error(400, "bad_request", "Part SHA1 array does not match")
        content = b"".join(parts[n][0] for n in sorted(parts))
        record = self.add_file(
            large["bucketId"],
            large["fileName"],
            content,
            content_type=large["contentType"],
            info=large["fileInfo"],
            content_sha1="none",
        )
        record["fileId"] = payload["fileId"]
        return httpx.Response(200, json=self.public(record))

    def b2_cancel_large_file(self, payload: dict[str, Any]) -> httpx.Response:
        large = self.large_files.pop(payload["fileId"], None)
        if large is None:
            return _error(400, "bad_request", "No active upload")
        return httpx.Response(
            200,
            json={"fileId": payload["fileId"], "fileName": large["fileName"], "bucketId": large["bucketId"]},
        )

    def b2_list_file_names(self, payload: dict[str, Any]) -> httpx.Response:
        start = payload.get("startFileName") or ""
        count = payload.get("maxFileCount", 100)
        if count > 1000:
            return _error(400, "bad_value", "maxFileCount out of range")
        candidates = [r for r in self.visible_files(payload["bucketId"]) if r["fileName"] >= start]
        page = candidates[:count]
        next_name = candidates[count]["fileName"] if len(candidates) > count else None
        return httpx.Response(
            200, json={"files": [self.public(r) for r in page], "nextFileName": next_name}
        )

    def b2_get_file_info(self, payload: dict[str, Any]) -> httpx.Response:
        for record in self.files:
            if record["fileId"] == payload["fileId"]:
                return httpx.Response(200, json=self.public(record))
        return _error(404, "not_found", "file not found")

    def b2_delete_file_version(self, payload: dict[str, Any]) -> httpx.Response:
        for record in self.files:
            if record["fileId"] == payload["fileId"] and record["fileName"] == payload["fileName"]:
                self.files.remove(record)
                return httpx.Response(
                    200, json={"fileId": record["fileId"], "fileName": record["fileName"]}
                )
        return _error(400, "file_not_present", "File not present")

    def b2_hide_file(self, payload: dict[str, Any]) -> httpx.Response:
        if not any(r["fileName"] == payload["fileName"] for r in self.visible_files(payload["bucketId"])):
            return _error(400, "no_such_file", "File not present")
        record = self.add_file(payload["bucketId"], payload["fileName"], b"", action="hide")
        return httpx.Response(200, json=self.public(record))

    def upload(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.headers.get("authorization") != self.upload_tokens.get(url):
            return _error(401, "bad_auth_token", "Invalid upload token")
        content = request.content
        if int(request.headers["content-length"]) != len(content):
            return _error(400, "bad_request", "Content-Length mismatch")
        if request.headers["x-bz-content-sha1"] != _sha1(content):
            return _error(400, "bad_request", "Checksum did not match data received")

        kind, target, _ = request.url.path.strip("/").split("/")
        if kind == "part":
            part_number = int(request.headers["x-bz-part-number"])
            self.uploaded_parts.append(part_number)
            if self.fail_part == part_number:
                return _error(500, "internal_error", "part storage failed")
            self.large_files[target]["parts"][part_number] = (content, _sha1(content))
            return httpx.Response(
                200,
                json={
                    "fileId": target,
                    "partNumber": part_number,
                    "contentLength": len(content),
                    "contentSha1": _sha1(content),
                },
            )

        info = {
            key[len("x-bz-info-") :]: unquote(value)
            for key, value in request.headers.items()
            if key.startswith("x-bz-info-")
        }
        record = self.add_file(
            target,
            unquote(request.headers["x-bz-file-name"]),
            content,
            content_type=request.headers["content-type"],
            info=info,
        )
        return httpx.Response(200, json=self.public(record))

    def download(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("authorization") != self.token:
            return _error(401, "bad_auth_token", "Invalid authorization token")
        path = request.url.path
        if path.endswith("/b2_download_file_by_id"):
            file_id = request.url.params["fileId"]
            matches = [r for r in self.files if r["fileId"] == file_id]
        else:
            _, bucket_name, name = path.split("/", 3)[1:]
            bucket_ids = [b["bucketId"] for b in self.buckets.values() if b["bucketName"] == bucket_name]
            name = unquote(name)
            matches = [
                r
                for bucket_id in bucket_ids
                for r in self.visible_files(bucket_id)
                if r["fileName"] == name
            ]
        if not matches:
            return _error(404, "not_found", "File not found")
        record = matches[-1]
        headers = {
            "x-bz-file-id": record["fileId"],
            "x-bz-file-name": record["fileName"],
            "x-bz-content-sha1": record["contentSha1"],
            "content-type": record["contentType"],
        }
        for key, value in record["fileInfo"].items():
            headers[f"x-bz-info-{key}"] = value
        return httpx.Response(200, content=record["content"], headers=headers)

    def install(self, router: respx.MockRouter) -> None:
        router.get(DEFAULT_AUTHORIZE_URL).mock(side_effect=self.authorize)
        router.post(url__startswith=f"{API_URL}/b2api/v2/").mock(side_effect=self.api)
        router.post(url__startswith=UPLOAD_URL).mock(side_effect=self.upload)
        router.get(url__startswith=DOWNLOAD_URL).mock(side_effect=self.download)


@pytest.fixture
def fake_b2(mock_env_clear) -> Generator[FakeB2, None, None]:
    """An in-memory B2 service with 100-byte recommended parts."""
    server = FakeB2()
    with respx.mock(assert_all_called=False) as router:
        server.install(router)
        yield server


@pytest.fixture
def credentials(mock_account_id: str, mock_application_key: str) -> tuple[str, str]:
    assert (mock_account_id, mock_application_key) == (KEY_ID, APPLICATION_KEY)
    return mock_account_id, mock_application_key
