from __future__ import annotations

from enum import Enum
from typing import Any


class B2Error(Exception):
    """Base class for every error raised by this library."""


class B2ValidationError(B2Error, ValueError):
    """Caller input rejected before any request was sent."""


class B2ConnectionError(B2Error):
    """The request never produced an HTTP response."""


class B2IntegrityError(B2Error):
    """Bytes hashed, sent, or received do not agree with each other."""

    def __init__(
        self,
        message: str,
        *,
        expected: str | int | None = None,
        actual: str | int | None = None,
    ) -> None:
        if expected is not None or actual is not None:
            message = f"{message} (expected {expected!r}, got {actual!r})"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ErrorKind(str, Enum):
    """Machine-readable error codes reported by the B2 API."""

    BAD_JSON = "bad_json"
    BAD_REQUEST = "bad_request"
    BAD_VALUE = "bad_value"
    DUPLICATE_BUCKET_NAME = "duplicate_bucket_name"
    NOT_FOUND = "not_found"
    FILE_NOT_PRESENT = "file_not_present"
    CANNOT_DELETE_NON_EMPTY_BUCKET = "cannot_delete_non_empty_bucket"
    BAD_AUTH_TOKEN = "bad_auth_token"
    EXPIRED_AUTH_TOKEN = "expired_auth_token"
    UNAUTHORIZED = "unauthorized"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: str | None) -> ErrorKind:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


AUTH_REJECTED_KINDS = frozenset({ErrorKind.BAD_AUTH_TOKEN, ErrorKind.EXPIRED_AUTH_TOKEN})


class B2APIError(B2Error):
    """An error response from the B2 API.

    One type for every server error; ``kind`` discriminates between them and
    falls back to ``ErrorKind.UNKNOWN`` for codes this library does not know.
    ``code`` always keeps the raw server string.
    """

    def __init__(self, status: int, code: str, message: str) -> None:
        super().__init__(f"Received error from B2: {message or code} (status={status}, code={code})")
        self.status = status
        self.code = code
        self.kind = ErrorKind.from_code(code)
        self.message = message

    @property
    def is_auth_rejected(self) -> bool:
        return self.status == 401 and self.kind in AUTH_REJECTED_KINDS


class B2MultipartUploadError(B2Error):
    """A part failed inside a large-file session.

    The session is left open on the server. ``file_id`` identifies it so the
    caller can cancel it; ``parts`` lists the parts that were accepted.
    """

    def __init__(self, file_id: str, parts: list[Any], cause: Exception) -> None:
        super().__init__(f"Large file upload {file_id} aborted: {cause}")
        self.file_id = file_id
        self.parts = parts
        self.cause = cause


def map_error(status: int, body: Any) -> B2APIError:
    """Translate an error response body into a B2APIError."""
    data = body if isinstance(body, dict) else {}
    code = data.get("code") or ("service_unavailable" if status == 503 else "unknown")
    message = data.get("message") or ""
    return B2APIError(int(data.get("status") or status), str(code), str(message))


__all__ = [
    "B2Error",
    "B2ValidationError",
    "B2ConnectionError",
    "B2IntegrityError",
    "B2APIError",
    "B2MultipartUploadError",
    "ErrorKind",
    "map_error",
]
