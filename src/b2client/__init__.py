"""Python client for the Backblaze B2 object-storage API."""

from ._http import HTTPConfig
from ._version import __version__
from .client import AsyncB2Client, B2Client
from .content import BytesSource, StreamSource, as_source, digest, read_range
from .errors import (
    B2APIError,
    B2ConnectionError,
    B2Error,
    B2IntegrityError,
    B2MultipartUploadError,
    B2ValidationError,
    ErrorKind,
    map_error,
)
from .planner import plan
from .types import (
    AuthContext,
    Bucket,
    DownloadedFile,
    FileDescriptor,
    PartResult,
    UploadPlan,
    UploadStrategy,
)

__all__ = [
    "__version__",
    "B2Client",
    "AsyncB2Client",
    "HTTPConfig",
    "B2Error",
    "B2APIError",
    "B2ConnectionError",
    "B2IntegrityError",
    "B2MultipartUploadError",
    "B2ValidationError",
    "ErrorKind",
    "map_error",
    "BytesSource",
    "StreamSource",
    "as_source",
    "digest",
    "read_range",
    "plan",
    "AuthContext",
    "Bucket",
    "DownloadedFile",
    "FileDescriptor",
    "PartResult",
    "UploadPlan",
    "UploadStrategy",
]
