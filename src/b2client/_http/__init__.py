"""Shared HTTP infrastructure for B2 API clients."""

from .config import (
    API_PATH,
    DEFAULT_AUTHORIZE_URL,
    DEFAULT_LARGE_FILE_THRESHOLD,
    DEFAULT_RETRY_LIMIT,
    DEFAULT_RETRY_WAIT,
    DEFAULT_TIMEOUT,
    RETRY_BACKOFF_FACTOR,
    HTTPConfig,
    require_credentials,
)
from .coroutine import run_sync
from .transport import (
    AsyncTransport,
    BaseTransport,
    BlockingTransport,
    BytesBody,
    JSONBody,
    RequestBody,
)

__all__ = [
    "API_PATH",
    "DEFAULT_AUTHORIZE_URL",
    "DEFAULT_LARGE_FILE_THRESHOLD",
    "DEFAULT_RETRY_LIMIT",
    "DEFAULT_RETRY_WAIT",
    "DEFAULT_TIMEOUT",
    "RETRY_BACKOFF_FACTOR",
    "HTTPConfig",
    "require_credentials",
    "run_sync",
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
    "JSONBody",
    "BytesBody",
    "RequestBody",
]
