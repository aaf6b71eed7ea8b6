"""HTTP configuration for B2 API clients."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .._version import __version__
from ..errors import B2ValidationError

DEFAULT_AUTHORIZE_URL = "https://api.backblazeb2.com/b2api/v2/b2_authorize_account"
API_PATH = "/b2api/v2"
DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRY_LIMIT = 10
DEFAULT_RETRY_WAIT = 10.0
RETRY_BACKOFF_FACTOR = 1.2
DEFAULT_LARGE_FILE_THRESHOLD = 200 * 1000 * 1000
USER_AGENT = f"b2client-python/{__version__}"


def _env_number(name: str, default: float, cast: type = float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        raise B2ValidationError(
            f"{name} must be a {cast.__name__}, got {value!r}"
        ) from None


@dataclass
class HTTPConfig:
    """Configuration for HTTP requests to the B2 API."""

    authorize_url: str = DEFAULT_AUTHORIZE_URL
    timeout: float = DEFAULT_TIMEOUT
    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_wait: float = DEFAULT_RETRY_WAIT
    backoff_factor: float = RETRY_BACKOFF_FACTOR
    large_file_threshold: int = DEFAULT_LARGE_FILE_THRESHOLD
    default_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> HTTPConfig:
        """Build a config, letting B2_* environment variables override defaults."""
        return cls(
            authorize_url=os.getenv("B2_AUTHORIZE_URL") or DEFAULT_AUTHORIZE_URL,
            timeout=_env_number("B2_TIMEOUT", DEFAULT_TIMEOUT),
            retry_limit=int(_env_number("B2_RETRY_LIMIT", DEFAULT_RETRY_LIMIT, int)),
            retry_wait=_env_number("B2_RETRY_WAIT", DEFAULT_RETRY_WAIT),
            large_file_threshold=int(
                _env_number("B2_LARGE_FILE_THRESHOLD", DEFAULT_LARGE_FILE_THRESHOLD, int)
            ),
        )

    def get_headers(self, authorization: str | None = None) -> dict[str, str]:
        """Build base request headers, with the authorization value when given."""
        headers = {
            "user-agent": USER_AGENT,
            **self.default_headers,
        }
        if authorization is not None:
            headers["authorization"] = authorization
        return headers


def require_credentials(
    account_id: str | None, application_key: str | None
) -> tuple[str, str]:
    """Resolve credentials from arguments or environment, raising if not found."""
    resolved_id = account_id or os.getenv("B2_APPLICATION_KEY_ID") or os.getenv("B2_ACCOUNT_ID")
    resolved_key = application_key or os.getenv("B2_APPLICATION_KEY")
    if not resolved_id or not resolved_key:
        raise B2ValidationError(
            "Missing B2 credentials. Pass account_id=... and application_key=... "
            "or set B2_APPLICATION_KEY_ID and B2_APPLICATION_KEY."
        )
    return resolved_id, resolved_key


__all__ = [
    "HTTPConfig",
    "API_PATH",
    "DEFAULT_AUTHORIZE_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_RETRY_LIMIT",
    "DEFAULT_RETRY_WAIT",
    "DEFAULT_LARGE_FILE_THRESHOLD",
    "RETRY_BACKOFF_FACTOR",
    "require_credentials",
]
