from __future__ import annotations

import base64
import threading
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .api import B2RequestClient
from .errors import B2APIError
from .types import AuthContext
from .utils import debug

T = TypeVar("T")


def build_auth_context(raw: dict[str, Any]) -> AuthContext:
    return AuthContext(
        account_id=raw["accountId"],
        token=raw["authorizationToken"],
        api_url=raw["apiUrl"].rstrip("/"),
        download_url=raw["downloadUrl"].rstrip("/"),
        recommended_part_size=int(raw["recommendedPartSize"]),
        absolute_minimum_part_size=int(
            raw.get("absoluteMinimumPartSize") or raw.get("minimumPartSize") or 0
        ),
    )


class AccountAuthorizer:
    """Exchanges an application key for an account authorization."""

    def __init__(
        self,
        request_client: B2RequestClient,
        account_id: str,
        application_key: str,
    ) -> None:
        self._request_client = request_client
        self._account_id = account_id
        self._application_key = application_key

    @property
    def account_id(self) -> str:
        return self._account_id

    def _basic_auth(self) -> str:
        raw = f"{self._account_id}:{self._application_key}".encode()
        return "Basic " + base64.b64encode(raw).decode()

    async def authorize(self) -> AuthContext:
        debug("authorizing account %s", self._account_id)
        raw = await self._request_client.send(
            "GET",
            self._request_client.transport.config.authorize_url,
            headers={"authorization": self._basic_auth()},
        )
        return build_auth_context(raw)


class AuthorizationCache:
    """Holds the current AuthContext for every component of a client.

    The context is an immutable value swapped under a lock, so a reader sees
    either the old token, URLs and part size or the new ones, never a mix.
    """

    def __init__(self, authorizer: AccountAuthorizer) -> None:
        self._authorizer = authorizer
        self._lock = threading.Lock()
        self._context: AuthContext | None = None

    @property
    def cached(self) -> AuthContext | None:
        with self._lock:
            return self._context

    async def get_context(self) -> AuthContext:
        context = self.cached
        if context is None:
            context = await self.refresh()
        return context

    async def refresh(self) -> AuthContext:
        context = await self._authorizer.authorize()
        with self._lock:
            self._context = context
        return context

    def invalidate(self) -> None:
        with self._lock:
            self._context = None

    async def call_with_refresh(self, operation: Callable[[AuthContext], Awaitable[T]]) -> T:
        """Run ``operation``; re-authorize and run it once more if the token is rejected."""
        context = await self.get_context()
        try:
            return await operation(context)
        except B2APIError as exc:
            if not exc.is_auth_rejected:
                raise
            debug("authorization rejected (%s), refreshing", exc.code)
        return await operation(await self.refresh())


__all__ = ["AccountAuthorizer", "AuthorizationCache", "build_auth_context"]
