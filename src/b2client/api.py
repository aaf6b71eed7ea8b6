from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Literal, cast

import httpx

from ._http import API_PATH, BaseTransport, JSONBody, RequestBody
from .errors import B2ConnectionError, map_error
from .types import AuthContext
from .utils import debug

SleepFn = Callable[[float], Awaitable[None] | None]
SERVICE_BUSY_STATUS = 503


async def _sleep(sleep_fn: SleepFn, seconds: float) -> None:
    result = sleep_fn(seconds)
    if inspect.isawaitable(result):
        await cast(Awaitable[None], result)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


class B2RequestClient:
    """Sends B2 requests, retrying while the service reports it is busy.

    A 503 is retried with the identical request up to ``retry_limit`` times.
    The first wait is ``retry_wait`` seconds and each further wait is
    ``backoff_factor`` times the previous one. Any other non-200 response
    is raised as a B2APIError immediately.
    """

    _transport: BaseTransport
    _sleep_fn: SleepFn

    def __init__(
        self,
        *,
        transport: BaseTransport,
        sleep_fn: SleepFn = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._sleep_fn = sleep_fn

    @property
    def transport(self) -> BaseTransport:
        return self._transport

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        timeout: float | None = None,
        decode: Literal["json", "raw"] = "json",
    ) -> Any:
        config = self._transport.config
        wait = config.retry_wait
        retries = 0
        while True:
            try:
                response = await self._transport.send(
                    method,
                    url,
                    params=params,
                    body=body,
                    headers=headers,
                    timeout=timeout,
                )
            except httpx.TransportError as exc:
                raise B2ConnectionError(f"{method} {url} failed: {exc}") from exc

            if response.status_code == SERVICE_BUSY_STATUS and retries < config.retry_limit:
                retries += 1
                debug("service busy, retry %d/%d in %.1fs", retries, config.retry_limit, wait)
                await _sleep(self._sleep_fn, wait)
                wait *= config.backoff_factor
                continue

            if response.status_code != 200:
                raise map_error(response.status_code, _error_body(response))

            if decode == "raw":
                return response
            return response.json()

    async def call_api(
        self,
        context: AuthContext,
        endpoint: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """POST a JSON payload to ``{api_url}/b2api/v2/{endpoint}``."""
        debug("calling %s", endpoint)
        return cast(
            dict[str, Any],
            await self.send(
                "POST",
                f"{context.api_url}{API_PATH}/{endpoint}",
                headers={"authorization": context.token},
                body=JSONBody(payload),
            ),
        )


__all__ = ["B2RequestClient", "SleepFn", "SERVICE_BUSY_STATUS"]
