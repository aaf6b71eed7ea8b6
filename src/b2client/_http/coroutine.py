"""Drive the shared async core from B2Client."""

from __future__ import annotations

import typing

_T = typing.TypeVar("_T")


def run_sync(coro: typing.Coroutine[None, None, _T]) -> _T:
    """
    Run one B2Client operation to completion on the calling thread.

    Under ``BlockingTransport`` every ``await`` in the core resolves
    immediately: requests go through ``httpx.Client`` and 503 back-off
    waits call ``time.sleep``. A single ``send(None)`` therefore finishes
    the operation. The coroutine is closed on every path so its ``finally``
    blocks run even when it fails.

    Raises:
        RuntimeError: The operation awaited something that needs an event
            loop, such as an ``httpx.AsyncClient`` or ``asyncio.sleep``.
    """
    try:
        coro.send(None)
    except StopIteration as done:
        return done.value  # type: ignore [no-any-return]
    else:
        raise RuntimeError(
            f"{coro!r} suspended inside B2Client; async transports and sleep "
            "functions need AsyncB2Client"
        )
    finally:
        coro.close()


__all__ = ["run_sync"]
