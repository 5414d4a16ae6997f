"""Deadline guard for pending asynchronous operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from castremote.errors import OperationTimeoutError

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

# Strong references to operations abandoned by a deadline until they settle
_abandoned: set[asyncio.Future[Any]] = set()


def _discard_outcome(fut: asyncio.Future[Any]) -> None:
    """Retrieve and drop the outcome of an abandoned operation.

    :param fut: The settled future.
    :returns: None
    """
    _abandoned.discard(fut)
    if fut.cancelled():
        return
    err = fut.exception()
    if err is not None:
        _LOGGER.debug("Discarding late failure of abandoned operation: %s", err)


async def with_timeout(operation: Awaitable[_T], timeout: float) -> _T:
    """Await an operation, giving up once the deadline elapses.

    The caller observes exactly one outcome. If the operation settles first,
    its result or exception is returned or raised unchanged. If the deadline
    wins, OperationTimeoutError is raised and whatever the operation later
    produces is discarded. The abandoned operation is not cancelled.

    :param operation: Awaitable to bound.
    :param timeout: Deadline in seconds; must be positive.
    :returns: The operation's result.
    :raises OperationTimeoutError: If the deadline elapsed first.
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")

    fut = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({fut}, timeout=timeout)
    except asyncio.CancelledError:
        fut.cancel()
        raise

    if fut in done:
        return fut.result()

    _abandoned.add(fut)
    fut.add_done_callback(_discard_outcome)
    raise OperationTimeoutError(timeout)


__all__ = ["with_timeout"]
