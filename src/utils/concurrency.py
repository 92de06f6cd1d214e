"""Shared concurrency primitives for source resolution.

Two patterns are exposed:

1. **throttled_gather** -- A drop-in replacement for ``asyncio.gather`` that
   optionally wraps each awaitable in a semaphore acquire/release.  Used by
   exhaustive resolution, where every attempt must finish and results must
   come back in submission order.

2. **race_first** -- Run awaitables concurrently and return as soon as one
   produces an acceptable result.  Everything still in flight is cancelled
   and *detached*: the caller never awaits it again, and a done-callback
   consumes its outcome so a late failure is never reported as an
   unretrieved task exception.

No module-level semaphore lives here; callers pass their own so that
independent requests never share a throttle by accident.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: Sequence[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with optional semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  ``None`` runs every
        awaitable at once.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        return await asyncio.gather(*coros, return_exceptions=return_exceptions)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def race_first(
    coros: Sequence[Awaitable[_T]],
    accept: Callable[[_T], bool],
) -> tuple[_T | None, dict[int, _T | BaseException]]:
    """Return the first result that satisfies *accept*; abandon the rest.

    The winner is whichever attempt *completes* first with an accepted
    value, not whichever comes first in *coros*.

    Parameters
    ----------
    coros:
        Awaitables to race.
    accept:
        Predicate applied to each successful result as it completes.

    Returns
    -------
    tuple
        ``(winner, settled)`` where ``winner`` is the accepted result or
        ``None`` when nothing was accepted, and ``settled`` maps the input
        position of every attempt that finished to its result or exception.
    """
    pending: dict[asyncio.Future[_T], int] = {
        asyncio.ensure_future(coro): idx for idx, coro in enumerate(coros)
    }
    settled: dict[int, _T | BaseException] = {}

    try:
        while pending:
            done, _ = await asyncio.wait(pending.keys(), return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                idx = pending.pop(task)
                if task.cancelled():
                    settled[idx] = asyncio.CancelledError()
                    continue
                exc = task.exception()
                if exc is not None:
                    settled[idx] = exc
                    continue
                result = task.result()
                settled[idx] = result
                if accept(result):
                    return result, settled
        return None, settled
    finally:
        # Reached on a win, on exhaustion (nothing left) and when the caller
        # itself is cancelled mid-race.
        for task in pending:
            _detach(task)


def _detach(task: asyncio.Future) -> None:
    """Cancel *task* and make sure its eventual outcome is consumed."""
    task.cancel()
    task.add_done_callback(_consume_outcome)


def _consume_outcome(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _logger.debug("race_loser_failed", error=str(exc), error_type=type(exc).__name__)
