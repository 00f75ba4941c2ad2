"""Per-attempt timeout guard.

Races one provider attempt against a deadline measured from the moment the
guard is entered. If the deadline wins, the attempt's task is cancelled so
its HTTP connection goes back to the pool, and RequestTimeoutError is
raised. Exceptions raised by the attempt itself propagate unchanged.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from aiclient.errors import RequestTimeoutError

T = TypeVar("T")


async def run_with_timeout(work: Awaitable[T], timeout_s: float, provider: str | None = None) -> T:
    """Await ``work`` for at most ``timeout_s`` seconds.

    Args:
        work: The attempt (coroutine or future).
        timeout_s: Deadline in seconds.
        provider: Provider name attached to the timeout error.

    Returns:
        The attempt's result.

    Raises:
        RequestTimeoutError: If the deadline elapses first.
    """
    task = asyncio.ensure_future(work)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_s)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    # Let the cancelled attempt unwind (closing its stream) before moving on.
    await asyncio.gather(task, return_exceptions=True)
    raise RequestTimeoutError(
        f"Request timed out after {int(timeout_s * 1000)}ms",
        provider=provider,
    )
