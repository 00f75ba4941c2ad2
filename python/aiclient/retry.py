"""Retry with exponential backoff around timeout-guarded attempts.

Attempts run strictly one after another: attempt k+1 starts only after
attempt k (including its timeout window) has settled and the backoff
sleep has elapsed. Delay before retry k (0-based) is ``base_delay_s * 2**k``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from aiclient.errors import RetryError, is_retryable_error
from aiclient.logging import get_logger
from aiclient.redact import safe_kv
from aiclient.timeout import run_with_timeout

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and timing for one call.

    Attributes:
        max_retries: Retries after the initial attempt (total attempts = max_retries + 1)
        base_delay_s: Backoff base in seconds
        timeout_s: Per-attempt deadline in seconds
    """

    max_retries: int
    base_delay_s: float
    timeout_s: float

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows 0-based ``attempt``."""
        return self.base_delay_s * (2**attempt)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    provider: str | None = None,
    on_error: Callable[[BaseException], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` with per-attempt timeout and exponential backoff.

    Args:
        operation: Factory producing a fresh awaitable per attempt.
        policy: Retry budget, backoff base and per-attempt timeout.
        provider: Provider name attached to errors and log events.
        on_error: Called once per failed attempt (before classification).
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        The first successful attempt's result.

    Raises:
        RetryError: When retryable failures exhaust the budget.
        Exception: The original error when it is not retryable.
    """
    attempt = 0
    while True:
        try:
            return await run_with_timeout(operation(), policy.timeout_s, provider)
        except Exception as e:
            if on_error is not None:
                on_error(e)

            if not is_retryable_error(e):
                raise

            if attempt >= policy.max_retries:
                raise RetryError(
                    f"Failed after {policy.max_retries} retries: {e}",
                    retries=policy.max_retries,
                    provider=provider,
                    cause=e,
                ) from e

            delay = policy.delay_for(attempt)
            logger.warning(
                "llm.request.retrying",
                **safe_kv(
                    provider=provider,
                    attempt=attempt + 1,
                    max_retries=policy.max_retries,
                    delay_ms=int(delay * 1000),
                    error_type=type(e).__name__,
                ),
            )
            await sleep(delay)
            attempt += 1
