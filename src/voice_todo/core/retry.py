# src/voice_todo/core/retry.py

"""
Timeout + exponential backoff around async operations, and error -> speech.

Classification is structural: TransportError.kind is assigned once where the
HTTP exchange happens (tasks/task_api.py). Both the retry predicate and the
speech formatter read that kind.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ..errors import ErrorKind, OperationTimeoutError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.SERVER_ERROR})


def error_kind(exc: BaseException) -> ErrorKind:
    if isinstance(exc, TransportError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, ConnectionError):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def error_status(exc: BaseException) -> int | None:
    return getattr(exc, "status", None) if isinstance(exc, TransportError) else None


def is_retryable(exc: BaseException) -> bool:
    """Connectivity, timeouts and 5xx are transient; 4xx and everything else are not."""
    return error_kind(exc) in RETRYABLE_KINDS


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 2
    initial_delay_ms: float = 500
    max_delay_ms: float = 5000
    backoff_multiplier: float = 2
    timeout_ms: float = 10000
    should_retry: Callable[[BaseException], bool] = field(default=is_retryable)

    def delay_ms(self, attempt: int) -> float:
        """Backoff before retry number attempt+1 (attempt is 0-based)."""
        return min(self.initial_delay_ms * self.backoff_multiplier**attempt, self.max_delay_ms)


DEFAULT_POLICY = RetryPolicy()


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run operation() with a per-attempt timeout, retrying transient failures.

    The operation factory is called once per attempt. A timed-out attempt is
    abandoned (cancelled) and superseded by the next one. When retries run out,
    or the error is not retryable, the last error is re-raised unchanged.
    """
    opts = policy or DEFAULT_POLICY
    total = opts.max_retries + 1
    attempt = 0

    while True:
        logger.debug("Attempt %d/%d%s", attempt + 1, total, " (retry)" if attempt else "")
        try:
            try:
                result = await asyncio.wait_for(operation(), timeout=opts.timeout_ms / 1000.0)
            except TimeoutError as exc:
                raise OperationTimeoutError(opts.timeout_ms) from exc

            if attempt:
                logger.info("Succeeded after %d retr%s", attempt, "y" if attempt == 1 else "ies")
            return result

        except Exception as exc:
            logger.warning("Attempt %d/%d failed: %s", attempt + 1, total, exc)

            if attempt >= opts.max_retries:
                logger.error("All %d attempts failed", total)
                raise

            if not opts.should_retry(exc):
                logger.info("Error is not retryable (%s), aborting", error_kind(exc).value)
                raise

            delay = opts.delay_ms(attempt)
            logger.info("Waiting %.0fms before retry %d/%d", delay, attempt + 2, total)
            await sleep(delay / 1000.0)
            attempt += 1


def format_error_for_speech(error: BaseException, operation: str) -> str:
    """
    Short sentence for the speech channel.

    `operation` completes phrases like "I couldn't ..." ("create that task").
    """
    kind = error_kind(error)
    status = error_status(error)

    if kind is ErrorKind.NETWORK:
        return f"I couldn't {operation} due to a network error. Please check your connection and try again."

    if kind is ErrorKind.TIMEOUT:
        return f"The request to {operation} timed out. Please try again."

    if kind is ErrorKind.SERVER_ERROR:
        return f"The server encountered an error while trying to {operation}. Please try again in a moment."

    if kind is ErrorKind.CLIENT_ERROR:
        if status == 404:
            return "I couldn't find that task. Please try a different description."
        if status in (400, 422):
            return f"The request to {operation} was invalid. Please try rephrasing your command."
        return f"There was a problem with the request to {operation}. Please try again."

    return f"I couldn't {operation}. Please try again."
