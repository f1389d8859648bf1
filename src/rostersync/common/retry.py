"""Exponential-backoff retry for remote calls.

Retries are unconditional: any ``Exception`` raised by the thunk triggers
another attempt. The wrapped calls are idempotent reads or single-row admin
writes, so no error filtering is applied.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 10.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be non-negative")

    def delay_before(self, attempt: int) -> float:
        """Return the wait in seconds before ``attempt`` (1-based).

        The first attempt runs immediately; attempt ``k`` waits
        ``base_delay * 2 ** (k - 2)`` capped at ``max_delay``.
        """

        if attempt < 2:  # noqa: PLR2004
            return 0.0
        return min(self.base_delay * 2 ** (attempt - 2), self.max_delay)


async def retry[T](
    thunk: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    operation: str = "operation",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``thunk()`` until it succeeds or ``policy.max_retries`` is reached.

    The last error is re-raised with a note naming the operation and the
    attempt count. Errors that expose ``attempts``/``operation`` attributes
    (see :class:`rostersync.domain.errors.RemoteError`) get them filled in.
    """

    effective = policy or RetryPolicy()
    attempt = 1
    while True:
        try:
            return await thunk()
        except Exception as exc:
            if attempt >= effective.max_retries:
                log.error(  # noqa: TRY400
                    "%s failed after %s attempts: %s", operation, attempt, exc
                )
                _tag(exc, operation=operation, attempts=attempt)
                raise
            delay = effective.delay_before(attempt + 1)
            log.warning(
                "%s failed (attempt %s/%s): %s; retrying in %.1fs",
                operation,
                attempt,
                effective.max_retries,
                exc,
                delay,
            )
            await sleep(delay)
            attempt += 1


def _tag(exc: Exception, *, operation: str, attempts: int) -> None:
    exc.add_note(f"{operation} gave up after {attempts} attempt(s)")
    if hasattr(exc, "attempts"):
        exc.attempts = attempts  # type: ignore[attr-defined]
    if hasattr(exc, "operation") and getattr(exc, "operation", None) is None:
        exc.operation = operation  # type: ignore[attr-defined]
