"""Cooldown gating and retry-with-backoff for grid recreation."""

from __future__ import annotations

import logging
from collections.abc import Callable

from floorgrid.runtime.errors import GridInputError, RetryExhaustedError
from floorgrid.runtime.scheduler import Scheduler

_LOG = logging.getLogger(__name__)

DEFAULT_RETRY_ON: tuple[type[BaseException], ...] = (Exception,)


def is_on_cooldown(last_attempt_ms: float | None, cooldown_ms: float, now_ms: float) -> bool:
    """Return True while `now_ms` is still inside the cooldown window."""
    if last_attempt_ms is None or cooldown_ms <= 0.0:
        return False
    return (now_ms - last_attempt_ms) < cooldown_ms


def backoff_delay_ms(attempt: int, base_delay_ms: float) -> float:
    """Delay before the retry that follows failed attempt number `attempt` (1-based)."""
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return float(base_delay_ms) * (2 ** (attempt - 1))


def retry_with_backoff[T](
    operation: Callable[[], T],
    max_attempts: int,
    base_delay_ms: float,
    *,
    sleep: Callable[[float], None],
    retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON,
) -> T:
    """Invoke `operation` up to `max_attempts` times, blocking between attempts.

    `sleep` receives each delay in milliseconds. Input errors and exceptions
    outside `retry_on` propagate immediately. Exhaustion raises
    `RetryExhaustedError` chained from the last failure.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except GridInputError:
            raise
        except retry_on as exc:
            if attempt >= max_attempts:
                raise RetryExhaustedError(attempt, exc) from exc
            delay_ms = backoff_delay_ms(attempt, base_delay_ms)
            _LOG.debug("retry attempt=%d/%d failed (%s); waiting %.1fms", attempt, max_attempts, exc, delay_ms)
            sleep(delay_ms)


class DeferredRetry[T]:
    """Retry loop whose waits are scheduler timers instead of blocking sleeps.

    The first attempt runs inside `start()`; each later attempt runs from a
    `call_later` timer. Exactly one of `on_success` / `on_failure` fires.
    `on_failure` receives a `RetryExhaustedError`, or the original exception
    when it is not retryable. Nothing raised by `operation` escapes into the
    scheduler.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        operation: Callable[[], T],
        max_attempts: int,
        base_delay_ms: float,
        *,
        on_success: Callable[[T], None],
        on_failure: Callable[[BaseException], None],
        retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._scheduler = scheduler
        self._operation = operation
        self._max_attempts = int(max_attempts)
        self._base_delay_ms = float(base_delay_ms)
        self._on_success = on_success
        self._on_failure = on_failure
        self._retry_on = retry_on
        self._attempts = 0
        self._timer_id: int | None = None
        self._done = False

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return self._timer_id is not None

    def start(self) -> bool:
        """Run the first attempt. Returns True when the retry already finished."""
        if self._attempts or self._done:
            raise RuntimeError("deferred retry already started")
        self._run()
        return self._done

    def cancel(self) -> bool:
        if self._timer_id is None:
            return False
        self._scheduler.cancel(self._timer_id)
        self._timer_id = None
        self._done = True
        return True

    def _run(self) -> None:
        self._timer_id = None
        self._attempts += 1
        try:
            result = self._operation()
        except GridInputError as exc:
            self._finish_failed(exc)
        except self._retry_on as exc:
            if self._attempts >= self._max_attempts:
                failure = RetryExhaustedError(self._attempts, exc)
                failure.__cause__ = exc
                self._finish_failed(failure)
                return
            delay_ms = backoff_delay_ms(self._attempts, self._base_delay_ms)
            _LOG.debug(
                "deferred retry attempt=%d/%d failed (%s); next in %.1fms",
                self._attempts,
                self._max_attempts,
                exc,
                delay_ms,
            )
            self._timer_id = self._scheduler.call_later(delay_ms, self._run)
        except Exception as exc:
            self._finish_failed(exc)
        else:
            self._done = True
            self._on_success(result)

    def _finish_failed(self, error: BaseException) -> None:
        self._done = True
        self._on_failure(error)
