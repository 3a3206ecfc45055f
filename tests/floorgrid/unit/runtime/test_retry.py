from __future__ import annotations

import pytest

from floorgrid.runtime.errors import GridInputError, RetryExhaustedError, TransientRenderError
from floorgrid.runtime.retry import DeferredRetry, backoff_delay_ms, is_on_cooldown, retry_with_backoff
from floorgrid.runtime.scheduler import Scheduler
from floorgrid.runtime.time import ManualClock


def test_is_on_cooldown_is_a_pure_time_comparison() -> None:
    assert is_on_cooldown(None, 2000.0, 0.0) is False
    assert is_on_cooldown(1000.0, 2000.0, 2999.0) is True
    assert is_on_cooldown(1000.0, 2000.0, 3000.0) is False
    assert is_on_cooldown(1000.0, 0.0, 1000.0) is False


def test_backoff_delay_doubles_per_attempt() -> None:
    assert [backoff_delay_ms(n, 10.0) for n in (1, 2, 3, 4)] == [10.0, 20.0, 40.0, 80.0]
    with pytest.raises(ValueError):
        backoff_delay_ms(0, 10.0)


def test_retry_succeeds_on_third_attempt() -> None:
    clock = ManualClock()
    calls: list[int] = []

    def _op() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise TransientRenderError("flaky")
        return "ok"

    assert retry_with_backoff(_op, 3, 10.0, sleep=clock.sleep_ms) == "ok"
    assert len(calls) == 3
    assert clock.sleeps == [10.0, 20.0]
    assert clock.now_ms() == 30.0


def test_retry_exhaustion_wraps_last_error() -> None:
    clock = ManualClock()
    errors: list[RuntimeError] = []

    def _op() -> None:
        error = RuntimeError(f"fail {len(errors)}")
        errors.append(error)
        raise error

    with pytest.raises(RetryExhaustedError) as excinfo:
        retry_with_backoff(_op, 3, 10.0, sleep=clock.sleep_ms)

    assert len(errors) == 3
    assert excinfo.value.attempts == 3
    assert excinfo.value.last_error is errors[-1]
    assert excinfo.value.__cause__ is errors[-1]
    assert clock.sleeps == [10.0, 20.0]


def test_retry_never_retries_input_errors() -> None:
    calls: list[int] = []

    def _op() -> None:
        calls.append(1)
        raise GridInputError("bad surface")

    with pytest.raises(GridInputError):
        retry_with_backoff(_op, 5, 10.0, sleep=lambda _ms: None)
    assert calls == [1]


def test_retry_propagates_exceptions_outside_retry_on() -> None:
    calls: list[int] = []

    def _op() -> None:
        calls.append(1)
        raise KeyError("boom")

    with pytest.raises(KeyError):
        retry_with_backoff(_op, 3, 10.0, sleep=lambda _ms: None, retry_on=(TransientRenderError,))
    assert calls == [1]


def test_retry_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        retry_with_backoff(lambda: None, 0, 10.0, sleep=lambda _ms: None)


def test_retry_treats_any_exception_as_retryable() -> None:
    clock = ManualClock()
    calls: list[int] = []

    def _op() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise Exception("surface hiccup")
        return "ok"

    assert retry_with_backoff(_op, 3, 10.0, sleep=clock.sleep_ms) == "ok"
    assert len(calls) == 3


def test_retry_exhaustion_chains_plain_exceptions() -> None:
    calls: list[int] = []
    last = Exception("still broken")

    def _op() -> None:
        calls.append(1)
        raise last

    with pytest.raises(RetryExhaustedError) as info:
        retry_with_backoff(_op, 3, 10.0, sleep=lambda _ms: None)
    assert len(calls) == 3
    assert info.value.attempts == 3
    assert info.value.__cause__ is last


def _deferred(scheduler: Scheduler, operation, max_attempts: int = 3):
    outcome: dict[str, object] = {}
    retry = DeferredRetry(
        scheduler,
        operation,
        max_attempts,
        10.0,
        on_success=lambda value: outcome.setdefault("success", value),
        on_failure=lambda error: outcome.setdefault("failure", error),
    )
    return retry, outcome


def test_deferred_retry_waits_on_scheduler_timers() -> None:
    scheduler = Scheduler()
    calls: list[float] = []

    def _op() -> str:
        calls.append(scheduler.now_ms)
        if len(calls) < 3:
            raise TransientRenderError("flaky")
        return "ok"

    retry, outcome = _deferred(scheduler, _op)
    assert retry.start() is False
    assert retry.pending
    assert calls == [0.0]

    scheduler.advance(10.0)
    assert calls == [0.0, 10.0]
    assert outcome == {}
    scheduler.advance(20.0)

    assert calls == [0.0, 10.0, 30.0]
    assert outcome == {"success": "ok"}
    assert retry.done and not retry.pending
    assert retry.attempts == 3
    assert scheduler.pending_count == 0


def test_deferred_retry_reports_exhaustion_once() -> None:
    scheduler = Scheduler()
    last = Exception("still broken")

    def _op() -> None:
        raise last

    retry, outcome = _deferred(scheduler, _op)
    retry.start()
    scheduler.advance(100.0)

    failure = outcome["failure"]
    assert isinstance(failure, RetryExhaustedError)
    assert failure.attempts == 3
    assert failure.__cause__ is last
    assert "success" not in outcome
    assert scheduler.now_ms == 100.0


def test_deferred_retry_never_retries_input_errors() -> None:
    scheduler = Scheduler()
    error = GridInputError("bad surface")

    def _op() -> None:
        raise error

    retry, outcome = _deferred(scheduler, _op)
    assert retry.start() is True
    assert outcome == {"failure": error}
    assert retry.attempts == 1
    assert scheduler.pending_count == 0


def test_deferred_retry_cancel_drops_pending_attempt() -> None:
    scheduler = Scheduler()
    calls: list[int] = []

    def _op() -> None:
        calls.append(1)
        raise TransientRenderError("flaky")

    retry, outcome = _deferred(scheduler, _op)
    retry.start()
    assert retry.cancel() is True
    assert retry.cancel() is False
    scheduler.advance(100.0)

    assert calls == [1]
    assert outcome == {}
    assert retry.done
    with pytest.raises(RuntimeError):
        retry.start()
