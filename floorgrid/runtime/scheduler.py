"""Millisecond timer scheduler driving monitor ticks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from heapq import heappop, heappush

TaskCallback = Callable[[], None]


@dataclass(slots=True)
class _Timer:
    timer_id: int
    due_ms: float
    callback: TaskCallback
    interval_ms: float | None = None
    cancelled: bool = False


class Scheduler:
    """Cooperative timer queue.

    Time only moves when the host calls `advance` or `run_due`, which makes
    every timer in the engine fast-forwardable from tests.
    """

    def __init__(self, *, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)
        self._next_timer_id = 1
        self._timers: dict[int, _Timer] = {}
        self._queue: list[tuple[float, int]] = []

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def pending_count(self) -> int:
        """Return count of timers that will still fire."""
        return sum(1 for timer in self._timers.values() if not timer.cancelled)

    def is_pending(self, timer_id: int) -> bool:
        timer = self._timers.get(timer_id)
        return timer is not None and not timer.cancelled

    def call_later(self, delay_ms: float, callback: TaskCallback) -> int:
        """Schedule a one-shot callback after `delay_ms`."""
        if delay_ms < 0.0:
            raise ValueError("delay_ms must be >= 0")
        return self._schedule(self._now_ms + delay_ms, callback, None)

    def call_every(self, interval_ms: float, callback: TaskCallback) -> int:
        """Schedule a recurring callback every `interval_ms`."""
        if interval_ms <= 0.0:
            raise ValueError("interval_ms must be > 0")
        return self._schedule(self._now_ms + interval_ms, callback, interval_ms)

    def cancel(self, timer_id: int) -> bool:
        """Cancel a timer. Returns False when it was unknown or already cancelled."""
        timer = self._timers.get(timer_id)
        if timer is None or timer.cancelled:
            return False
        timer.cancelled = True
        return True

    def advance(self, delta_ms: float) -> int:
        """Move time forward and fire due timers."""
        if delta_ms < 0.0:
            raise ValueError("delta_ms must be >= 0")
        return self.run_due(self._now_ms + delta_ms)

    def run_due(self, now_ms: float) -> int:
        """Fire every timer due at or before `now_ms`, in due order."""
        if now_ms < self._now_ms:
            raise ValueError("now_ms cannot move backwards")
        fired = 0
        while self._queue and self._queue[0][0] <= now_ms:
            due_ms, timer_id = heappop(self._queue)
            timer = self._timers.get(timer_id)
            if timer is None or timer.cancelled:
                self._timers.pop(timer_id, None)
                continue
            # Callbacks observe the time they were due at.
            self._now_ms = max(self._now_ms, due_ms)
            timer.callback()
            fired += 1
            if timer.cancelled or timer.interval_ms is None:
                self._timers.pop(timer_id, None)
                continue
            timer.due_ms += timer.interval_ms
            heappush(self._queue, (timer.due_ms, timer.timer_id))
        self._now_ms = now_ms
        return fired

    def _schedule(
        self,
        due_ms: float,
        callback: TaskCallback,
        interval_ms: float | None,
    ) -> int:
        timer_id = self._next_timer_id
        self._next_timer_id += 1
        self._timers[timer_id] = _Timer(
            timer_id=timer_id,
            due_ms=due_ms,
            callback=callback,
            interval_ms=interval_ms,
        )
        heappush(self._queue, (due_ms, timer_id))
        return timer_id
