"""Clock primitives for cooldowns, timestamps and blocking retry waits."""

from __future__ import annotations

from collections.abc import Callable
from time import monotonic, sleep
from typing import Protocol

from floorgrid.runtime.scheduler import Scheduler


class Clock(Protocol):
    """Millisecond clock."""

    def now_ms(self) -> float: ...


class MonotonicClock:
    """Wall-clock backed implementation for hosted use."""

    def __init__(
        self,
        *,
        time_source: Callable[[], float] | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        self._time_source = time_source or monotonic
        self._sleeper = sleeper or sleep

    def now_ms(self) -> float:
        return self._time_source() * 1000.0

    def sleep_ms(self, delay_ms: float) -> None:
        if delay_ms > 0.0:
            self._sleeper(delay_ms / 1000.0)


class ManualClock:
    """Deterministic clock; waits advance time instantly."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)
        self.sleeps: list[float] = []

    def now_ms(self) -> float:
        return self._now_ms

    def advance(self, delta_ms: float) -> None:
        if delta_ms < 0.0:
            raise ValueError("delta_ms must be >= 0")
        self._now_ms += delta_ms

    def sleep_ms(self, delay_ms: float) -> None:
        self.sleeps.append(delay_ms)
        self.advance(max(0.0, delay_ms))


class SchedulerClock:
    """Clock reading scheduler time; waits are scheduler timers, never sleeps."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler

    def now_ms(self) -> float:
        return self._scheduler.now_ms
