"""Bounded in-memory log of grid diagnostics events."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Any

from floorgrid.diagnostics.event import DiagnosticEvent, EventValue, utc_now_iso

Subscriber = Callable[[DiagnosticEvent], None]


class DiagnosticHub:
    """Keeps the most recent events and fans them out to subscribers."""

    def __init__(self, *, capacity: int = 2_000, enabled: bool = True) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._enabled = bool(enabled)
        self._events: deque[DiagnosticEvent] = deque(maxlen=int(capacity))
        self._subscribers: dict[int, Subscriber] = {}
        self._next_subscriber_id = 1
        self._seq = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    def emit(
        self,
        *,
        category: str,
        name: str,
        level: str = "info",
        value: EventValue = None,
        metadata: dict[str, Any] | None = None,
    ) -> DiagnosticEvent | None:
        if not self._enabled:
            return None
        self._seq += 1
        event = DiagnosticEvent(
            ts_utc=utc_now_iso(),
            seq=self._seq,
            category=str(category).strip().lower(),
            name=name,
            level=level,
            value=value,
            metadata=dict(metadata or {}),
        )
        self._events.append(event)
        for callback in tuple(self._subscribers.values()):
            callback(event)
        return event

    def subscribe(self, callback: Subscriber) -> int:
        token = self._next_subscriber_id
        self._next_subscriber_id += 1
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._subscribers.pop(token, None)

    def snapshot(
        self,
        *,
        limit: int | None = None,
        category: str | None = None,
        level: str | None = None,
    ) -> list[DiagnosticEvent]:
        events = list(self._events)
        if category is not None:
            events = [event for event in events if event.category == category]
        if level is not None:
            events = [event for event in events if event.level == level]
        if limit is None or limit >= len(events):
            return events
        if limit <= 0:
            return []
        return events[-int(limit) :]

    def export(self, *, limit: int | None = None) -> list[dict[str, Any]]:
        """Plain-data copy of the newest events, oldest first."""
        return [event.to_dict() for event in self.snapshot(limit=limit)]
