"""Grid diagnostics event record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

type EventValue = float | int | str | bool | dict[str, Any] | None


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    ts_utc: str
    seq: int
    category: str
    name: str
    level: str = "info"
    value: EventValue = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ts_utc": self.ts_utc,
            "seq": self.seq,
            "category": self.category,
            "name": self.name,
            "level": self.level,
            "value": self.value,
            "metadata": dict(self.metadata),
        }


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds")
