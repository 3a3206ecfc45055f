from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from floorgrid.api.telemetry import GridNotice
from floorgrid.runtime.config import EngineConfig, GridConfig, MonitorOptions


class FakeSurface:
    """In-memory render surface with failure injection."""

    def __init__(self, width: float = 800.0, height: float = 600.0) -> None:
        self.width = width
        self.height = height
        self.objects: list[object] = []
        self.add_calls = 0
        self.render_requests = 0
        self.fail_add: Callable[[object], bool] | None = None

    def add(self, obj: object) -> None:
        self.add_calls += 1
        if self.fail_add is not None and self.fail_add(obj):
            raise RuntimeError("add rejected")
        self.objects.append(obj)

    def remove(self, obj: object) -> None:
        self.objects = [item for item in self.objects if item is not obj]

    def contains(self, obj: object) -> bool:
        return any(item is obj for item in self.objects)

    def get_objects(self) -> list[object]:
        return list(self.objects)

    def send_to_back(self, obj: object) -> None:
        self.remove(obj)
        self.objects.insert(0, obj)

    def request_render(self) -> None:
        self.render_requests += 1

    def drop(self, obj: object) -> None:
        """Detach behind the engine's back."""
        self.remove(obj)

    def drop_all(self) -> None:
        self.objects.clear()


class RecordingTelemetry:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def log_info(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self.calls.append(("info", message, dict(context or {})))

    def log_warn(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self.calls.append(("warn", message, dict(context or {})))

    def log_error(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self.calls.append(("error", message, dict(context or {})))

    def capture_issue(
        self,
        error: BaseException | str,
        category: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.calls.append(("issue", category, {"error": error, **dict(context or {})}))

    def categories(self) -> list[str]:
        return [category for kind, category, _ in self.calls if kind == "issue"]

    def messages(self, kind: str) -> list[str]:
        return [message for call_kind, message, _ in self.calls if call_kind == kind]


class NoticeRecorder:
    def __init__(self) -> None:
        self.notices: list[GridNotice] = []

    def __call__(self, notice: GridNotice) -> None:
        self.notices.append(notice)

    def ids(self) -> list[str]:
        return [notice.notice_id for notice in self.notices]


def make_config(
    *,
    cooldown_ms: float = 2000.0,
    retry_attempts: int = 3,
    max_lines: int = 600,
    monitor: MonitorOptions | None = None,
) -> EngineConfig:
    return EngineConfig(
        grid=GridConfig(
            creation_cooldown_ms=cooldown_ms,
            retry_max_attempts=retry_attempts,
            retry_base_delay_ms=10.0,
            max_lines=max_lines,
        ),
        monitor=monitor or MonitorOptions(),
    )
