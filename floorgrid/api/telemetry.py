"""Telemetry and user-notice contracts."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

type NoticeLevel = Literal["info", "success", "warning", "error"]


class TelemetrySink(Protocol):
    """Fire-and-forget issue recorder."""

    def log_info(self, message: str, context: Mapping[str, Any] | None = None) -> None: ...

    def log_warn(self, message: str, context: Mapping[str, Any] | None = None) -> None: ...

    def log_error(self, message: str, context: Mapping[str, Any] | None = None) -> None: ...

    def capture_issue(
        self,
        error: BaseException | str,
        category: str,
        context: Mapping[str, Any] | None = None,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class GridNotice:
    """Non-blocking message for the user, e.g. a toast."""

    level: NoticeLevel
    message: str
    notice_id: str


NoticeSink = Callable[[GridNotice], None]
