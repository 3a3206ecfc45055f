"""Telemetry adapters: logger-backed sink and failure-isolating wrappers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from floorgrid.api.telemetry import GridNotice, NoticeSink, TelemetrySink
from floorgrid.diagnostics.hub import DiagnosticHub
from floorgrid.runtime.errors import log_recoverable

_LOG = logging.getLogger(__name__)


class LoggingTelemetry:
    """Routes telemetry into a stdlib logger and, optionally, a diagnostics hub."""

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        hub: DiagnosticHub | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("floorgrid.telemetry")
        self._hub = hub

    @property
    def hub(self) -> DiagnosticHub | None:
        return self._hub

    def log_info(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self._record(logging.INFO, "info", "log", message, context)

    def log_warn(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self._record(logging.WARNING, "warning", "log", message, context)

    def log_error(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        self._record(logging.ERROR, "error", "log", message, context)

    def capture_issue(
        self,
        error: BaseException | str,
        category: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        fields = dict(context or {})
        level_name = str(fields.pop("level", "error"))
        if isinstance(error, BaseException):
            fields["error_type"] = type(error).__name__
            message = str(error) or type(error).__name__
        else:
            message = error
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            level = logging.ERROR
        self._record(level, level_name, category, message, fields)

    def _record(
        self,
        level: int,
        level_name: str,
        name: str,
        message: str,
        context: Mapping[str, Any] | None,
    ) -> None:
        fields = dict(context or {})
        self._logger.log(level, "%s", message, extra={"grid_event": name, "context": fields})
        if self._hub is not None:
            self._hub.emit(
                category="grid",
                name=name,
                level=level_name,
                value=message,
                metadata=fields,
            )


class GuardedTelemetry:
    """Wraps any sink so its failures never reach the engine."""

    def __init__(self, sink: TelemetrySink) -> None:
        self._sink = sink

    @property
    def sink(self) -> TelemetrySink:
        return self._sink

    def log_info(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        try:
            self._sink.log_info(message, context)
        except Exception:
            log_recoverable(_LOG, "telemetry log_info failed", level=logging.WARNING)

    def log_warn(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        try:
            self._sink.log_warn(message, context)
        except Exception:
            log_recoverable(_LOG, "telemetry log_warn failed", level=logging.WARNING)

    def log_error(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        try:
            self._sink.log_error(message, context)
        except Exception:
            log_recoverable(_LOG, "telemetry log_error failed", level=logging.WARNING)

    def capture_issue(
        self,
        error: BaseException | str,
        category: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        try:
            self._sink.capture_issue(error, category, context)
        except Exception:
            log_recoverable(_LOG, f"telemetry capture_issue failed category={category}", level=logging.WARNING)


def guard_telemetry(sink: TelemetrySink | None) -> GuardedTelemetry:
    if isinstance(sink, GuardedTelemetry):
        return sink
    return GuardedTelemetry(sink if sink is not None else LoggingTelemetry())


def guard_notices(sink: NoticeSink | None) -> NoticeSink:
    """Return a notice callback that logs instead of raising."""

    def _notify(notice: GridNotice) -> None:
        _LOG.info("grid notice [%s] %s", notice.level, notice.message)
        if sink is None:
            return
        try:
            sink(notice)
        except Exception:
            log_recoverable(_LOG, f"notice delivery failed id={notice.notice_id}", level=logging.WARNING)

    return _notify
