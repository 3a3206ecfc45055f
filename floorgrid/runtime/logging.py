"""Logging setup for the grid engine and the hosts embedding it."""

from __future__ import annotations

import json
import logging
import os
import queue
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path

from floorgrid.api.logging import LoggingConfig

PACKAGE_LOGGER = "floorgrid"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_listener: QueueListener | None = None
# Attributes every LogRecord has; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Telemetry records carry `grid_event` and `context`; both are lifted to
    top-level `event` / `context` keys. Any other `extra=` values land under
    `fields`.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        extras = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        event = extras.pop("grid_event", None)
        if event is not None:
            payload["event"] = event
            payload["context"] = extras.pop("context", {})
        if extras:
            payload["fields"] = extras
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def resolve_log_level_name(default: str = "INFO") -> str:
    """Resolve the root level; `FLOORGRID_LOG_LEVEL` beats `LOG_LEVEL`."""
    value = os.getenv("FLOORGRID_LOG_LEVEL") or os.getenv("LOG_LEVEL") or default
    return value.strip().upper()


def load_logging_config(*, env: Mapping[str, str] | None = None) -> LoggingConfig:
    source = os.environ if env is None else env
    level = source.get("FLOORGRID_LOG_LEVEL") or source.get("LOG_LEVEL") or "INFO"
    return LoggingConfig(
        level_name=level.strip().upper(),
        console_format=source.get("FLOORGRID_LOG_FORMAT", "text"),
        file_path=source.get("FLOORGRID_LOG_FILE") or None,
        file_format="json",
        package_level_name=source.get("FLOORGRID_PACKAGE_LOG_LEVEL") or None,
    )


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root handlers. File output is drained by a queue listener."""
    global _listener

    shutdown_logging()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_level(config.level_name))
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(
        logging.NOTSET if config.package_level_name is None else _level(config.package_level_name)
    )

    console = _with_formatter(logging.StreamHandler(), config.console_format)
    if not config.file_path:
        root.addHandler(console)
        return

    path = Path(config.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = _with_formatter(
        logging.FileHandler(path, mode="a", encoding="utf-8", delay=True),
        config.file_format,
    )
    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    root.addHandler(QueueHandler(records))
    _listener = QueueListener(records, console, file_handler, respect_handler_level=True)
    _listener.start()


def setup_logging() -> None:
    """Configure from the environment unless the host already installed handlers."""
    if logging.getLogger().handlers:
        return
    configure_logging(load_logging_config())


def shutdown_logging() -> None:
    """Stop the file listener, flushing queued records."""
    global _listener
    if _listener is not None:
        _listener.stop()
        _listener = None


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.strip().upper(), logging.INFO)


def _with_formatter[H: logging.Handler](handler: H, kind: str) -> H:
    if kind.strip().lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    return handler
