from __future__ import annotations

import json
import logging

import pytest

from floorgrid.api.logging import LoggingConfig
from floorgrid.runtime.logging import (
    PACKAGE_LOGGER,
    JsonFormatter,
    configure_logging,
    load_logging_config,
    resolve_log_level_name,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    shutdown_logging()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_includes_extra_fields() -> None:
    logger = logging.getLogger("test.floorgrid.json")
    record = logger.makeRecord(
        name=logger.name,
        level=logging.WARNING,
        fn=__file__,
        lno=1,
        msg="grid %s",
        args=("escalated",),
        exc_info=None,
        extra={"grid_event": "grid escalated", "context": {"tier": "reliable"}},
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "grid escalated"
    assert payload["level"] == "WARNING"
    assert payload["event"] == "grid escalated"
    assert payload["context"] == {"tier": "reliable"}
    assert "fields" not in payload


def test_resolve_log_level_prefers_package_prefix(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.delenv("FLOORGRID_LOG_LEVEL", raising=False)
    assert resolve_log_level_name() == "WARNING"
    monkeypatch.setenv("FLOORGRID_LOG_LEVEL", "debug")
    assert resolve_log_level_name() == "DEBUG"


def test_configure_logging_console_only(restore_root_logging) -> None:
    configure_logging(LoggingConfig(level_name="DEBUG", console_format="json"))
    root = restore_root_logging
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_configure_logging_writes_json_file(restore_root_logging, tmp_path) -> None:
    log_file = tmp_path / "logs" / "floorgrid.jsonl"
    configure_logging(LoggingConfig(level_name="INFO", file_path=str(log_file)))
    logging.getLogger("test.floorgrid.file").info("grid created", extra={"lines": 72})
    shutdown_logging()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines
    payload = json.loads(lines[-1])
    assert payload["msg"] == "grid created"
    assert payload["fields"]["lines"] == 72


def test_setup_logging_keeps_existing_handlers(restore_root_logging) -> None:
    root = restore_root_logging
    marker = logging.NullHandler()
    root.handlers[:] = [marker]
    setup_logging()
    assert root.handlers == [marker]


def test_load_logging_config_reads_prefixed_variables() -> None:
    cfg = load_logging_config(
        env={
            "LOG_LEVEL": "warning",
            "FLOORGRID_LOG_FORMAT": "json",
            "FLOORGRID_LOG_FILE": "logs/grid.jsonl",
            "FLOORGRID_PACKAGE_LOG_LEVEL": "DEBUG",
        }
    )
    assert cfg.level_name == "WARNING"
    assert cfg.console_format == "json"
    assert cfg.file_path == "logs/grid.jsonl"
    assert cfg.package_level_name == "DEBUG"
    assert load_logging_config(env={}).file_path is None


def test_configure_logging_sets_package_level(restore_root_logging) -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    try:
        configure_logging(LoggingConfig(level_name="WARNING", package_level_name="debug"))
        assert package_logger.level == logging.DEBUG
        assert restore_root_logging.level == logging.WARNING
    finally:
        package_logger.setLevel(logging.NOTSET)
