"""Logging configuration contract for hosts embedding the grid engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Root handler setup.

    `package_level_name` overrides the level of the `floorgrid` logger only,
    e.g. DEBUG for grid internals while the host stays at INFO.
    """

    level_name: str = "INFO"
    console_format: str = "text"  # text|json
    file_path: str | None = None
    file_format: str = "json"
    package_level_name: str | None = None
