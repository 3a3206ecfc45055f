"""Environment-backed configuration for grid creation and monitoring."""

from __future__ import annotations

import os
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True, slots=True)
class GridStyle:
    small_color: str = "rgba(200,200,200,0.3)"
    large_color: str = "rgba(100,100,100,0.6)"
    small_stroke_width: float = 0.5
    large_stroke_width: float = 1.0
    marker_color: str = "rgba(245,245,245,1)"


@dataclass(frozen=True, slots=True)
class GridConfig:
    small_spacing: float = 20.0
    large_spacing: float = 100.0
    max_lines: int = 600
    reliable_max_lines: int = 300
    emergency_max_lines: int = 100
    min_width: float = 100.0
    min_height: float = 100.0
    creation_cooldown_ms: float = 2000.0
    retry_max_attempts: int = 3
    retry_base_delay_ms: float = 50.0
    style: GridStyle = field(default_factory=GridStyle)


@dataclass(frozen=True, slots=True)
class MonitorOptions:
    """Options accepted by `GridEngine.start_monitoring`."""

    check_interval_ms: float = 5000.0
    auto_repair: bool = True
    use_emergency_fallback: bool = True
    max_repair_attempts: int = 3
    consecutive_error_threshold: int = 5
    repair_cooldown_ms: float = 10_000.0


@dataclass(frozen=True, slots=True)
class EngineConfig:
    grid: GridConfig
    monitor: MonitorOptions


_ENGINE_CONFIG: ContextVar[EngineConfig | None] = ContextVar("floorgrid_engine_config", default=None)


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    raw = _raw(name, env=env)
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = int(default)
    if minimum is None:
        return value
    return max(int(minimum), value)


def _float(
    name: str,
    default: float,
    *,
    minimum: float | None = None,
    env: Mapping[str, str] | None = None,
) -> float:
    raw = _raw(name, env=env)
    if raw is None:
        value = float(default)
    else:
        try:
            value = float(raw.strip())
        except ValueError:
            value = float(default)
    if minimum is None:
        return value
    return max(float(minimum), value)


def _text(name: str, default: str, *, env: Mapping[str, str] | None = None) -> str:
    raw = _raw(name, env=env)
    if raw is None:
        return str(default)
    value = raw.strip()
    return value if value else str(default)


def _aligned_large_spacing(small: float, large: float) -> float:
    # Large lines must land on small-spacing multiples.
    if large < small:
        return small
    ratio = round(large / small)
    return small * max(1, ratio)


def load_grid_config(*, env: Mapping[str, str] | None = None) -> GridConfig:
    defaults = GridConfig()
    style_defaults = defaults.style
    small = _float("FLOORGRID_SMALL_SPACING", defaults.small_spacing, minimum=1.0, env=env)
    large = _float("FLOORGRID_LARGE_SPACING", defaults.large_spacing, minimum=1.0, env=env)
    max_lines = _int("FLOORGRID_MAX_LINES", defaults.max_lines, minimum=4, env=env)
    return GridConfig(
        small_spacing=small,
        large_spacing=_aligned_large_spacing(small, large),
        max_lines=max_lines,
        reliable_max_lines=min(
            max_lines,
            _int("FLOORGRID_RELIABLE_MAX_LINES", defaults.reliable_max_lines, minimum=4, env=env),
        ),
        emergency_max_lines=_int(
            "FLOORGRID_EMERGENCY_MAX_LINES", defaults.emergency_max_lines, minimum=2, env=env
        ),
        min_width=_float("FLOORGRID_MIN_WIDTH", defaults.min_width, minimum=1.0, env=env),
        min_height=_float("FLOORGRID_MIN_HEIGHT", defaults.min_height, minimum=1.0, env=env),
        creation_cooldown_ms=_float(
            "FLOORGRID_CREATION_COOLDOWN_MS", defaults.creation_cooldown_ms, minimum=0.0, env=env
        ),
        retry_max_attempts=_int(
            "FLOORGRID_RETRY_MAX_ATTEMPTS", defaults.retry_max_attempts, minimum=1, env=env
        ),
        retry_base_delay_ms=_float(
            "FLOORGRID_RETRY_BASE_DELAY_MS", defaults.retry_base_delay_ms, minimum=0.0, env=env
        ),
        style=GridStyle(
            small_color=_text("FLOORGRID_SMALL_COLOR", style_defaults.small_color, env=env),
            large_color=_text("FLOORGRID_LARGE_COLOR", style_defaults.large_color, env=env),
            small_stroke_width=_float(
                "FLOORGRID_SMALL_STROKE_WIDTH", style_defaults.small_stroke_width, minimum=0.1, env=env
            ),
            large_stroke_width=_float(
                "FLOORGRID_LARGE_STROKE_WIDTH", style_defaults.large_stroke_width, minimum=0.1, env=env
            ),
            marker_color=_text("FLOORGRID_MARKER_COLOR", style_defaults.marker_color, env=env),
        ),
    )


def load_monitor_options(*, env: Mapping[str, str] | None = None) -> MonitorOptions:
    defaults = MonitorOptions()
    return MonitorOptions(
        check_interval_ms=_float(
            "FLOORGRID_MONITOR_INTERVAL_MS", defaults.check_interval_ms, minimum=10.0, env=env
        ),
        auto_repair=_flag("FLOORGRID_MONITOR_AUTO_REPAIR", defaults.auto_repair, env=env),
        use_emergency_fallback=_flag(
            "FLOORGRID_MONITOR_EMERGENCY_FALLBACK", defaults.use_emergency_fallback, env=env
        ),
        max_repair_attempts=_int(
            "FLOORGRID_MONITOR_MAX_REPAIR_ATTEMPTS", defaults.max_repair_attempts, minimum=0, env=env
        ),
        consecutive_error_threshold=_int(
            "FLOORGRID_MONITOR_ERROR_THRESHOLD",
            defaults.consecutive_error_threshold,
            minimum=1,
            env=env,
        ),
        repair_cooldown_ms=_float(
            "FLOORGRID_MONITOR_REPAIR_COOLDOWN_MS", defaults.repair_cooldown_ms, minimum=0.0, env=env
        ),
    )


def load_engine_config(*, env: Mapping[str, str] | None = None) -> EngineConfig:
    return EngineConfig(grid=load_grid_config(env=env), monitor=load_monitor_options(env=env))


def set_engine_config(config: EngineConfig) -> EngineConfig:
    _ENGINE_CONFIG.set(config)
    return config


def get_engine_config() -> EngineConfig:
    config = _ENGINE_CONFIG.get()
    if config is not None:
        return config
    return set_engine_config(load_engine_config())


__all__ = [
    "EngineConfig",
    "GridConfig",
    "GridStyle",
    "MonitorOptions",
    "get_engine_config",
    "load_engine_config",
    "load_grid_config",
    "load_monitor_options",
    "set_engine_config",
]
