from __future__ import annotations

from floorgrid.runtime.config import (
    EngineConfig,
    GridConfig,
    MonitorOptions,
    get_engine_config,
    load_engine_config,
    load_grid_config,
    load_monitor_options,
    set_engine_config,
)


def test_load_grid_config_defaults_without_env() -> None:
    cfg = load_grid_config(env={})
    assert cfg == GridConfig()
    assert cfg.small_spacing == 20.0
    assert cfg.large_spacing == 100.0
    assert cfg.creation_cooldown_ms == 2000.0
    assert cfg.style.small_color == "rgba(200,200,200,0.3)"
    assert cfg.style.large_stroke_width == 1.0


def test_load_grid_config_parses_overrides() -> None:
    cfg = load_grid_config(
        env={
            "FLOORGRID_SMALL_SPACING": "25",
            "FLOORGRID_LARGE_SPACING": "125",
            "FLOORGRID_MAX_LINES": "200",
            "FLOORGRID_RELIABLE_MAX_LINES": "900",
            "FLOORGRID_CREATION_COOLDOWN_MS": "500",
            "FLOORGRID_RETRY_MAX_ATTEMPTS": "5",
            "FLOORGRID_SMALL_COLOR": "  #eee ",
            "FLOORGRID_LARGE_STROKE_WIDTH": "2.5",
        }
    )
    assert cfg.small_spacing == 25.0
    assert cfg.large_spacing == 125.0
    assert cfg.max_lines == 200
    assert cfg.reliable_max_lines == 200
    assert cfg.creation_cooldown_ms == 500.0
    assert cfg.retry_max_attempts == 5
    assert cfg.style.small_color == "#eee"
    assert cfg.style.large_stroke_width == 2.5


def test_load_grid_config_aligns_large_spacing_to_small_multiple() -> None:
    cfg = load_grid_config(env={"FLOORGRID_SMALL_SPACING": "20", "FLOORGRID_LARGE_SPACING": "110"})
    assert cfg.large_spacing == 120.0
    cfg = load_grid_config(env={"FLOORGRID_SMALL_SPACING": "20", "FLOORGRID_LARGE_SPACING": "5"})
    assert cfg.large_spacing == 20.0


def test_load_grid_config_invalid_values_fall_back_or_clamp() -> None:
    cfg = load_grid_config(
        env={
            "FLOORGRID_SMALL_SPACING": "abc",
            "FLOORGRID_MAX_LINES": "1",
            "FLOORGRID_RETRY_MAX_ATTEMPTS": "0",
            "FLOORGRID_MARKER_COLOR": "   ",
        }
    )
    assert cfg.small_spacing == 20.0
    assert cfg.max_lines == 4
    assert cfg.retry_max_attempts == 1
    assert cfg.style.marker_color == GridConfig().style.marker_color


def test_load_monitor_options_parses_flags() -> None:
    options = load_monitor_options(
        env={
            "FLOORGRID_MONITOR_INTERVAL_MS": "250",
            "FLOORGRID_MONITOR_AUTO_REPAIR": "off",
            "FLOORGRID_MONITOR_EMERGENCY_FALLBACK": "no",
            "FLOORGRID_MONITOR_ERROR_THRESHOLD": "0",
            "FLOORGRID_MONITOR_MAX_REPAIR_ATTEMPTS": "7",
        }
    )
    assert options.check_interval_ms == 250.0
    assert options.auto_repair is False
    assert options.use_emergency_fallback is False
    assert options.consecutive_error_threshold == 1
    assert options.max_repair_attempts == 7


def test_load_monitor_options_unknown_flag_keeps_default() -> None:
    options = load_monitor_options(env={"FLOORGRID_MONITOR_AUTO_REPAIR": "maybe"})
    assert options.auto_repair is MonitorOptions().auto_repair


def test_get_engine_config_reads_environment_once(monkeypatch) -> None:
    monkeypatch.setenv("FLOORGRID_SMALL_SPACING", "10")
    monkeypatch.setenv("FLOORGRID_LARGE_SPACING", "50")
    custom = EngineConfig(grid=GridConfig(small_spacing=40.0, large_spacing=200.0), monitor=MonitorOptions())
    set_engine_config(custom)
    assert get_engine_config() is custom
    assert load_engine_config().grid.small_spacing == 10.0
