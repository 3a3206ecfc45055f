from __future__ import annotations

from floorgrid.diagnostics.report import HealthStatus, run_diagnostics
from floorgrid.grid.factory import GridObjectFactory
from floorgrid.grid.geometry import generate_grid
from floorgrid.grid.model import FidelityTier, LineTier
from floorgrid.grid.registry import GridRegistry
from tests.floorgrid.conftest import FakeSurface


class _ReadOnlySurface:
    width = 800
    height = 600

    def contains(self, obj: object) -> bool:
        return True

    def get_objects(self) -> list[object]:
        return []


def _grid(surface: FakeSurface):
    registry = GridRegistry()
    result = GridObjectFactory(registry).build(
        surface, generate_grid(surface.width, surface.height, 20, 100, max_lines=600), FidelityTier.NORMAL
    )
    return list(result.handles), registry


def test_healthy_grid_reports_ok_with_tier_counts() -> None:
    surface = FakeSurface()
    handles, registry = _grid(surface)
    report = run_diagnostics(surface, handles, registry=registry)

    assert report.status is HealthStatus.OK
    assert report.healthy
    assert report.warnings == ()
    assert report.canvas is not None
    assert (report.canvas.width, report.canvas.height, report.canvas.object_count) == (800.0, 600.0, 72)
    assert report.grid.attached_count == 72
    assert report.grid.line_tier_counts == {"small": 56, "large": 16}
    assert report.grid.fidelity_tier_counts == {"normal": 72}


def test_missing_surface_short_circuits() -> None:
    report = run_diagnostics(None, [])
    assert report.status is HealthStatus.ERROR
    assert report.codes() == ("surface-missing",)
    assert report.canvas is None


def test_empty_handle_list_is_a_warning() -> None:
    report = run_diagnostics(FakeSurface(), [])
    assert report.status is HealthStatus.WARNING
    assert report.codes() == ("no-grid-objects",)


def test_invalid_dimensions_raise_status_to_error() -> None:
    report = run_diagnostics(FakeSurface(width=0), [])
    assert report.status is HealthStatus.ERROR
    assert set(report.codes()) == {"invalid-dimensions", "no-grid-objects"}


def test_missing_operations_are_critical() -> None:
    surface = FakeSurface()
    handles, _registry = _grid(surface)
    report = run_diagnostics(_ReadOnlySurface(), handles)  # type: ignore[arg-type]

    assert report.status is HealthStatus.CRITICAL
    assert "surface-operations-missing" in report.codes()
    assert report.canvas is not None
    assert set(report.canvas.missing_operations) == {"add", "remove", "send_to_back", "request_render"}


def test_partial_and_full_detachment() -> None:
    surface = FakeSurface()
    handles, registry = _grid(surface)
    surface.drop(handles[0].shape)
    surface.drop(handles[1].shape)

    partial = run_diagnostics(surface, handles, registry=registry)
    assert partial.status is HealthStatus.WARNING
    assert partial.codes() == ("grid-partially-detached",)
    assert partial.grid.detached_count == 2
    assert partial.grid.detached_ids == ()

    verbose = run_diagnostics(surface, handles, True, registry=registry)
    assert verbose.grid.detached_ids == (handles[0].handle_id, handles[1].handle_id)

    surface.drop_all()
    detached = run_diagnostics(surface, handles, registry=registry)
    assert detached.status is HealthStatus.ERROR
    assert detached.codes() == ("grid-detached",)


def test_hidden_grid_objects_are_flagged() -> None:
    surface = FakeSurface()
    handles, registry = _grid(surface)
    handles[0].shape.visible = False

    partial = run_diagnostics(surface, handles, registry=registry)
    assert partial.status is HealthStatus.WARNING
    assert partial.codes() == ("grid-partially-hidden",)
    assert partial.grid.hidden_count == 1

    for handle in handles:
        handle.shape.visible = False
    hidden = run_diagnostics(surface, handles, registry=registry)
    assert hidden.status is HealthStatus.ERROR
    assert not hidden.healthy
    assert hidden.codes() == ("grid-hidden",)
    assert hidden.grid.hidden_count == 72


def test_unregistered_handles_are_flagged() -> None:
    surface = FakeSurface()
    handles, _registry = _grid(surface)
    stranger = GridRegistry().register(object(), tier=FidelityTier.NORMAL, line_tier=LineTier.SMALL)
    surface.add(stranger.shape)

    report = run_diagnostics(surface, [*handles, stranger], registry=GridRegistry())
    assert report.status is HealthStatus.WARNING
    assert report.codes() == ("unrecognized-handles",)


def test_report_to_dict_is_plain_data() -> None:
    surface = FakeSurface()
    handles, registry = _grid(surface)
    surface.drop(handles[0].shape)
    payload = run_diagnostics(surface, handles, True, registry=registry).to_dict()

    assert payload["status"] == "warning"
    assert payload["canvas"]["width"] == 800.0
    assert payload["grid"]["detached_count"] == 1
    assert payload["grid"]["detached_ids"] == [handles[0].handle_id]
    assert payload["warnings"][0]["severity"] == "warning"
    assert payload["grid"]["hidden_count"] == 0
