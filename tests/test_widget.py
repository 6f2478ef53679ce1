from __future__ import annotations

import pytest

from regionmap.models import LEVEL_DEFAULT, LEVEL_DISTRICT, LEVEL_STATE
from regionmap.session import MemorySessionStorage
from regionmap.store import SelectionPreconditionError
from regionmap.widget import MapWidget


def _drill_to_district(widget: MapWidget) -> None:
    assert widget.click_state("Meghalaya")
    widget.settle()
    assert widget.click_district("East Khasi Hills")
    widget.settle()


def test_non_interactive_state_cannot_be_clicked(widget) -> None:
    assert not widget.click_state("West Bengal")
    widget.settle()
    assert widget.state.level == LEVEL_DEFAULT


def test_unknown_state_click_is_rejected(widget) -> None:
    assert not widget.click_state("Atlantis")


def test_state_clicks_only_at_default_level(widget) -> None:
    widget.click_state("Meghalaya")
    widget.settle()
    assert not widget.click_state("Assam")
    widget.settle()
    assert widget.state.selected_state == "Meghalaya"


def test_district_clicks_require_state_level(widget) -> None:
    assert not widget.click_district("East Khasi Hills")
    widget.click_state("Meghalaya")
    widget.settle()
    assert not widget.click_district("Kamrup")
    assert widget.click_district("West Garo Hills")
    widget.settle()
    assert widget.state.level == LEVEL_DISTRICT
    assert not widget.click_district("East Khasi Hills")


def test_store_rejects_district_selection_outside_state_level(widget, repository) -> None:
    with pytest.raises(SelectionPreconditionError):
        widget.store.select_district("Kamrup", repository.find_district("Kamrup"))


def test_misspelled_parent_state_resolves(widget) -> None:
    assert widget.click_state("Arunanchal Pradesh")
    widget.settle()
    assert widget.state.selected_state == "Arunachal Pradesh"
    assert widget.click_district("Tawang")
    widget.settle()
    assert widget.state.label == "Tawang"


def test_explore_routes(app_config, repository) -> None:
    routes: list[str] = []
    widget = MapWidget(app_config, repository, navigator=routes.append)
    assert widget.explore() == "/northeast"
    widget.click_state("Meghalaya")
    widget.settle()
    assert widget.explore() == "/meghalaya"
    widget.click_district("East Khasi Hills")
    widget.settle()
    assert widget.explore() == "/east_khasi_hills"
    assert routes == ["/northeast", "/meghalaya", "/east_khasi_hills"]


def test_sync_route_selects_state_once(widget) -> None:
    assert widget.sync_route("arunachal_pradesh")
    widget.settle()
    assert widget.state.level == LEVEL_STATE
    assert widget.state.selected_state == "Arunachal Pradesh"
    assert not widget.sync_route("assam")
    assert not widget.sync_route(None)


def test_sync_route_ignores_unknown_slug(widget) -> None:
    assert not widget.sync_route("atlantis")
    assert widget.state.level == LEVEL_DEFAULT


def test_tooltip_on_states(widget) -> None:
    widget.pointer_move(120, 80)
    widget.hover_state("Assam")
    assert widget.tooltip.visible
    assert widget.tooltip.content == "Assam"
    assert (widget.tooltip.x, widget.tooltip.y) == (120.0, 80.0)

    widget.leave_shape()
    assert not widget.tooltip.visible

    widget.hover_state("West Bengal")
    assert not widget.tooltip.visible


def test_tooltip_on_districts_follows_visibility(widget) -> None:
    widget.hover_district("East Khasi Hills")
    assert not widget.tooltip.visible

    widget.click_state("Meghalaya")
    widget.settle()
    widget.hover_state("Assam")
    assert not widget.tooltip.visible
    widget.hover_district("East Khasi Hills")
    assert widget.tooltip.visible
    assert widget.tooltip.content == "East Khasi Hills"

    widget.leave_shape()
    widget.click_district("West Garo Hills")
    widget.settle()
    widget.hover_district("East Khasi Hills")
    assert not widget.tooltip.visible


def test_frame_reports_back_button_and_transform(widget) -> None:
    frame = widget.frame()
    assert not frame.back_visible
    _drill_to_district(widget)
    frame = widget.frame()
    assert frame.back_visible
    assert frame.transform == widget.camera.transform
    assert widget.surface.transform == widget.camera.transform.to_svg()


def test_reset_returns_to_default(widget) -> None:
    _drill_to_district(widget)
    widget.reset()
    widget.settle()
    assert widget.state.level == LEVEL_DEFAULT
    assert widget.state.label == "Northeast India"
    assert widget.frame().districts == ()
    assert widget.camera.transform.k == 1.0


def test_widget_restores_session(app_config, repository) -> None:
    storage = MemorySessionStorage()
    first = MapWidget(app_config, repository, storage=storage)
    _drill_to_district(first)
    framed = first.camera.transform

    second = MapWidget(app_config, repository, storage=storage)
    second.settle()
    assert second.state.level == LEVEL_DISTRICT
    assert second.state.selected_district == "East Khasi Hills"
    assert second.camera.transform.k == pytest.approx(framed.k)
    assert second.culler.rendering_scope == "Meghalaya"
