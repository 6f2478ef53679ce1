from __future__ import annotations

from regionmap.layers import HIDDEN, VISIBLE, ShapeCache, generate_id, parent_shade
from regionmap.models import ShapeProps


def test_generate_id_is_slugged() -> None:
    assert generate_id("state", "Arunachal Pradesh") == "state-arunachal-pradesh"


def test_parent_shade_is_deterministic_and_close() -> None:
    first = parent_shade("#bfe0f2", "East Khasi Hills")
    assert first == parent_shade("#bfe0f2", "East Khasi Hills")
    assert first.startswith("#") and len(first) == 7
    base = int("bf", 16)
    assert abs(int(first[1:3], 16) - base) <= 255 * 0.12 + 1


def test_parent_shade_passes_through_unparseable_colors() -> None:
    assert parent_shade("steelblue", "Kamrup") == "steelblue"


def test_shape_cache_skips_equal_props() -> None:
    cache = ShapeCache("state")
    props = ShapeProps("state-assam", False, "#f6d6ad", "M0,0L1,0L1,1Z", None, VISIBLE)
    first = cache.render(props)
    again = cache.render(ShapeProps("state-assam", False, "#f6d6ad", "M0,0L1,0L1,1Z", None, VISIBLE))
    assert again is first
    assert cache.renders == 1

    changed = cache.render(ShapeProps("state-assam", True, "#FBEAAF", "M0,0L1,0L1,1Z", None, VISIBLE))
    assert changed is not first
    assert "selected" in changed.css_class
    assert cache.renders == 2


def test_states_layer_memoizes_idle_frames(widget) -> None:
    widget.frame()
    renders = widget.states_layer.renders
    widget.hover_state("Assam")
    widget.pointer_move(10, 20)
    widget.frame()
    assert widget.states_layer.renders == renders


def test_handlers_are_stable_between_frames(widget) -> None:
    state = widget.state
    assert widget.states_layer.props(state) == widget.states_layer.props(state)


def test_state_visibility_by_level(widget) -> None:
    frame = widget.frame()
    assert all(VISIBLE in element.css_class for element in frame.states)

    widget.click_state("Meghalaya")
    widget.settle()
    by_id = {element.shape_id: element for element in widget.frame().states}
    assert VISIBLE in by_id["state-meghalaya"].css_class
    assert "selected" in by_id["state-meghalaya"].css_class
    assert HIDDEN in by_id["state-assam"].css_class


def test_districts_mounted_only_for_scope(widget) -> None:
    assert widget.frame().districts == ()
    widget.click_state("Meghalaya")
    widget.settle()
    ids = sorted(element.shape_id for element in widget.frame().districts)
    assert ids == ["district-east-khasi-hills", "district-west-garo-hills"]


def test_district_visibility_at_district_level(widget) -> None:
    widget.click_state("Meghalaya")
    widget.settle()
    widget.click_district("East Khasi Hills")
    widget.settle()
    by_id = {element.shape_id: element for element in widget.frame().districts}
    assert VISIBLE in by_id["district-east-khasi-hills"].css_class
    assert by_id["district-east-khasi-hills"].fill == "#34ab48"
    assert HIDDEN in by_id["district-west-garo-hills"].css_class


def test_district_fill_is_shade_of_parent(widget) -> None:
    widget.click_state("Meghalaya")
    widget.settle()
    by_id = {element.shape_id: element for element in widget.frame().districts}
    assert by_id["district-west-garo-hills"].fill == parent_shade("#bfe0f2", "West Garo Hills")


def test_clicking_a_shape_handler_selects_it(widget) -> None:
    props = {p.shape_id: p for p in widget.states_layer.props(widget.state)}
    props["state-assam"].on_select()
    widget.settle()
    assert widget.state.selected_state == "Assam"
