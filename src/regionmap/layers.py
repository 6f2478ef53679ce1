"""State and district shape layers with memoized shape rendering."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from typing import Callable, Sequence

from .config import StyleConfig
from .culler import RenderCuller
from .geodata import names_match
from .models import LEVEL_DEFAULT, LEVEL_DISTRICT, LEVEL_STATE, Feature, ShapeProps, ViewState
from .projection import MapProjection
from .util import to_url_slug

VISIBLE = "visible"
HIDDEN = "hidden"


@dataclass(frozen=True, slots=True)
class ShapeElement:
    """Rendered form of one shape."""

    shape_id: str
    d: str
    fill: str
    stroke_width: float
    css_class: str


def generate_id(prefix: str, name: str) -> str:
    return f"{prefix}-{to_url_slug(name, '-')}"


def parent_shade(hex_color: str, name: str, spread: float = 0.12) -> str:
    """Lighten or darken `hex_color` by an amount derived from `name`."""
    raw = hex_color.lstrip("#")
    if len(raw) != 6:
        return hex_color
    try:
        channels = [int(raw[i : i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        return hex_color
    bucket = zlib.crc32(name.encode("utf-8")) % 1000 / 999.0
    factor = (bucket * 2.0 - 1.0) * spread
    if factor >= 0:
        shaded = [round(c + (255 - c) * factor) for c in channels]
    else:
        shaded = [round(c * (1.0 + factor)) for c in channels]
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in shaded)


def render_shape(props: ShapeProps, *, kind: str) -> ShapeElement:
    if kind == "district":
        stroke_width = 0.25 if props.selected else 0.15
        base = "district-path"
    else:
        stroke_width = 2.0 if props.selected else 1.0
        base = "state-path"
    classes = [base]
    if props.selected:
        classes.append("selected")
    if props.visibility:
        classes.append(props.visibility)
    return ShapeElement(
        shape_id=props.shape_id,
        d=props.path_d,
        fill=props.fill,
        stroke_width=stroke_width,
        css_class=" ".join(classes),
    )


class ShapeCache:
    """Re-render a shape only when its props differ from the last render."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: dict[str, tuple[ShapeProps, ShapeElement]] = {}
        self.renders = 0

    def render(self, props: ShapeProps) -> ShapeElement:
        cached = self._entries.get(props.shape_id)
        if cached is not None and cached[0] == props:
            return cached[1]
        element = render_shape(props, kind=self.kind)
        self._entries[props.shape_id] = (props, element)
        self.renders += 1
        return element

    def prune(self, keep: set[str]) -> None:
        for shape_id in [key for key in self._entries if key not in keep]:
            del self._entries[shape_id]


class StatesLayer:
    def __init__(
        self,
        states: Sequence[Feature],
        projection: MapProjection,
        style: StyleConfig,
        *,
        on_click: Callable[[Feature], object],
    ) -> None:
        self._style = style
        self._cache = ShapeCache("state")
        self._items: list[tuple[Feature, str, str, Callable[[], None]]] = []
        for feature in states:
            path_d = projection.path_data(feature.geometry)
            if not path_d:
                continue
            handler = _bind(on_click, feature)
            self._items.append((feature, generate_id("state", feature.name), path_d, handler))

    @property
    def renders(self) -> int:
        return self._cache.renders

    def props(self, state: ViewState) -> list[ShapeProps]:
        return [props for _, props in self.entries(state)]

    def entries(self, state: ViewState) -> list[tuple[Feature, ShapeProps]]:
        out: list[tuple[Feature, ShapeProps]] = []
        for feature, shape_id, path_d, handler in self._items:
            selected = state.selected_state is not None and names_match(
                feature.name, state.selected_state
            )
            fill = (
                self._style.selected_state_fill
                if selected
                else self._style.state_colors.get(feature.name, self._style.default_fill)
            )
            out.append(
                (
                    feature,
                    ShapeProps(
                        shape_id=shape_id,
                        selected=selected,
                        fill=fill,
                        path_d=path_d,
                        on_select=handler,
                        visibility=_state_visibility(state, selected),
                    ),
                )
            )
        return out

    def render(self, state: ViewState) -> list[ShapeElement]:
        return [self._cache.render(props) for props in self.props(state)]


class DistrictsLayer:
    """Mounts only the districts of the culler's rendering scope."""

    def __init__(
        self,
        districts: Sequence[Feature],
        projection: MapProjection,
        style: StyleConfig,
        culler: RenderCuller,
        *,
        on_click: Callable[[Feature], object],
    ) -> None:
        self._style = style
        self._culler = culler
        self._cache = ShapeCache("district")
        self._prepared: dict[str, tuple[str, str, str, Callable[[], None]]] = {}
        for feature in districts:
            path_d = projection.path_data(feature.geometry)
            if not path_d:
                continue
            parent_color = style.state_colors.get(feature.parent or "", style.default_fill)
            self._prepared[feature.name] = (
                generate_id("district", feature.name),
                path_d,
                parent_shade(parent_color, feature.name),
                _bind(on_click, feature),
            )

    @property
    def renders(self) -> int:
        return self._cache.renders

    def mounted(self) -> tuple[Feature, ...]:
        return tuple(f for f in self._culler.visible_districts() if f.name in self._prepared)

    def visibility(self, feature: Feature, state: ViewState) -> str:
        belongs = state.selected_state is not None and feature.parent is not None and names_match(
            feature.parent, state.selected_state
        )
        if state.level == LEVEL_STATE and belongs:
            return VISIBLE
        if state.level == LEVEL_DISTRICT:
            if feature.name == state.selected_district:
                return VISIBLE
            if belongs:
                return HIDDEN
        return ""

    def props(self, state: ViewState) -> list[ShapeProps]:
        return [props for _, props in self.entries(state)]

    def entries(self, state: ViewState) -> list[tuple[Feature, ShapeProps]]:
        out: list[tuple[Feature, ShapeProps]] = []
        for feature in self.mounted():
            shape_id, path_d, shade, handler = self._prepared[feature.name]
            selected = feature.name == state.selected_district
            out.append(
                (
                    feature,
                    ShapeProps(
                        shape_id=shape_id,
                        selected=selected,
                        fill=self._style.selected_district_fill if selected else shade,
                        path_d=path_d,
                        on_select=handler,
                        visibility=self.visibility(feature, state),
                    ),
                )
            )
        return out

    def render(self, state: ViewState) -> list[ShapeElement]:
        props = self.props(state)
        self._cache.prune({p.shape_id for p in props})
        return [self._cache.render(p) for p in props]


def _state_visibility(state: ViewState, selected: bool) -> str:
    if state.level == LEVEL_DEFAULT:
        return VISIBLE
    if state.level == LEVEL_STATE and selected:
        return VISIBLE
    return HIDDEN


def _bind(on_click: Callable[[Feature], object], feature: Feature) -> Callable[[], None]:
    def _handler() -> None:
        on_click(feature)

    return _handler
