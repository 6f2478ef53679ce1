"""Top-level map container wiring store, camera, controller, culler and layers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from .camera import Camera, RenderSurface
from .config import AppConfig
from .culler import RenderCuller
from .geodata import GeoRepository, names_match
from .layers import VISIBLE, DistrictsLayer, ShapeElement, StatesLayer
from .models import (
    LEVEL_DEFAULT,
    LEVEL_STATE,
    CameraTransform,
    Feature,
    TooltipState,
    ViewState,
)
from .projection import MapProjection
from .scheduler import FrameScheduler
from .session import MemorySessionStorage, SessionStorage
from .store import ViewStateStore
from .transition import TransitionController
from .util import to_url_slug

_LOGGER = logging.getLogger("regionmap.widget")

Navigator = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class MapFrame:
    """Everything needed to draw the map at one instant."""

    state: ViewState
    transform: CameraTransform
    states: tuple[ShapeElement, ...]
    districts: tuple[ShapeElement, ...]
    tooltip: TooltipState
    back_visible: bool


class MapWidget:
    """One interactive map instance.

    User-facing handlers (`click_state`, `click_district`, `hover_*`) guard
    against clicks that are not valid at the current level and ignore them.
    """

    def __init__(
        self,
        cfg: AppConfig,
        repository: GeoRepository,
        *,
        scheduler: FrameScheduler | None = None,
        storage: SessionStorage | None = None,
        navigator: Navigator | None = None,
        projection: MapProjection | None = None,
    ) -> None:
        self.cfg = cfg
        self.repository = repository
        self.scheduler = scheduler or FrameScheduler(
            frame_interval_ms=cfg.transition.frame_interval_ms
        )
        self.projection = projection or MapProjection.from_config(cfg)
        self._navigator = navigator
        self.tooltip = TooltipState()

        self.store = ViewStateStore(
            scheduler=self.scheduler,
            storage=storage if storage is not None else MemorySessionStorage(),
            storage_key=cfg.session.storage_key,
            default_label=cfg.regions.default_label,
            non_interactive=cfg.regions.non_interactive,
        )
        self.surface = RenderSurface()
        self.camera = Camera(
            self.scheduler, surface=self.surface, duration_ms=cfg.transition.duration_ms
        )
        # Subscription order: the controller reacts before the culler.
        self.controller = TransitionController(
            self.store,
            self.camera,
            self.projection,
            repository=repository,
            state_fill=cfg.transition.state_fill,
            district_fill=cfg.transition.district_fill,
            scale_min=cfg.transition.scale_min,
            scale_max=cfg.transition.scale_max,
        )
        self.culler = RenderCuller(
            self.store,
            self.scheduler,
            repository.districts,
            exit_delay_ms=cfg.culling.exit_delay_ms,
        )
        self.states_layer = StatesLayer(
            repository.states, self.projection, cfg.style, on_click=self._on_state_shape_click
        )
        self.districts_layer = DistrictsLayer(
            repository.districts,
            self.projection,
            cfg.style,
            self.culler,
            on_click=self._on_district_shape_click,
        )

    @property
    def state(self) -> ViewState:
        return self.store.state

    def click_state(self, name: str) -> bool:
        feature = self.repository.find_state(name)
        if feature is None:
            _LOGGER.warning("Unknown state '%s'", name)
            return False
        return self._on_state_shape_click(feature)

    def click_district(self, name: str) -> bool:
        feature = self.repository.find_district(name)
        if feature is None:
            _LOGGER.warning("Unknown district '%s'", name)
            return False
        return self._on_district_shape_click(feature)

    def go_back(self) -> None:
        self.store.go_back()

    def reset(self) -> None:
        self.store.reset()

    def hover_state(self, name: str) -> None:
        if self.state.level == LEVEL_DEFAULT and self.store.is_interactive(name):
            self._show_tooltip(name)

    def hover_district(self, name: str) -> None:
        feature = next((f for f in self.districts_layer.mounted() if f.name == name), None)
        if feature is not None and self.districts_layer.visibility(feature, self.state) == VISIBLE:
            self._show_tooltip(name)

    def leave_shape(self) -> None:
        self.tooltip = replace(self.tooltip, visible=False)

    def pointer_move(self, x: float, y: float) -> None:
        self.tooltip = replace(self.tooltip, x=float(x), y=float(y))

    def explore(self) -> str:
        """Route for the current selection, handed to the navigator if one is set."""
        state = self.state
        separator = self.cfg.navigation.slug_separator
        if state.selected_district:
            path = "/" + to_url_slug(state.selected_district, separator)
        elif state.selected_state:
            path = "/" + to_url_slug(state.selected_state, separator)
        else:
            path = self.cfg.navigation.default_path
        if self._navigator is not None:
            self._navigator(path)
        return path

    def sync_route(self, state_slug: str | None) -> bool:
        """Select the state named by a route parameter when nothing is selected yet."""
        if not state_slug or self.state.selected_state is not None:
            return False
        separator = self.cfg.navigation.slug_separator
        wanted = state_slug.strip().lower()
        for feature in self.repository.states:
            if wanted in {feature.name.lower(), to_url_slug(feature.name, separator)}:
                _LOGGER.info("Auto-selecting state from route: %s", feature.name)
                self.store.select_state(feature.name, feature)
                return True
        return False

    def frame(self) -> MapFrame:
        state = self.state
        return MapFrame(
            state=state,
            transform=self.camera.transform,
            states=tuple(self.states_layer.render(state)),
            districts=tuple(self.districts_layer.render(state)),
            tooltip=self.tooltip,
            back_visible=state.level != LEVEL_DEFAULT,
        )

    def settle(self) -> None:
        """Run frames until commits, animation and exit timers are done."""
        self.scheduler.run_until_idle()

    def _on_state_shape_click(self, feature: Feature) -> bool:
        if not self.store.is_interactive(feature.name):
            return False
        if self.state.level != LEVEL_DEFAULT:
            return False
        self.store.select_state(feature.name, feature)
        return True

    def _on_district_shape_click(self, feature: Feature) -> bool:
        state = self.state
        if state.level != LEVEL_STATE:
            return False
        if feature.parent is None or state.selected_state is None:
            return False
        if not names_match(feature.parent, state.selected_state):
            return False
        self.store.select_district(feature.name, feature)
        return True

    def _show_tooltip(self, content: str) -> None:
        self.tooltip = replace(self.tooltip, content=content, visible=True)
