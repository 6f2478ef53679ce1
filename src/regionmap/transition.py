"""Translate view-state changes into camera animations."""

from __future__ import annotations

import logging
from typing import Callable

from .camera import Camera
from .geodata import GeoRepository
from .models import (
    LEVEL_DEFAULT,
    IDENTITY,
    CameraTransform,
    Feature,
    ViewState,
    ViewStateChange,
)
from .projection import MapProjection
from .store import ViewStateStore

_LOGGER = logging.getLogger("regionmap.transition")

INITIAL_SEQUENCE = 0


class TransitionController:
    """Frames the store's zoom target with the camera.

    Zoom-in requests (non-null target) are keyed by request sequence; a request
    whose sequence was already processed, or which names the target already
    being framed, is skipped, except for the initial sequence. A newer request
    for a different target retargets the running animation. Zoom-out to the full extent happens once the default level is
    committed and is never skipped.
    """

    def __init__(
        self,
        store: ViewStateStore,
        camera: Camera,
        projection: MapProjection,
        *,
        repository: GeoRepository | None = None,
        state_fill: float = 0.85,
        district_fill: float = 0.5,
        scale_min: float = 0.5,
        scale_max: float = 20.0,
    ) -> None:
        self.camera = camera
        self.projection = projection
        self.repository = repository
        self.state_fill = state_fill
        self.district_fill = district_fill
        self.scale_min = scale_min
        self.scale_max = scale_max
        self.last_sequence: int | None = None
        self._last_target: tuple[str, str] | None = None
        self.computations = 0
        self.last_transform: CameraTransform | None = None
        self._unsubscribe: Callable[[], None] = store.subscribe(self._on_change)
        self._on_change(store.state, store.initial_change)

    def close(self) -> None:
        self._unsubscribe()

    def _on_change(self, state: ViewState, change: ViewStateChange) -> None:
        target = state.zoom_target
        if target is not None:
            key = (target.kind, target.name)
            if change.sequence != INITIAL_SEQUENCE and (
                change.sequence == self.last_sequence or key == self._last_target
            ):
                _LOGGER.debug("Skipping already processed zoom request %d", change.sequence)
                return
            self.last_sequence = change.sequence
            self._last_target = key
            transform = self.compute_transform(target)
            if transform is None:
                return
            self.camera.animate_to(transform)
        else:
            self._last_target = None
            if state.level != LEVEL_DEFAULT:
                return
            self.computations += 1
            self.last_transform = IDENTITY
            self.camera.animate_to(IDENTITY)

    def compute_transform(self, target: Feature) -> CameraTransform | None:
        """Transform that frames `target`, or `None` if its bounds are unknown."""
        self.computations += 1
        bounds = self.projection.screen_bounds(target.geometry)
        if bounds is None and self.repository is not None:
            found = self.repository.find(target)
            if found is not None:
                bounds = self.projection.screen_bounds(found.geometry)
        if bounds is None:
            _LOGGER.warning(
                "No usable geometry for %s '%s'; camera left in place", target.kind, target.name
            )
            return None

        width = float(self.projection.width)
        height = float(self.projection.height)
        x0, y0, x1, y1 = bounds
        fill = self.district_fill if target.is_district else self.state_fill
        scale = fill / max((x1 - x0) / width, (y1 - y0) / height)
        scale = max(min(scale, self.scale_max), self.scale_min)
        cx = (x0 + x1) / 2.0
        cy = (y0 + y1) / 2.0
        transform = CameraTransform(x=width / 2.0 - scale * cx, y=height / 2.0 - scale * cy, k=scale)
        self.last_transform = transform
        return transform
