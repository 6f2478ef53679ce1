"""Camera owning the map transform and its eased animation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .models import IDENTITY, CameraTransform
from .scheduler import FrameScheduler

_LOGGER = logging.getLogger("regionmap.camera")

TransformObserver = Callable[[CameraTransform], None]


def ease_cubic_in_out(t: float) -> float:
    t = min(max(t, 0.0), 1.0) * 2.0
    if t <= 1.0:
        return t * t * t / 2.0
    t -= 2.0
    return (t * t * t + 2.0) / 2.0


class RenderSurface:
    """Attribute sink standing in for the drawing surface's transform group."""

    def __init__(self) -> None:
        self.attributes: dict[str, str] = {}
        self.writes = 0

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value
        self.writes += 1

    @property
    def transform(self) -> str | None:
        return self.attributes.get("transform")


@dataclass(slots=True)
class _Animation:
    start: CameraTransform
    end: CameraTransform
    started_ms: float
    duration_ms: float


class Camera:
    """Animates towards target transforms on scheduler frames.

    Each animation tick writes the interpolated transform straight to the
    surface's `transform` attribute and then informs observers. A new target
    retargets a running animation from wherever it currently is.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        *,
        surface: RenderSurface | None = None,
        duration_ms: float = 750.0,
        easing: Callable[[float], float] = ease_cubic_in_out,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError("duration_ms must be > 0")
        self._scheduler = scheduler
        self.surface = surface if surface is not None else RenderSurface()
        self.duration_ms = duration_ms
        self._easing = easing
        self._transform = IDENTITY
        self._animation: _Animation | None = None
        self._observers: list[TransformObserver] = []
        self.animations_started = 0
        self._apply(IDENTITY)
        self._remove_hook = scheduler.add_frame_hook(self._on_frame)

    @property
    def transform(self) -> CameraTransform:
        return self._transform

    @property
    def target(self) -> CameraTransform:
        return self._animation.end if self._animation is not None else self._transform

    @property
    def animating(self) -> bool:
        return self._animation is not None

    def observe(self, observer: TransformObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def _unobserve() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unobserve

    def animate_to(self, target: CameraTransform, *, duration_ms: float | None = None) -> bool:
        """Start (or retarget) an animation. Returns False when already headed there."""
        if target == self.target:
            return False
        self._animation = _Animation(
            start=self._transform,
            end=target,
            started_ms=self._scheduler.now,
            duration_ms=duration_ms if duration_ms is not None else self.duration_ms,
        )
        self.animations_started += 1
        _LOGGER.debug("Camera animating to %s", target.to_svg())
        return True

    def jump_to(self, target: CameraTransform) -> None:
        self._animation = None
        self._apply(target)

    def close(self) -> None:
        self._remove_hook()

    def _on_frame(self, now: float) -> bool:
        animation = self._animation
        if animation is None:
            return False
        t = (now - animation.started_ms) / animation.duration_ms
        if t >= 1.0:
            self._animation = None
            self._apply(animation.end)
            return False
        self._apply(animation.start.interpolate(animation.end, self._easing(t)))
        return True

    def _apply(self, transform: CameraTransform) -> None:
        self._transform = transform
        self.surface.set_attribute("transform", transform.to_svg())
        for observer in list(self._observers):
            observer(transform)
