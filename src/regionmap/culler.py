"""Decide which district shapes stay mounted, with a delayed exit on zoom-out."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .geodata import names_match
from .models import Feature, ViewState, ViewStateChange
from .scheduler import FrameScheduler, TimerHandle
from .store import ViewStateStore

_LOGGER = logging.getLogger("regionmap.culler")

ScopeListener = Callable[[str | None], None]


class RenderCuller:
    """Tracks the rendering scope: the state whose districts are mounted.

    Drilling in switches the scope in the same notification that commits the
    selection. Zooming out keeps the old scope mounted for `exit_delay_ms` so
    its shapes can fade while the camera moves; a new selection in that
    window cancels the pending removal.
    """

    def __init__(
        self,
        store: ViewStateStore,
        scheduler: FrameScheduler,
        districts: Sequence[Feature],
        *,
        exit_delay_ms: float = 800.0,
    ) -> None:
        self._scheduler = scheduler
        self._districts = tuple(districts)
        self.exit_delay_ms = exit_delay_ms
        self.rendering_scope: str | None = store.state.selected_state
        self._exit_timer: TimerHandle | None = None
        self._listeners: list[ScopeListener] = []
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def exit_pending(self) -> bool:
        return self._exit_timer is not None and self._exit_timer.pending

    def subscribe(self, listener: ScopeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def visible_districts(self) -> tuple[Feature, ...]:
        scope = self.rendering_scope
        if scope is None:
            return ()
        return tuple(
            f for f in self._districts if f.parent is not None and names_match(f.parent, scope)
        )

    def close(self) -> None:
        self._cancel_exit()
        self._unsubscribe()

    def _on_change(self, state: ViewState, change: ViewStateChange) -> None:
        selected = state.selected_state
        if selected is not None:
            self._cancel_exit()
            if selected != self.rendering_scope:
                self._set_scope(selected)
        elif self.rendering_scope is not None and not self.exit_pending:
            _LOGGER.debug(
                "Scheduling exit of '%s' districts in %.0f ms",
                self.rendering_scope,
                self.exit_delay_ms,
            )
            self._exit_timer = self._scheduler.call_later(self.exit_delay_ms, self._expire)

    def _expire(self) -> None:
        self._exit_timer = None
        self._set_scope(None)

    def _cancel_exit(self) -> None:
        if self._exit_timer is not None and self._exit_timer.pending:
            _LOGGER.debug("Cancelled pending district exit")
            self._exit_timer.cancel()
        self._exit_timer = None

    def _set_scope(self, scope: str | None) -> None:
        self.rendering_scope = scope
        for listener in list(self._listeners):
            listener(scope)
