"""Single source of truth for the map drill-down level and selection."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Callable, Sequence

from .models import (
    CHANGE_COMMIT,
    CHANGE_RESET,
    CHANGE_RESTORE,
    CHANGE_RETARGET,
    LEVEL_DEFAULT,
    LEVEL_DISTRICT,
    LEVEL_STATE,
    Feature,
    ViewState,
    ViewStateChange,
)
from .scheduler import FrameScheduler
from .session import MemorySessionStorage, SessionStorage

_LOGGER = logging.getLogger("regionmap.store")

DEFAULT_STORAGE_KEY = "sangai_map_state"

Listener = Callable[[ViewState, ViewStateChange], None]


class SelectionPreconditionError(RuntimeError):
    """Raised when a store operation is called from a level that cannot accept it."""


class ViewStateStore:
    """Owns the `ViewState` and funnels every mutation through named operations.

    Selections are applied in two phases. The zoom target is set and published
    immediately so the transition controller can start animating; the level and
    selection fields are committed on the next scheduler frame. Each request
    gets its own sequence; both of its phases carry it, and the commit writes
    it into `transition_sequence`.

    Every change is written to session storage. On construction a stored
    snapshot is restored with its sequence bumped by one so that the transition
    controller replays the restored target.
    """

    def __init__(
        self,
        *,
        scheduler: FrameScheduler,
        storage: SessionStorage | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        default_label: str = "Northeast India",
        non_interactive: Sequence[str] = ("West Bengal",),
    ) -> None:
        self._scheduler = scheduler
        self._storage = storage if storage is not None else MemorySessionStorage()
        self._storage_key = storage_key
        self.default_label = default_label
        self._non_interactive = frozenset(non_interactive)
        self._listeners: list[Listener] = []
        # Bumped by reset() so commits queued before it are dropped.
        self._epoch = 0
        # Highest sequence handed to a request; each request gets its own.
        self._issued_sequence = 0

        restored = self._load_snapshot()
        self.restored = restored is not None
        if restored is not None:
            self._state = replace(
                restored, transition_sequence=restored.transition_sequence + 1
            )
            self._issued_sequence = self._state.transition_sequence
            _LOGGER.info(
                "Restored map view '%s' (%s) from session", self._state.label, self._state.level
            )
        else:
            self._state = ViewState.initial(default_label)
        self._persist()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def initial_change(self) -> ViewStateChange:
        kind = CHANGE_RESTORE if self.restored else CHANGE_RESET
        return ViewStateChange(kind, self._state.transition_sequence)

    def is_interactive(self, state_id: str) -> bool:
        return state_id not in self._non_interactive

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def select_state(self, state_id: str, geometry: Feature | None) -> None:
        if not self.is_interactive(state_id):
            _LOGGER.debug("Ignoring selection of non-interactive region '%s'", state_id)
            return
        sequence = self._retarget(geometry)
        self._defer_commit(
            sequence,
            level=LEVEL_STATE,
            selected_state=state_id,
            selected_district=None,
            label=state_id,
            retained_parent=geometry,
        )

    def select_district(self, district_id: str, geometry: Feature | None) -> None:
        if self._state.level != LEVEL_STATE:
            raise SelectionPreconditionError(
                f"select_district('{district_id}') requires level 'state', "
                f"current level is '{self._state.level}'"
            )
        sequence = self._retarget(geometry)
        self._defer_commit(
            sequence,
            level=LEVEL_DISTRICT,
            selected_district=district_id,
            label=district_id,
        )

    def go_back(self) -> None:
        level = self._state.level
        if level == LEVEL_DISTRICT:
            sequence = self._retarget(self._state.retained_parent)
            self._defer_commit(
                sequence,
                level=LEVEL_STATE,
                selected_district=None,
                label=lambda state: state.selected_state or self.default_label,
            )
        elif level == LEVEL_STATE:
            sequence = self._retarget(None)
            self._defer_commit(
                sequence,
                level=LEVEL_DEFAULT,
                selected_state=None,
                selected_district=None,
                label=self.default_label,
                retained_parent=None,
            )
        else:
            _LOGGER.debug("go_back at default level is a no-op")

    def reset(self) -> None:
        """Return to the default view at once and forget the stored session."""
        self._epoch += 1
        sequence = self._next_sequence()
        self._state = ViewState.initial(self.default_label, transition_sequence=sequence)
        try:
            self._storage.remove_item(self._storage_key)
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Failed to clear stored map state: %s", exc)
        self._notify(ViewStateChange(CHANGE_RESET, sequence))

    def _next_sequence(self) -> int:
        self._issued_sequence = max(self._issued_sequence, self._state.transition_sequence) + 1
        return self._issued_sequence

    def _retarget(self, geometry: Feature | None) -> int:
        sequence = self._next_sequence()
        self._state = replace(self._state, zoom_target=geometry)
        self._persist()
        self._notify(ViewStateChange(CHANGE_RETARGET, sequence))
        return sequence

    def _defer_commit(self, sequence: int, **fields: Any) -> None:
        epoch = self._epoch

        def _commit() -> None:
            if epoch != self._epoch:
                _LOGGER.debug("Dropping commit %d queued before reset", sequence)
                return
            values = {
                key: value(self._state) if callable(value) else value
                for key, value in fields.items()
            }
            try:
                committed = replace(
                    self._state,
                    transition_sequence=max(self._state.transition_sequence, sequence),
                    **values,
                )
            except ValueError as exc:
                # An earlier commit in the same frame moved the level under this one.
                _LOGGER.warning("Dropping stale commit %d: %s", sequence, exc)
                return
            self._state = committed
            self._persist()
            self._notify(ViewStateChange(CHANGE_COMMIT, self._state.transition_sequence))

        self._scheduler.request_frame(_commit)

    def _notify(self, change: ViewStateChange) -> None:
        for listener in list(self._listeners):
            listener(self._state, change)

    def _persist(self) -> None:
        try:
            payload = json.dumps(self._state.to_dict())
            self._storage.set_item(self._storage_key, payload)
        except (OSError, TypeError, ValueError) as exc:
            _LOGGER.warning("Failed to save map state: %s", exc)

    def _load_snapshot(self) -> ViewState | None:
        try:
            raw = self._storage.get_item(self._storage_key)
            if raw is None:
                return None
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("stored map state is not a JSON object")
            return ViewState.from_dict(data)
        except (OSError, TypeError, ValueError, KeyError) as exc:
            _LOGGER.warning("Failed to load map state: %s", exc)
            return None
