"""Cooperative frame scheduler driven by a virtual clock.

Everything runs on one thread. Work is ordered by scheduling rather than by
blocking: callbacks requested for the next frame run on the following tick
(in request order), timers fire once the clock passes their due time, and
frame hooks (camera animation) run last on every tick.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque

_LOGGER = logging.getLogger("regionmap.scheduler")

FrameHook = Callable[[float], bool]


@dataclass(order=True, slots=True)
class TimerHandle:
    due_ms: float
    order: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: bool = field(default=False, compare=False)

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class FrameScheduler:
    """Next-frame command queue plus cancellable timers."""

    def __init__(self, *, frame_interval_ms: float = 16.0) -> None:
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be > 0")
        self.frame_interval_ms = frame_interval_ms
        self._now = 0.0
        self._frames: Deque[Callable[[], None]] = deque()
        self._timers: list[TimerHandle] = []
        self._hooks: list[FrameHook] = []
        self._order = itertools.count()
        self.ticks = 0

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    @property
    def pending_timers(self) -> int:
        return sum(1 for timer in self._timers if timer.pending)

    def request_frame(self, callback: Callable[[], None]) -> None:
        self._frames.append(callback)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        handle = TimerHandle(self._now + delay_ms, next(self._order), callback)
        heapq.heappush(self._timers, handle)
        return handle

    def add_frame_hook(self, hook: FrameHook) -> Callable[[], None]:
        """Run `hook(now)` on every tick; it returns True while it still has work."""
        self._hooks.append(hook)

        def _remove() -> None:
            if hook in self._hooks:
                self._hooks.remove(hook)

        return _remove

    def tick(self) -> bool:
        """Advance one frame. Returns True if anything ran or is still busy."""
        self._now += self.frame_interval_ms
        self.ticks += 1
        worked = self._fire_due_timers()

        # Callbacks requested during this tick belong to the next one.
        batch = list(self._frames)
        self._frames.clear()
        for callback in batch:
            callback()
        worked = worked or bool(batch)

        busy = False
        for hook in list(self._hooks):
            busy = hook(self._now) or busy
        return worked or busy

    def advance(self, ms: float) -> None:
        """Tick until at least `ms` of virtual time has passed."""
        target = self._now + ms
        while self._now < target:
            self.tick()

    def run_until_idle(self, *, max_ms: float = 60_000.0) -> None:
        deadline = self._now + max_ms
        while self._now < deadline:
            busy = self.tick()
            if not busy and not self._frames and self.pending_timers == 0:
                return
        _LOGGER.warning("Scheduler still busy after %.0f ms of virtual time", max_ms)

    def _fire_due_timers(self) -> bool:
        fired = False
        while self._timers and self._timers[0].due_ms <= self._now:
            handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            handle.fired = True
            fired = True
            handle.callback()
        return fired
