"""
Scheduling collaborators for the scenario state machine.

The state machine only talks to the two protocols below; wall-clock
scheduling and the render loop live behind them.
"""
from __future__ import annotations
import logging
import threading
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
ExpireCallback = Callable[[], None]
FrameCallback = Callable[[], None]


class Countdown(Protocol):
    def start(self, duration_s: int, on_tick: TickCallback, on_expire: ExpireCallback) -> None: ...
    def stop(self) -> None: ...


class FrameScheduler(Protocol):
    def register(self, callback: FrameCallback) -> None: ...
    def unregister(self) -> None: ...


class ThreadedCountdown:
    """1-second cadence countdown on daemon threading.Timer objects. stop() is idempotent."""

    def __init__(self, interval_s: float = 1.0):
        self.interval_s = interval_s
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._remaining = 0
        self._on_tick: Optional[TickCallback] = None
        self._on_expire: Optional[ExpireCallback] = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, duration_s: int, on_tick: TickCallback, on_expire: ExpireCallback) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._remaining = int(duration_s)
            self._on_tick, self._on_expire = on_tick, on_expire
            self._schedule_locked(self._generation)

    def stop(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_locked(self, generation: int) -> None:
        t = threading.Timer(self.interval_s, self._fire, args=(generation,))
        t.daemon = True
        self._timer = t
        t.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._remaining -= 1
            remaining = self._remaining
            on_tick, on_expire = self._on_tick, self._on_expire
            if remaining > 0:
                self._schedule_locked(generation)
            else:
                self._timer = None
        # callbacks run outside the lock; they may call stop()
        on_tick(remaining)
        if remaining <= 0:
            log.debug("[countdown] expired")
            on_expire()


class ExternalFrameSource:
    """Frame collaborator ticked by an outside render loop (one tick() per frame)."""

    def __init__(self):
        self._callback: Optional[FrameCallback] = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def register(self, callback: FrameCallback) -> None:
        self._callback = callback

    def unregister(self) -> None:
        self._callback = None

    def tick(self, frames: int = 1) -> int:
        """Deliver up to `frames` ticks; stops early once the callback unregisters. Returns ticks delivered."""
        delivered = 0
        for _ in range(frames):
            cb = self._callback
            if cb is None:
                break
            cb()
            delivered += 1
        return delivered
