"""Repeating-callback schedulers that drive a TickTimer.

A TickTimer only needs two primitives from its host: register a callback to
repeat every N seconds, and cancel that registration. ``Scheduler`` is the
protocol for that capability. Two implementations ship here:

- ``VirtualScheduler`` keeps its own clock that only moves when told to,
  which makes tick sequences fully deterministic in tests and simulations.
- ``RealtimeScheduler`` paces callbacks against the wall clock on the
  calling thread, in the same fixed-timestep style as a game loop.

Both fire one callback at a time and never fire a registration again once it
has been cancelled, even when the cancel happens inside another callback.
"""
from __future__ import annotations

import heapq
import math
import time
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from tick_timer.types import Handle

# Absorbs float drift when summing intervals (0.1 + 0.1 + 0.1 > 0.3).
_EPSILON = 1e-9


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for the host capability a TickTimer depends on."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> Handle:
        """Call ``callback`` every ``interval`` seconds until cancelled."""
        ...

    def cancel(self, handle: Handle) -> None:
        """Cancel a registration. Unknown or already-cancelled handles are ignored."""
        ...


@dataclass
class _Repeat:
    handle: int
    interval: float
    callback: Callable[[], None]
    due: float


class _QueueScheduler:
    """Due-time priority queue shared by the bundled schedulers."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, int]] = []  # (due, seq, handle)
        self._entries: dict[int, _Repeat] = {}
        self._next_handle = 1
        self._seq = 0

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> int:
        if not (interval > 0 and math.isfinite(interval)):
            raise ValueError(f"interval must be positive and finite, got {interval!r}")
        handle = self._next_handle
        self._next_handle += 1
        entry = _Repeat(
            handle=handle,
            interval=interval,
            callback=callback,
            due=self._clock() + interval,
        )
        self._entries[handle] = entry
        self._push(entry)
        return handle

    def cancel(self, handle: Handle) -> None:
        self._entries.pop(handle, None)

    def pending(self) -> int:
        """Number of live registrations."""
        return len(self._entries)

    def _push(self, entry: _Repeat) -> None:
        self._seq += 1
        heapq.heappush(self._queue, (entry.due, self._seq, entry.handle))

    def _next_due(self) -> float | None:
        """Due time of the next live registration, dropping cancelled ones."""
        while self._queue:
            due, _, handle = self._queue[0]
            if handle in self._entries:
                return due
            heapq.heappop(self._queue)
        return None

    def _fire_next(self) -> None:
        due, _, handle = heapq.heappop(self._queue)
        entry = self._entries[handle]
        # Re-arm first: a callback that cancels itself leaves a stale queue
        # item behind, which _next_due discards.
        entry.due = due + entry.interval
        self._push(entry)
        entry.callback()


class VirtualScheduler(_QueueScheduler):
    """Scheduler on a manually advanced clock.

    Time starts at ``start`` and moves only through ``advance()`` or
    ``step()``. Callbacks due at the same instant fire in the order they
    were armed.
    """

    def __init__(self, start: float = 0.0) -> None:
        super().__init__(lambda: self._now_value)
        self._now_value = start

    @property
    def now(self) -> float:
        return self._now_value

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that falls due.

        Returns the number of callbacks fired.
        """
        if not (seconds >= 0 and math.isfinite(seconds)):
            raise ValueError(f"cannot advance by {seconds!r}")
        target = self._now_value + seconds
        fired = 0
        while True:
            due = self._next_due()
            if due is None or due > target + _EPSILON:
                break
            self._now_value = max(self._now_value, due)
            self._fire_next()
            fired += 1
        self._now_value = target
        return fired

    def step(self) -> bool:
        """Jump to the next due callback and fire it. False if none is scheduled."""
        due = self._next_due()
        if due is None:
            return False
        self._now_value = max(self._now_value, due)
        self._fire_next()
        return True


class RealtimeScheduler(_QueueScheduler):
    """Scheduler that sleeps until each callback is due.

    Runs on the calling thread: ``run_forever()`` blocks until
    ``request_stop()`` is called (typically from a callback) or nothing is
    left to schedule. Callbacks are re-armed at fixed rate from their due
    time, so a slow callback does not push later ticks back.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(clock)
        self._sleep = sleep
        self._stop_requested = False

    def request_stop(self) -> None:
        self._stop_requested = True

    def run_forever(self) -> None:
        self._stop_requested = False
        self._run(None)

    def run(self, seconds: float) -> None:
        """Run for at most ``seconds`` of wall time."""
        self._stop_requested = False
        self._run(self._clock() + seconds)

    def _run(self, deadline: float | None) -> None:
        while not self._stop_requested:
            due = self._next_due()
            if due is None:
                break
            if deadline is not None and due > deadline:
                remaining = deadline - self._clock()
                if remaining > 0:
                    self._sleep(remaining)
                break
            wait = due - self._clock()
            if wait > 0:
                self._sleep(wait)
            self._fire_next()
