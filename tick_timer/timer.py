"""TickTimer - a resumable, finite count-up/count-down timer."""
from __future__ import annotations

import logging
from typing import Any

from tick_timer.config import TimerConfig, _is_number
from tick_timer.scheduler import Scheduler
from tick_timer.types import ErrorHook, Handle, Number, Observer, SnapshotError

logger = logging.getLogger(__name__)

_SNAPSHOT_VERSION = 1

# Float drift allowed when checking a restored value lands on a whole tick.
_STEP_TOLERANCE = 1e-9


class Subscription:
    """Handle returned by ``TickTimer.subscribe``."""

    def __init__(self, timer: TickTimer | None, observer: Observer) -> None:
        self._timer = timer
        self._observer = observer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer._is_subscribed(self._observer)

    def unsubscribe(self) -> None:
        """Stop notifications to this observer. Safe to call repeatedly."""
        timer, self._timer = self._timer, None
        if timer is not None:
            timer._remove_observer(self._observer)


class TimerStream:
    """Stream-like view of a timer: subscribing replays the current value."""

    def __init__(self, timer: TickTimer) -> None:
        self._timer = timer

    def subscribe(self, observer: Observer) -> Subscription:
        return self._timer.subscribe(observer)


class TickTimer:
    """Counts from ``initial_value`` one step per tick for ``duration`` ticks.

    Ticks come from an injected ``Scheduler``. Observers are notified with
    the current value immediately on subscribe and on start, then once per
    tick. ``pause()`` keeps the current value; ``start()``/``resume()``
    derive the tick count back from it, so a resumed timer continues where
    it stopped.

    Once disposed, every control method is a silent no-op and ``subscribe``
    returns an inactive subscription. ``current_value`` stays readable.

    Args:
        config: Immutable timer settings.
        scheduler: Source of repeating callbacks.
        log_observer_errors: Log exceptions raised by observers on this
            module's logger. Hooks registered with ``on_error`` fire either way.
    """

    def __init__(
        self,
        config: TimerConfig,
        scheduler: Scheduler,
        *,
        log_observer_errors: bool = True,
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._log_observer_errors = log_observer_errors

        self._current_value: Number = config.initial_value
        self._tick_count: Number = 0
        self._is_running = False
        self._handle: Handle | None = None
        # Bumped on every start; ticks from an older registration are dropped.
        self._generation = 0
        self._disposed = False

        # dict keeps insertion order and rejects duplicates
        self._observers: dict[Observer, None] = {}
        self._on_error: list[ErrorHook] = []

    @classmethod
    def create(
        cls,
        scheduler: Scheduler,
        *,
        initial_value: Number = 0,
        update_interval: float = 1.0,
        is_count_down: bool = False,
        duration: int = 0,
        log_observer_errors: bool = True,
    ) -> TickTimer:
        config = TimerConfig(
            initial_value=initial_value,
            update_interval=update_interval,
            is_count_down=is_count_down,
            duration=duration,
        )
        return cls(config, scheduler, log_observer_errors=log_observer_errors)

    # --- Properties ---

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def initial_value(self) -> Number:
        return self._config.initial_value

    @property
    def update_interval(self) -> float:
        return self._config.update_interval

    @property
    def is_count_down(self) -> bool:
        return self._config.is_count_down

    @property
    def duration(self) -> int:
        return self._config.duration

    @property
    def current_value(self) -> Number:
        return self._current_value

    @property
    def tick_count(self) -> Number:
        return self._tick_count

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def stream(self) -> TimerStream:
        return TimerStream(self)

    # --- Observers ---

    def subscribe(self, observer: Observer) -> Subscription:
        """Register ``observer`` and call it with the current value right away."""
        if self._disposed:
            self._ignored("subscribe")
            return Subscription(None, observer)
        self._observers[observer] = None
        self._deliver(observer, self._current_value)
        return Subscription(self, observer)

    def on_error(self, hook: ErrorHook) -> None:
        """Register a hook fired as ``hook(observer, exc)`` when an observer raises."""
        if self._disposed:
            self._ignored("on_error")
            return
        self._on_error.append(hook)

    def _is_subscribed(self, observer: Observer) -> bool:
        return observer in self._observers

    def _remove_observer(self, observer: Observer) -> None:
        self._observers.pop(observer, None)

    # --- Control ---

    def start(self) -> None:
        if self._disposed:
            self._ignored("start")
            return
        if self._is_running:
            return

        self._tick_count = self._derive_tick_count()

        self._generation += 1
        generation = self._generation
        self._is_running = True
        self._emit(self._current_value)

        # An observer may have paused, reset or disposed us during the emit.
        if generation != self._generation or not self._is_running:
            return

        try:
            self._handle = self._scheduler.schedule_repeating(
                self._config.update_interval, lambda: self._tick(generation)
            )
        except Exception:
            self._is_running = False
            raise

    def pause(self) -> None:
        if self._disposed:
            self._ignored("pause")
            return
        if not self._is_running:
            return
        self._stop_internal()

    def resume(self) -> None:
        if self._disposed:
            self._ignored("resume")
            return
        if self._is_running:
            return
        self.start()

    def reset(self) -> None:
        """Return to ``initial_value`` and restart the full tick sequence."""
        if self._disposed:
            self._ignored("reset")
            return
        self._stop_internal()
        self._current_value = self._config.initial_value
        self.start()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._stop_internal()
        self._disposed = True
        self._observers.clear()
        self._on_error.clear()

    # --- Host introspection ---

    def get_field(self, name: str) -> Any:
        """Look up a value by name for expression evaluation. Unknown names give None."""
        if name in ("currentValue", "current_value"):
            return self._current_value
        if name in ("isRunning", "is_running"):
            return self._is_running
        if name in ("tickCount", "tick_count"):
            return self._tick_count
        return None

    # --- Serialization ---

    def snapshot(self) -> dict[str, Any]:
        return {
            "version": _SNAPSHOT_VERSION,
            "initial_value": self._config.initial_value,
            "is_count_down": self._config.is_count_down,
            "current_value": self._current_value,
            "is_running": self._is_running,
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Restore position from ``snapshot()`` output. Observers are kept."""
        if self._disposed:
            self._ignored("restore")
            return
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )
        if data.get("initial_value") != self._config.initial_value:
            raise SnapshotError(
                f"initial_value mismatch: snapshot has {data.get('initial_value')!r}, "
                f"timer has {self._config.initial_value!r}"
            )
        if data.get("is_count_down") != self._config.is_count_down:
            raise SnapshotError(
                f"direction mismatch: snapshot is_count_down={data.get('is_count_down')!r}, "
                f"timer is_count_down={self._config.is_count_down!r}"
            )
        value = data.get("current_value")
        if not _is_number(value):
            raise SnapshotError(f"current_value must be a finite number, got {value!r}")
        tick_count = self._tick_count_for(value)
        # A zero-duration timer still takes its single tick.
        limit = max(self._config.duration, 1)
        whole = abs(tick_count - round(tick_count)) < _STEP_TOLERANCE
        if not (whole and -_STEP_TOLERANCE < tick_count < limit + _STEP_TOLERANCE):
            raise SnapshotError(
                f"current_value {value!r} is not a whole number of ticks "
                f"in [0, {limit}] from initial_value {self._config.initial_value!r}"
            )

        self._stop_internal()
        self._current_value = value
        self._tick_count = tick_count
        if data.get("is_running"):
            self.start()

    # --- Internal ---

    def _derive_tick_count(self) -> Number:
        return self._tick_count_for(self._current_value)

    def _tick_count_for(self, value: Number) -> Number:
        if self._config.is_count_down:
            return self._config.initial_value - value
        return value - self._config.initial_value

    def _value_at(self, tick_count: Number) -> Number:
        if self._config.is_count_down:
            return self._config.initial_value - tick_count
        return self._config.initial_value + tick_count

    def _tick(self, generation: int) -> None:
        if generation != self._generation or not self._is_running:
            return
        self._tick_count += 1
        self._emit(self._value_at(self._tick_count))
        if generation != self._generation:
            return
        if self._tick_count >= self._config.duration:
            self._stop_internal()

    def _stop_internal(self) -> None:
        handle, self._handle = self._handle, None
        self._is_running = False
        if handle is None:
            return
        try:
            self._scheduler.cancel(handle)
        except Exception:
            logger.warning("scheduler failed to cancel %r", handle, exc_info=True)

    def _emit(self, value: Number) -> None:
        self._current_value = value
        for observer in tuple(self._observers):
            if self._disposed:
                break
            if observer not in self._observers:
                continue
            self._deliver(observer, value)

    def _deliver(self, observer: Observer, value: Number) -> None:
        try:
            observer(value)
        except Exception as exc:
            if self._log_observer_errors:
                logger.exception("timer observer %r failed on value %r", observer, value)
            self._fire_on_error(observer, exc)

    def _fire_on_error(self, observer: Observer, exc: BaseException) -> None:
        for hook in list(self._on_error):
            try:
                hook(observer, exc)
            except Exception:
                logger.debug("timer on_error hook %r failed", hook, exc_info=True)

    def _ignored(self, method: str) -> None:
        logger.debug("TickTimer.%s() called after dispose; ignored", method)
