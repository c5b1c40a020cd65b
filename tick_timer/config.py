"""Timer configuration dataclass."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from tick_timer.types import Number, TimerConfigError

_COUNT_DOWN = "countDown"


@dataclass(frozen=True)
class TimerConfig:
    """Immutable settings of a TickTimer.

    Attributes:
        initial_value: Value at tick 0.
        update_interval: Seconds between ticks.
        is_count_down: Count down from initial_value instead of up.
        duration: Number of ticks before the timer stops by itself.
    """

    initial_value: Number = 0
    update_interval: float = 1.0
    is_count_down: bool = False
    duration: int = 0

    def __post_init__(self) -> None:
        if not _is_number(self.initial_value):
            raise TimerConfigError(
                "initial_value",
                f"initial_value must be a finite number, got {self.initial_value!r}",
            )
        if not _is_number(self.update_interval):
            raise TimerConfigError(
                "update_interval",
                f"update_interval must be a finite number, got {self.update_interval!r}",
            )
        if self.update_interval < 0:
            raise TimerConfigError(
                "update_interval",
                f"update_interval must be >= 0, got {self.update_interval!r}",
            )
        if isinstance(self.duration, bool) or not isinstance(self.duration, int):
            raise TimerConfigError(
                "duration", f"duration must be an integer, got {self.duration!r}"
            )
        if self.duration < 0:
            raise TimerConfigError(
                "duration", f"duration must be >= 0, got {self.duration!r}"
            )

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any] | None) -> TimerConfig:
        """Build a config from a declarative timer variable definition.

        Recognised keys are ``initialValue``, ``updateInterval`` (seconds),
        ``duration`` and ``timerType``. Missing or null values take the
        defaults 0, 1, 0 and count-up. Only ``timerType == "countDown"``
        selects count-down.
        """
        definition = definition or {}
        initial_value = definition.get("initialValue")
        update_interval = definition.get("updateInterval")
        duration = definition.get("duration")
        if not _is_number(update_interval):
            update_interval = 1.0
        return cls(
            initial_value=0 if initial_value is None else initial_value,
            update_interval=float(update_interval),
            is_count_down=definition.get("timerType") == _COUNT_DOWN,
            duration=0 if duration is None else duration,
        )


def _is_number(value: object) -> bool:
    """True for finite ints and floats; bools, NaN and infinities are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)
