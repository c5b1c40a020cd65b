"""tick-timer - A resumable, tick-driven count-up/count-down timer."""
from __future__ import annotations

from tick_timer.config import TimerConfig
from tick_timer.scheduler import RealtimeScheduler, Scheduler, VirtualScheduler
from tick_timer.timer import Subscription, TickTimer, TimerStream
from tick_timer.types import (
    ErrorHook,
    Handle,
    Number,
    Observer,
    SnapshotError,
    TimerConfigError,
    TimerError,
)

__all__ = [
    "ErrorHook",
    "Handle",
    "Number",
    "Observer",
    "RealtimeScheduler",
    "Scheduler",
    "SnapshotError",
    "Subscription",
    "TickTimer",
    "TimerConfig",
    "TimerConfigError",
    "TimerError",
    "TimerStream",
    "VirtualScheduler",
]
