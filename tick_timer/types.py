"""Shared type aliases and exceptions for tick-timer."""

from __future__ import annotations

from typing import Any, Callable, Union

Number = Union[int, float]

# Observer receives the timer's new current value.
Observer = Callable[[Number], None]

# Error hook receives the failing observer and the exception it raised.
ErrorHook = Callable[[Observer, BaseException], None]

# Opaque registration returned by a scheduler.
Handle = Any


class TimerError(Exception):
    """Base class for tick-timer errors."""


class TimerConfigError(TimerError, ValueError):
    """Raised when a timer is constructed with invalid settings."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class SnapshotError(TimerError):
    """Raised on restore failures (version mismatch, foreign timer config)."""
