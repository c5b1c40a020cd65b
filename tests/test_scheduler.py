"""Tests for VirtualScheduler and RealtimeScheduler."""

import math

import pytest

from tick_timer import RealtimeScheduler, Scheduler, VirtualScheduler


class FakeTime:
    """Clock and sleep pair where sleeping advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_schedulers_satisfy_protocol():
    assert isinstance(VirtualScheduler(), Scheduler)
    assert isinstance(RealtimeScheduler(), Scheduler)


# --- VirtualScheduler ---


class TestVirtualScheduler:
    """Deterministic clock behavior."""

    def test_fires_every_interval(self):
        sched = VirtualScheduler()
        fired = []
        sched.schedule_repeating(1.0, lambda: fired.append(sched.now))

        assert sched.advance(3.0) == 3
        assert fired == [1.0, 2.0, 3.0]
        assert sched.now == 3.0

    def test_nothing_fires_before_due(self):
        sched = VirtualScheduler()
        fired = []
        sched.schedule_repeating(1.0, lambda: fired.append(1))

        sched.advance(0.999)
        assert fired == []
        sched.advance(0.001)
        assert fired == [1]

    def test_fractional_intervals_do_not_drift(self):
        """0.1 summed three times still fires by t=0.3."""
        sched = VirtualScheduler()
        fired = []
        sched.schedule_repeating(0.1, lambda: fired.append(1))

        sched.advance(0.3)
        assert len(fired) == 3

    def test_interleaves_by_due_time(self):
        sched = VirtualScheduler()
        order = []
        sched.schedule_repeating(2.0, lambda: order.append(("slow", sched.now)))
        sched.schedule_repeating(1.0, lambda: order.append(("fast", sched.now)))

        sched.advance(4.0)
        assert order == [
            ("fast", 1.0),
            ("slow", 2.0),
            ("fast", 2.0),
            ("fast", 3.0),
            ("slow", 4.0),
            ("fast", 4.0),
        ]

    def test_cancel_stops_firing(self):
        sched = VirtualScheduler()
        fired = []
        handle = sched.schedule_repeating(1.0, lambda: fired.append(1))

        sched.advance(2.0)
        sched.cancel(handle)
        sched.advance(5.0)
        assert len(fired) == 2
        assert sched.pending() == 0

    def test_cancel_unknown_or_twice_is_noop(self):
        sched = VirtualScheduler()
        handle = sched.schedule_repeating(1.0, lambda: None)
        sched.cancel(handle)
        sched.cancel(handle)
        sched.cancel(12345)
        sched.cancel(None)

    def test_self_cancel_inside_callback(self):
        sched = VirtualScheduler()
        fired = []
        handles = []

        def cb():
            fired.append(sched.now)
            sched.cancel(handles[0])

        handles.append(sched.schedule_repeating(1.0, cb))
        sched.advance(10.0)
        assert fired == [1.0]

    def test_cancel_other_due_at_same_instant(self):
        """A registration cancelled by an earlier callback at the same instant never fires."""
        sched = VirtualScheduler()
        fired = []
        handles = {}

        def first():
            fired.append("first")
            sched.cancel(handles["second"])

        handles["first"] = sched.schedule_repeating(1.0, first)
        handles["second"] = sched.schedule_repeating(1.0, lambda: fired.append("second"))

        sched.advance(3.0)
        assert fired == ["first", "first", "first"]

    def test_step_jumps_to_next_due(self):
        sched = VirtualScheduler()
        fired = []
        sched.schedule_repeating(5.0, lambda: fired.append(sched.now))

        assert sched.step() is True
        assert fired == [5.0]
        assert sched.now == 5.0

    def test_step_with_nothing_scheduled(self):
        sched = VirtualScheduler()
        assert sched.step() is False
        assert sched.now == 0.0

    def test_rejects_non_positive_interval(self):
        sched = VirtualScheduler()
        with pytest.raises(ValueError):
            sched.schedule_repeating(0, lambda: None)
        with pytest.raises(ValueError):
            sched.schedule_repeating(-1.0, lambda: None)

    def test_rejects_negative_advance(self):
        with pytest.raises(ValueError):
            VirtualScheduler().advance(-1.0)

    def test_rejects_nan_and_infinite_values(self):
        sched = VirtualScheduler()
        with pytest.raises(ValueError):
            sched.schedule_repeating(math.nan, lambda: None)
        with pytest.raises(ValueError):
            sched.schedule_repeating(math.inf, lambda: None)
        with pytest.raises(ValueError):
            sched.advance(math.nan)
        assert sched.pending() == 0

    def test_custom_start_time(self):
        sched = VirtualScheduler(start=100.0)
        fired = []
        sched.schedule_repeating(1.0, lambda: fired.append(sched.now))
        sched.advance(1.0)
        assert fired == [101.0]


# --- RealtimeScheduler ---


class TestRealtimeScheduler:
    """Paced loop behavior with an injected clock."""

    def test_run_forever_until_stop_requested(self):
        t = FakeTime()
        sched = RealtimeScheduler(clock=t.clock, sleep=t.sleep)
        fired = []

        def cb():
            fired.append(t.now)
            if len(fired) == 3:
                sched.request_stop()

        sched.schedule_repeating(0.5, cb)
        sched.run_forever()

        assert fired == [0.5, 1.0, 1.5]
        assert t.sleeps == [0.5, 0.5, 0.5]

    def test_run_forever_returns_when_nothing_scheduled(self):
        t = FakeTime()
        sched = RealtimeScheduler(clock=t.clock, sleep=t.sleep)
        handles = []
        fired = []

        def cb():
            fired.append(t.now)
            if len(fired) == 2:
                sched.cancel(handles[0])

        handles.append(sched.schedule_repeating(1.0, cb))
        sched.run_forever()

        assert fired == [1.0, 2.0]
        assert sched.pending() == 0

    def test_run_bounded(self):
        t = FakeTime()
        sched = RealtimeScheduler(clock=t.clock, sleep=t.sleep)
        fired = []
        sched.schedule_repeating(1.0, lambda: fired.append(t.now))

        sched.run(3.5)
        assert fired == [1.0, 2.0, 3.0]
        assert t.now == pytest.approx(3.5)

    def test_slow_callback_does_not_shift_schedule(self):
        """Re-arming is fixed-rate from the due time."""
        t = FakeTime()
        sched = RealtimeScheduler(clock=t.clock, sleep=t.sleep)
        fired = []

        def slow():
            fired.append(t.now)
            t.now += 0.3
            if len(fired) == 3:
                sched.request_stop()

        sched.schedule_repeating(1.0, slow)
        sched.run_forever()
        assert fired == pytest.approx([1.0, 2.0, 3.0])

    def test_run_forever_with_real_clock(self):
        sched = RealtimeScheduler()
        count = [0]

        def cb():
            count[0] += 1
            if count[0] >= 3:
                sched.request_stop()

        sched.schedule_repeating(0.001, cb)
        sched.run_forever()
        assert count[0] == 3
