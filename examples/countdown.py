"""Countdown -- a real-time TickTimer driven by RealtimeScheduler.

Demonstrates:
- Building a timer from a declarative definition
- Subscribing an observer (it sees the current value immediately)
- Pausing halfway and resuming without losing the count
- Stopping the scheduler loop once the timer finishes

Run: python examples/countdown.py --from 5 --interval 0.5
"""

import argparse
import logging

from tick_timer import RealtimeScheduler, TickTimer, TimerConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a countdown timer")
    parser.add_argument("--from", dest="start", type=int, default=5)
    parser.add_argument("--interval", type=float, default=1.0)
    parser.add_argument("--up", action="store_true", help="count up instead")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    config = TimerConfig.from_definition(
        {
            "initialValue": args.start,
            "updateInterval": args.interval,
            "duration": args.start,
            "timerType": "countUp" if args.up else "countDown",
        }
    )
    scheduler = RealtimeScheduler()
    timer = TickTimer(config, scheduler)

    def show(value: float) -> None:
        print(f"  {value}")

    paused_at = []

    def pause_halfway(value: float) -> None:
        half = config.duration // 2
        if not paused_at and half > 0 and timer.tick_count == half:
            paused_at.append(value)
            print("  (paused)")
            timer.pause()

    timer.subscribe(show)
    timer.subscribe(pause_halfway)

    print("=== Countdown ===\n")
    timer.start()
    scheduler.run_forever()

    if paused_at:
        print("  (resumed)")
        timer.resume()
        scheduler.run_forever()

    print(f"\nDone. Stopped at {timer.current_value} after {timer.tick_count} ticks.")
    timer.dispose()


if __name__ == "__main__":
    main()
