from datetime import datetime, timedelta, timezone
from threading import Event

from quiz_room.core.clock import SessionTicker, SystemClock, ensure_utc


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None


def test_ensure_utc_treats_naive_as_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    offset = datetime(2026, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(offset) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_ticker_calls_back_until_stopped():
    ticks: list[int] = []
    reached = Event()

    def on_tick(seconds: int) -> None:
        ticks.append(seconds)
        if len(ticks) >= 3:
            reached.set()

    ticker = SessionTicker(on_tick, interval_seconds=0.01)
    ticker.start()
    assert reached.wait(timeout=5)
    ticker.stop()
    assert set(ticks) == {1}


def test_ticker_survives_failing_callback():
    calls: list[int] = []
    reached = Event()

    def on_tick(seconds: int) -> None:
        calls.append(seconds)
        if len(calls) >= 2:
            reached.set()
        raise RuntimeError("store offline")

    ticker = SessionTicker(on_tick, interval_seconds=0.01)
    ticker.start()
    assert reached.wait(timeout=5)
    ticker.stop()
