"""Wall-clock source and the background ticker that drives session countdowns."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging
from threading import Event, Thread
from typing import Protocol

from quiz_room.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Clock returning timezone-aware UTC timestamps."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SessionTicker:
    """Calls ``on_tick`` once per interval on a daemon thread until stopped."""

    def __init__(
        self,
        on_tick: Callable[[int], object],
        interval_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._stopped = Event()
        self._thread: Thread | None = None

    def start(self) -> Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stopped.clear()
        self._thread = Thread(target=self._run, name="QuizSessionTicker", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval * 2)

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                self._on_tick(1)
            except Exception:
                logger.exception("Session tick failed")


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with clock readings."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
