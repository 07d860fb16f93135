"""Running a task every day at fixed times of day."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta
from typing import Callable, Iterable

log = logging.getLogger(__name__)

DEFAULT_TIMES = (time(0, 0, 0), time(9, 25, 0))

_JOIN_TIMEOUT = 5.0


class DailyScheduler:
    """Run ``task`` in a background thread at each of ``at_times`` every day."""

    def __init__(
        self,
        task: Callable[[], object],
        at_times: Iterable[time] = DEFAULT_TIMES,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        times = sorted(set(at_times))
        if not times:
            raise ValueError("at least one time of day is required")
        self._task = task
        self._times = times
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def next_run(self, now: datetime | None = None) -> datetime:
        """Return the first scheduled moment strictly after ``now``."""
        moment = now if now is not None else self._clock()
        candidates = (
            datetime.combine(day, at, tzinfo=moment.tzinfo)
            for day in (moment.date(), moment.date() + timedelta(days=1))
            for at in self._times
        )
        return next(candidate for candidate in candidates if candidate > moment)

    def start(self) -> None:
        """Start running the task in the background."""
        if self.running:
            raise RuntimeError("scheduler is already running")
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="daily-scheduler", daemon=True)
        self._thread.start()

    def shutdown(self) -> None:
        """Stop the background thread and wait for it to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(_JOIN_TIMEOUT)
            self._thread = None

    def _loop(self) -> None:
        stop = self._stop
        after = self._clock()
        while True:
            target = self.next_run(after)
            delay = max(0.0, (target - self._clock()).total_seconds())
            if stop.wait(delay):
                return
            try:
                self._task()
            except Exception:
                log.exception("Scheduled task failed")
            after = max(self._clock(), target)