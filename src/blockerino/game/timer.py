from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def time_remaining(deadline: float, now: float) -> float:
    """Seconds left before ``deadline``; never negative.

    The countdown is derived from an absolute deadline on every tick, so time
    spent suspended or in the background counts against the player.
    """
    return max(0.0, deadline - now)


class StoryTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], object]) -> None:
        self.interval = float(interval)
        self.callback = callback
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="story-timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Story timer callback failed; stopping timer")
                self._stopped.set()

    def cancel(self) -> None:
        # No join: the callback may be waiting on a lock held by the canceller.
        self._stopped.set()
