"""Fixed-interval trigger for the document scan."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class IntervalTrigger:
    """Fire a job on a background thread once per interval.

    The trigger does not wait for the previous run to finish; the job is
    expected to guard against overlapping runs itself.
    """

    def __init__(self, job: Callable[[], Any], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be positive"
            raise ValueError(msg)
        self.job = job
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def fire(self) -> threading.Thread:
        """Start one run of the job on a daemon thread."""
        thread = threading.Thread(target=self._run_job, name="scan", daemon=True)
        thread.start()
        self._threads = [t for t in self._threads if t.is_alive()]
        self._threads.append(thread)
        return thread

    def run_forever(self) -> None:
        """Fire immediately, then every interval, until stopped."""
        logger.info("Scheduler started, interval %ss", self.interval_seconds)
        try:
            while not self._stop.is_set():
                self.fire()
                self._stop.wait(self.interval_seconds)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for runs still in flight, each for at most ``timeout`` seconds."""
        running = [t for t in self._threads if t.is_alive()]
        if running:
            logger.info("Waiting for %d running scan(s) to finish", len(running))
        for thread in running:
            thread.join(timeout)

    def _run_job(self) -> None:
        logger.debug("Starting scheduled scan")
        try:
            self.job()
        except Exception:
            logger.exception("Scheduled job failed")
        logger.debug("Scheduled scan finished")
