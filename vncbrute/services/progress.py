"""
Run progress counters and a console progress bar.

The counters are the source of truth and are updated by every worker;
the monitor only reads snapshots and mirrors them into a tqdm bar.
"""

import threading
import time
from typing import Optional, TextIO

from tqdm import tqdm

from vncbrute.core.interfaces import AttemptOutcome, ProgressSnapshot


class ProgressTracker:
    """
    Thread-safe attempt counters for one run.

    Only finished, unsuccessful attempts are counted as completed; the
    winning attempt ends the run instead.
    """

    def __init__(self, total: int = 0):
        self._lock = threading.Lock()
        self._total = total
        self._completed = 0
        self._failures = 0
        self._connection_errors = 0
        self._start_time = time.monotonic()

    def set_total(self, total: int) -> None:
        with self._lock:
            self._total = max(self._total, total)

    def increment(self, outcome: AttemptOutcome) -> int:
        """
        Record one unsuccessful attempt.

        Args:
            outcome: FAILURE or CONNECTION_ERROR

        Returns:
            The new completed count
        """
        with self._lock:
            self._completed += 1
            if outcome is AttemptOutcome.CONNECTION_ERROR:
                self._connection_errors += 1
            else:
                self._failures += 1
            return self._completed

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                completed=self._completed,
                total=self._total,
                failures=self._failures,
                connection_errors=self._connection_errors,
                elapsed=time.monotonic() - self._start_time
            )


class ProgressMonitor:
    """
    Background thread that mirrors a tracker into a tqdm bar until stopped.

    The total is picked up on every poll, since the scheduler only learns
    it once the wordlist has been counted.

    Example:
        >>> monitor = ProgressMonitor(tracker, interval=0.5)
        >>> monitor.start()
        >>> ...
        >>> monitor.stop()
    """

    def __init__(
        self,
        tracker: ProgressTracker,
        interval: float = 0.5,
        stream: Optional[TextIO] = None
    ):
        self.tracker = tracker
        self.interval = interval
        self.stream = stream
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._bar: Optional[tqdm] = None

    def start(self) -> None:
        self._bar = tqdm(
            total=self.tracker.total,
            desc="Progress",
            unit="pw",
            file=self.stream,
            dynamic_ncols=True
        )
        self._thread = threading.Thread(
            target=self._run, name="progress-monitor", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop polling, push the final counts and close the bar."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._sync()
            self._bar.close()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self._sync()

    def _sync(self) -> None:
        snapshot = self.tracker.snapshot()
        if snapshot.total != self._bar.total:
            self._bar.total = snapshot.total
            self._bar.refresh()
        if snapshot.completed > self._bar.n:
            self._bar.update(snapshot.completed - self._bar.n)
