"""
Tests for progress counters and the tqdm progress monitor.

Run with: pytest tests/test_progress.py -v
"""

import io
import threading

from vncbrute.core.interfaces import AttemptOutcome
from vncbrute.services.progress import ProgressTracker, ProgressMonitor


class TestProgressTracker:

    def test_concurrent_increments_are_not_lost(self):
        tracker = ProgressTracker(total=8000)

        def work(outcome):
            for _ in range(1000):
                tracker.increment(outcome)

        threads = [
            threading.Thread(target=work, args=(AttemptOutcome.FAILURE if i % 2 else AttemptOutcome.CONNECTION_ERROR,))
            for i in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = tracker.snapshot()
        assert snapshot.completed == 8000
        assert snapshot.failures == 4000
        assert snapshot.connection_errors == 4000

    def test_total_never_decreases(self):
        tracker = ProgressTracker(total=10)
        tracker.set_total(5)
        assert tracker.total == 10
        tracker.set_total(20)
        assert tracker.total == 20


class TestProgressMonitor:

    def test_bar_reflects_final_counts(self):
        tracker = ProgressTracker(total=2)
        tracker.increment(AttemptOutcome.FAILURE)
        out = io.StringIO()

        monitor = ProgressMonitor(tracker, interval=0.01, stream=out)
        monitor.start()
        tracker.increment(AttemptOutcome.FAILURE)
        monitor.stop()

        assert monitor._bar.n == 2
        assert "2/2" in out.getvalue()

    def test_total_learned_after_start(self):
        tracker = ProgressTracker()
        out = io.StringIO()

        monitor = ProgressMonitor(tracker, interval=0.01, stream=out)
        monitor.start()
        tracker.set_total(4)
        for _ in range(3):
            tracker.increment(AttemptOutcome.CONNECTION_ERROR)
        monitor.stop()

        assert monitor._bar.total == 4
        assert "3/4" in out.getvalue()
