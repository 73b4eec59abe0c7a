"""
Tests for the progress tracker and its rich display.
"""

import io
import threading

from rich.console import Console

from progress_display import SearchProgress
from recovery.progress_tracker import ProgressTracker


def plain_console():
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class TestProgressTracker:

    def test_counters_per_worker(self):
        tracker = ProgressTracker()
        tracker.reset(3, 300)
        tracker.advance(0, 10)
        tracker.advance(2, 5)
        tracker.advance(2)
        assert tracker.snapshot() == (10, 0, 6)
        assert tracker.evaluated() == 16

    def test_reset_clears_flags(self):
        tracker = ProgressTracker(2, 10)
        tracker.mark_running()
        tracker.mark_completed()
        tracker.reset(4, 100)
        assert not tracker.is_running
        assert not tracker.is_completed
        assert tracker.snapshot() == (0, 0, 0, 0)
        assert not tracker.wait_until_started(timeout=0)

    def test_start_signal_wakes_waiter(self):
        tracker = ProgressTracker(1, 1)
        woke = threading.Event()

        def waiter():
            if tracker.wait_until_started(timeout=10):
                woke.set()

        t = threading.Thread(target=waiter)
        t.start()
        tracker.mark_running()
        t.join(timeout=10)
        assert woke.is_set()

    def test_completion_releases_start_waiters(self):
        tracker = ProgressTracker()
        tracker.mark_completed()
        assert tracker.wait_until_started(timeout=0)
        assert not tracker.is_running

    def test_cancel(self):
        tracker = ProgressTracker(1, 1)
        tracker.cancel()
        assert tracker.is_completed
        assert tracker.wait_until_completed(timeout=0)


class TestSearchProgress:

    def test_plain_output_when_not_a_terminal(self):
        tracker = ProgressTracker()
        tracker.reset(2, 100)
        console = plain_console()
        with SearchProgress(tracker, total_work=100, title="mt19937", console=console, simple_interval=0.0):
            tracker.mark_running()
            tracker.advance(0, 50)
            tracker.advance(1, 50)
            threading.Event().wait(0.3)
            tracker.mark_completed()
        output = console.file.getvalue()
        assert "mt19937" in output
        assert "Total seeds: 100" in output
        assert "Progress:" in output

    def test_exits_when_search_never_starts(self):
        tracker = ProgressTracker()
        tracker.reset(1, 10)
        progress = SearchProgress(tracker, total_work=10, console=plain_console(), simple_interval=0.05)
        with progress:
            pass
        assert not progress._thread.is_alive()

    def test_renders_worker_table(self):
        tracker = ProgressTracker()
        tracker.reset(3, 3000)
        for worker_id in range(3):
            tracker.advance(worker_id, 1000)
        progress = SearchProgress(tracker, total_work=3000, console=plain_console())
        status, done, pct, _, _ = progress._metrics()
        assert status == (1000, 1000, 1000)
        assert done == 3000
        assert pct == 100.0
        table = progress._make_table(status)
        assert table.row_count == 3

    def test_zero_work_is_complete(self):
        progress = SearchProgress(ProgressTracker(), total_work=0, console=plain_console())
        _, done, pct, _, remaining = progress._metrics()
        assert (done, pct) == (0, 100.0)
