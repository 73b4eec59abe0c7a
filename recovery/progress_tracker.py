"""
Progress Tracker
================

Shared run state between bruteforce workers and whoever reports on them:

- one candidate counter per worker (each written only by its own worker)
- is_running / is_completed flags
- a one-shot start signal the reporter can block on

Readers take snapshots; no lock is held on the counters since every slot has
exactly one writer.
"""

import threading
from typing import List, Optional, Tuple


class ProgressTracker:
    """Per-worker progress counters plus run-control flags."""

    def __init__(self, workers: int = 0, total_work: int = 0):
        self._counters: List[int] = [0] * workers
        self.total_work = total_work
        self._running = threading.Event()
        self._completed = threading.Event()
        # Set once workers launch, or when the run ends without launching any
        self._started = threading.Event()

    def reset(self, workers: int, total_work: int) -> None:
        """Prepare for a new run with `workers` counters."""
        self._counters = [0] * workers
        self.total_work = total_work
        self._running.clear()
        self._completed.clear()
        self._started.clear()

    # ---- worker side -----------------------------------------------------

    def advance(self, worker_id: int, count: int = 1) -> None:
        self._counters[worker_id] += count

    def mark_running(self) -> None:
        self._running.set()
        self._started.set()

    def mark_completed(self) -> None:
        self._completed.set()
        self._started.set()

    # ---- reader side -----------------------------------------------------

    def snapshot(self) -> Tuple[int, ...]:
        """Read-only copy of the per-worker counters."""
        return tuple(self._counters)

    def evaluated(self) -> int:
        return sum(self.snapshot())

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def is_completed(self) -> bool:
        return self._completed.is_set()

    def wait_until_started(self, timeout: Optional[float] = None) -> bool:
        """Block until workers are launched or the run has already ended."""
        return self._started.wait(timeout)

    def wait_until_completed(self, timeout: Optional[float] = None) -> bool:
        return self._completed.wait(timeout)

    def cancel(self) -> None:
        """Ask workers to stop after their current batch."""
        self.mark_completed()
