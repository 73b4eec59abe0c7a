#!/usr/bin/env python3
"""
Progress Display for Seed Bruteforce Runs
=========================================

Polls a ProgressTracker from its own thread and renders:
- overall progress bar, seeds/sec and ETA
- per-worker candidate counts

Uses 'rich' Live rendering on a terminal and plain periodic lines otherwise
(e.g. when output is captured by another process).

Usage:
    from progress_display import SearchProgress

    with SearchProgress(untwister.tracker, total_work=upper - lower, title="mt19937"):
        results = untwister.search(lower, upper)
"""

import threading
import time
from datetime import timedelta
from typing import Optional, Tuple

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from recovery.progress_tracker import ProgressTracker

SPINNER = "|/-\\"


class SearchProgress:
    """
    Live progress view of a running bruteforce search.

    The reporting thread blocks until the workers are launched, then refreshes
    every `interval` seconds until the tracker reports completion.
    """

    def __init__(
        self,
        tracker: ProgressTracker,
        total_work: int,
        title: str = "Seed search",
        console: Optional[Console] = None,
        interval: float = 0.1,
        simple_interval: float = 2.0,
    ):
        self.tracker = tracker
        self.total_work = total_work
        self.title = title
        self.console = console or Console(stderr=True)
        self.interval = interval
        self.simple_interval = simple_interval
        self.start_time = time.time()
        self.live: Optional[Live] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._ticks = 0
        self._last_simple_update = 0.0

    # ---- metrics ---------------------------------------------------------

    def _metrics(self) -> Tuple[Tuple[int, ...], int, float, float, Optional[float]]:
        status = self.tracker.snapshot()
        done = sum(status)
        elapsed = time.time() - self.start_time
        pct = (done / self.total_work * 100) if self.total_work > 0 else 100.0
        rate = done / elapsed if elapsed > 0 else 0.0
        remaining = (self.total_work - done) / rate if rate > 0 else None
        return status, done, pct, rate, remaining

    # ---- rendering -------------------------------------------------------

    def _make_table(self, status: Tuple[int, ...]) -> Table:
        table = Table(show_header=True)
        table.add_column("Worker", style="cyan", justify="center")
        table.add_column("Seeds tested", justify="right")
        for worker_id, count in enumerate(status):
            table.add_row(str(worker_id), f"{count:,}")
        return table

    def _make_progress_panel(self, done: int, pct: float, rate: float,
                             remaining: Optional[float]) -> Panel:
        bar_width = 40
        filled = int(bar_width * min(pct, 100.0) / 100)
        bar = "#" * filled + "-" * (bar_width - filled)
        eta = timedelta(seconds=int(remaining)) if remaining is not None else "--:--"
        elapsed = timedelta(seconds=int(time.time() - self.start_time))

        text = Text()
        text.append(f"[{SPINNER[self._ticks % len(SPINNER)]}] ", style="bold magenta")
        text.append(f"[{bar}] {pct:.2f}%\n", style="bold")
        text.append(f"Seeds: {done:,}/{self.total_work:,}", style="cyan")
        text.append(f"  ~{rate:,.0f}/sec", style="green")
        text.append(f"\nElapsed: {elapsed} | ETA: {eta}")
        return Panel(text, title=self.title, border_style="green")

    def _render(self) -> Layout:
        status, done, pct, rate, remaining = self._metrics()
        layout = Layout()
        layout.split_column(
            Layout(self._make_progress_panel(done, pct, rate, remaining), size=5),
            Layout(self._make_table(status)),
        )
        return layout

    def _print_simple(self) -> None:
        now = time.time()
        if now - self._last_simple_update < self.simple_interval:
            return
        self._last_simple_update = now
        _, done, pct, rate, remaining = self._metrics()
        eta = f"ETA: {timedelta(seconds=int(remaining))}" if remaining is not None else "ETA: --:--"
        self.console.print(f"  Progress: {pct:5.1f}% | {done:,}/{self.total_work:,} | ~{rate:,.0f}/sec | {eta}",
                           highlight=False)

    # ---- reporting thread ------------------------------------------------

    def _run(self) -> None:
        while not self.tracker.wait_until_started(timeout=self.simple_interval):
            if self._stop_event.is_set():
                return
        self.start_time = time.time()
        while not self.tracker.is_completed and not self._stop_event.is_set():
            self._ticks += 1
            if self.live:
                self.live.update(self._render())
            else:
                self._print_simple()
            self._stop_event.wait(self.interval)

    def __enter__(self) -> "SearchProgress":
        if self.console.is_terminal:
            self.live = Live(self._render(), console=self.console, refresh_per_second=10, transient=True)
            self.live.__enter__()
        else:
            self.console.print(f"{'=' * 60}\n  {self.title}\n  Total seeds: {self.total_work:,}\n{'=' * 60}",
                               highlight=False)
        self._thread = threading.Thread(target=self._run, name="progress-display", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *args) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self.live:
            self.live.__exit__(*args)
            self.live = None
