#!/usr/bin/env python3
"""
Bruteforce Engine
=================

Parallel seed search. The seed range is split into one fixed, contiguous
sub-range per worker thread; each worker walks its sub-range in ascending
batches, generates `depth` outputs per candidate with the registry's numpy
batch kernel, scores them against the observations and keeps every seed that
reaches the confidence threshold.

Shared state:
  - results list        -> guarded by a lock (sparse writes)
  - progress counters   -> one writer per counter, no lock
  - is_completed flag   -> polled between batches for cancellation

Usage:
    from recovery.bruteforce_engine import BruteforceEngine

    engine = BruteforceEngine(config, observed)
    results = engine.search(SearchRange.build(12000, 13000))
"""

import logging
import threading
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np

import prng_registry
from recovery.confidence_scorer import SeedResult, rank, score_batch
from recovery.engine_config import EngineConfig, SearchRange
from recovery.errors import InputError
from recovery.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)

# Upper bound on seeds x outputs held by one worker per kernel call
MAX_BATCH_CELLS = 1 << 22


class BruteforceEngine:
    """Runs one seed search over an immutable config and observation snapshot."""

    def __init__(self, config: EngineConfig, observed: Sequence[int],
                 tracker: Optional[ProgressTracker] = None):
        if len(observed) == 0:
            raise InputError("No observed outputs to search against")
        self.config = config
        self.observed = np.asarray(observed, dtype=np.uint32)
        self.tracker = tracker or ProgressTracker()
        self._results: List[SeedResult] = []
        self._results_lock = threading.Lock()
        self._errors: List[BaseException] = []

    def search(self, search_range: SearchRange) -> List[SeedResult]:
        """
        Evaluate every seed in `search_range` and return the ranked hits.

        An empty range returns immediately without spawning workers.
        """
        sub_ranges = search_range.partition(self.config.threads)
        self.tracker.reset(len(sub_ranges), len(search_range))
        self._results = []
        self._errors = []

        if not sub_ranges:
            logger.info("Empty seed range [%d, %d), nothing to search",
                        search_range.lower, search_range.upper)
            self.tracker.mark_completed()
            return []

        logger.info("Searching %s seeds [%d, %d) with %d worker(s), depth %d",
                    f"{len(search_range):,}", search_range.lower, search_range.upper,
                    len(sub_ranges), self.config.depth)
        started = time.time()

        workers = []
        for worker_id, (lower, upper) in enumerate(sub_ranges):
            logger.debug("Worker %d assigned seeds [%d, %d)", worker_id, lower, upper)
            t = threading.Thread(
                target=self._worker,
                args=(worker_id, lower, upper),
                name=f"bruteforce-{worker_id}",
                daemon=True,
            )
            workers.append(t)
            t.start()
        self.tracker.mark_running()

        for t in workers:
            t.join()

        cancelled = self.tracker.is_completed
        self.tracker.mark_completed()

        if self._errors:
            raise self._errors[0]

        results = rank(self._results)
        if cancelled:
            logger.warning("Search cancelled after %s of %s seeds; %d result(s) kept",
                           f"{self.tracker.evaluated():,}", f"{len(search_range):,}", len(results))
        else:
            logger.info("Search finished in %.1fs, %d seed(s) >= %.2f%%",
                        time.time() - started, len(results), self.config.min_confidence)
        return results

    def _worker(self, worker_id: int, lower: int, upper: int) -> None:
        try:
            self._scan(worker_id, lower, upper)
        except Exception as e:
            logger.exception("Worker %d failed", worker_id)
            with self._results_lock:
                self._errors.append(e)
            self.tracker.cancel()

    def _scan(self, worker_id: int, lower: int, upper: int) -> None:
        prng = self.config.prng
        threshold = self.config.min_confidence
        # Outputs past the last observation are never compared
        depth = min(self.config.depth, len(self.observed))
        batch_size = max(1, min(self.config.batch_size, MAX_BATCH_CELLS // depth))

        for start in range(lower, upper, batch_size):
            if self.tracker.is_completed:
                logger.debug("Worker %d stopping at seed %d", worker_id, start)
                return
            end = min(start + batch_size, upper)
            seeds = np.arange(start, end, dtype=np.uint64)
            outputs = prng_registry.generate_batch(prng, seeds, depth)
            confidences = score_batch(outputs, self.observed)
            hits = np.nonzero(confidences >= threshold)[0]
            if len(hits):
                found = [SeedResult(int(seeds[i]), float(confidences[i])) for i in hits]
                with self._results_lock:
                    self._results.extend(found)
                for result in found:
                    logger.info("Worker %d found seed %d (%.2f%%)", worker_id, result.seed, result.confidence)
            self.tracker.advance(worker_id, end - start)


def search(search_range: SearchRange, config: EngineConfig, observed: Sequence[int],
           tracker: Optional[ProgressTracker] = None) -> List[SeedResult]:
    """Functional entry point: one search with a throwaway engine."""
    return BruteforceEngine(config, observed, tracker).search(search_range)


def partition(lower: int, upper: int, threads: int) -> List[Tuple[int, int]]:
    return SearchRange.build(lower, upper).partition(threads)
