#!/usr/bin/env python3
"""
Untwister Session
=================

The object a front end drives: collect observed outputs, configure the run,
then either infer the generator state (fast, invertible PRNGs only) or
bruteforce the seed (slow, any PRNG).

Usage:
    from recovery.untwister import Untwister

    untwister = Untwister()
    untwister.set_prng('mt19937')
    for value in values:
        untwister.add_observed_output(value)

    if untwister.infer():
        print(untwister.generate_sample_from_state())
    else:
        for result in untwister.search(0, 2**32):
            print(result.seed, result.confidence)
"""

import logging
import random
from typing import List, Optional, Sequence, Tuple

import prng_registry
from prng_registry import RecoveredState
from recovery import state_inference
from recovery.bruteforce_engine import BruteforceEngine
from recovery.confidence_scorer import SeedResult
from recovery.engine_config import EngineConfig, SearchRange
from recovery.errors import (
    InferenceMismatch,
    InputError,
    InsufficientWindow,
    UnsupportedOperation,
)
from recovery.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)

SAMPLE_MIN = 10
SAMPLE_MAX = 100


def generate_sample(prng: str, seed: int, rng: Optional[random.Random] = None) -> List[int]:
    """
    Sample output stream for `seed`, of pseudo-random length.

    Invertible PRNGs get a full state window plus 1..SAMPLE_MAX extra outputs
    so the sample can exercise inference; others get SAMPLE_MIN..SAMPLE_MAX.
    The stream starts at the first output after seeding.
    """
    rng = rng or random.Random()
    info = prng_registry.get_prng_info(prng)
    if info.invertible:
        depth = info.window_size + rng.randint(1, SAMPLE_MAX)
    else:
        depth = rng.randint(SAMPLE_MIN, SAMPLE_MAX)
    return prng_registry.generate(prng, seed, depth)


class Untwister:
    """Recovery session: observations, configuration, and the two entry points."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.build()
        self._observed: List[int] = []
        self._tracker = ProgressTracker()
        self._recovered: Optional[RecoveredState] = None

    # ---- observations ----------------------------------------------------

    def add_observed_output(self, value: int) -> None:
        self._observed.append(value & prng_registry.MASK32)

    def add_observed_outputs(self, values: Sequence[int]) -> None:
        for value in values:
            self.add_observed_output(value)

    def get_observed_outputs(self) -> Tuple[int, ...]:
        return tuple(self._observed)

    # ---- configuration ---------------------------------------------------

    def set_prng(self, name: str) -> None:
        self.config = self.config.replace(prng=name)
        self._recovered = None

    def get_prng(self) -> str:
        return self.config.prng

    @staticmethod
    def is_supported_prng(name: str) -> bool:
        return prng_registry.is_supported(name)

    @staticmethod
    def get_prng_names() -> List[str]:
        return prng_registry.list_available_prngs()

    def set_depth(self, depth: int) -> None:
        self.config = self.config.replace(depth=depth)

    def get_depth(self) -> int:
        return self.config.depth

    def set_threads(self, threads: int) -> None:
        self.config = self.config.replace(threads=threads)

    def get_threads(self) -> int:
        return self.config.threads

    def set_min_confidence(self, confidence: float) -> None:
        self.config = self.config.replace(min_confidence=confidence)

    def get_min_confidence(self) -> float:
        return self.config.min_confidence

    # ---- recovery --------------------------------------------------------

    def _snapshot(self) -> Tuple[int, ...]:
        if not self._observed:
            raise InputError("No observed outputs; add some before running")
        return tuple(self._observed)

    def search(self, lower: int = 0, upper: int = prng_registry.SEED_SPACE_END) -> List[SeedResult]:
        """Bruteforce seeds in [lower, upper); results ranked by confidence."""
        observed = self._snapshot()
        search_range = SearchRange.build(lower, upper)
        engine = BruteforceEngine(self.config, observed, self._tracker)
        return engine.search(search_range)

    def infer(self) -> bool:
        """
        Try direct state recovery for the selected PRNG.

        Returns False (and logs why) when the PRNG cannot be inverted, there
        are too few observations, or the rebuilt state does not reproduce
        the rest of the observations. Callers fall back to search().
        """
        observed = self._snapshot()
        self._recovered = None
        try:
            self._recovered = state_inference.infer(self.config.prng, observed)
        except UnsupportedOperation as e:
            logger.debug("%s", e)
            return False
        except (InsufficientWindow, InferenceMismatch) as e:
            logger.warning("State inference failed: %s", e)
            return False
        return True

    def get_recovered_state(self) -> Optional[RecoveredState]:
        return self._recovered

    # ---- samples ---------------------------------------------------------

    def generate_sample_from_seed(self, seed: int, rng: Optional[random.Random] = None) -> List[int]:
        return generate_sample(self.config.prng, seed, rng)

    def generate_sample_from_state(self, depth: Optional[int] = None) -> List[int]:
        """Outputs that follow the observations, from the last successful infer()."""
        if self._recovered is None:
            raise InputError("No recovered state; run infer() successfully first")
        return prng_registry.generate_from_state(self._recovered, depth or self.config.depth)

    # ---- progress --------------------------------------------------------

    @property
    def tracker(self) -> ProgressTracker:
        return self._tracker

    def get_status(self) -> Tuple[int, ...]:
        return self._tracker.snapshot()

    def get_is_running(self) -> bool:
        return self._tracker.is_running

    def get_is_completed(self) -> bool:
        return self._tracker.is_completed

    def wait_until_started(self, timeout: Optional[float] = None) -> bool:
        return self._tracker.wait_until_started(timeout)

    def cancel(self) -> None:
        self._tracker.cancel()
