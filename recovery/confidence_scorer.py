"""
Confidence Scorer
=================

Percentage of aligned positions where a candidate sequence reproduces the
observed one. Both sequences start at index 0; no phase search is done.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np


@dataclass(frozen=True)
class SeedResult:
    """A candidate seed and how well it reproduced the observations."""
    seed: int
    confidence: float

    def to_dict(self) -> dict:
        return {'seed': self.seed, 'confidence': self.confidence}


def score(candidate: Sequence[int], observed: Sequence[int]) -> float:
    """Match percentage over min(len(candidate), len(observed)) positions."""
    compared = min(len(candidate), len(observed))
    if compared == 0:
        return 0.0
    matches = sum(1 for c, o in zip(candidate, observed) if c == o)
    return matches * 100.0 / compared


def score_batch(candidates: np.ndarray, observed: np.ndarray) -> np.ndarray:
    """
    Score every row of a (seeds, depth) output block against `observed`.

    Returns one float64 confidence per row.
    """
    compared = min(candidates.shape[1], len(observed))
    if compared == 0:
        return np.zeros(candidates.shape[0], dtype=np.float64)
    target = np.asarray(observed[:compared], dtype=np.uint32)
    matches = np.count_nonzero(candidates[:, :compared] == target, axis=1)
    return matches * 100.0 / compared


def rank(results: Iterable[SeedResult]) -> List[SeedResult]:
    """Deduplicate by seed and order by confidence (desc), then seed (asc)."""
    best = {}
    for result in results:
        known = best.get(result.seed)
        if known is None or result.confidence > known.confidence:
            best[result.seed] = result
    return sorted(best.values(), key=lambda r: (-r.confidence, r.seed))
