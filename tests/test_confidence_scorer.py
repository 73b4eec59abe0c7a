"""
Tests for confidence scoring and result ranking.
"""

import numpy as np
import pytest

from recovery.confidence_scorer import SeedResult, rank, score, score_batch


class TestScore:

    def test_exact_match(self):
        assert score([1, 2, 3, 4], [1, 2, 3, 4]) == 100.0

    def test_partial_match(self):
        assert score([1, 2, 3, 4], [1, 2, 0, 0]) == 50.0

    def test_compares_shorter_length_only(self):
        """Extra candidate outputs beyond the observations are ignored."""
        assert score([7, 8, 9, 10, 11], [7, 8]) == 100.0
        assert score([7], [7, 8, 9, 10]) == 100.0

    def test_no_positions_compared(self):
        assert score([], [1, 2]) == 0.0

    def test_no_phase_search(self):
        """A shifted stream scores on position only."""
        assert score([0, 1, 2, 3], [1, 2, 3, 4]) == 0.0

    def test_one_differing_position(self):
        observed = list(range(1, 9))
        candidate = observed[:3] + [0] + observed[4:]
        assert score(candidate, observed) == 7 * 100.0 / 8

    def test_exact_percentages(self):
        assert score([1] * 50, [1] * 45 + [0] * 5) == 90.0
        assert score([1] * 100, [1] * 29 + [0] * 71) == 29.0


class TestScoreBatch:

    def test_matches_scalar_score(self):
        candidates = np.array([[1, 2, 3, 4], [1, 0, 3, 0], [9, 9, 9, 9]], dtype=np.uint32)
        observed = np.array([1, 2, 3, 4], dtype=np.uint32)
        assert score_batch(candidates, observed).tolist() == [100.0, 50.0, 0.0]

    def test_shorter_observations(self):
        candidates = np.array([[5, 6, 7, 8]], dtype=np.uint32)
        assert score_batch(candidates, np.array([5, 0], dtype=np.uint32)).tolist() == [50.0]

    def test_empty_observations(self):
        candidates = np.zeros((3, 4), dtype=np.uint32)
        assert score_batch(candidates, np.array([], dtype=np.uint32)).tolist() == [0.0, 0.0, 0.0]


class TestRank:

    def test_orders_by_confidence_then_seed(self):
        ranked = rank([
            SeedResult(30, 90.0),
            SeedResult(20, 100.0),
            SeedResult(10, 90.0),
            SeedResult(5, 100.0),
        ])
        assert [(r.seed, r.confidence) for r in ranked] == [(5, 100.0), (20, 100.0), (10, 90.0), (30, 90.0)]

    def test_deduplicates_by_seed(self):
        ranked = rank([SeedResult(1, 50.0), SeedResult(1, 75.0), SeedResult(1, 60.0)])
        assert ranked == [SeedResult(1, 75.0)]

    def test_empty(self):
        assert rank([]) == []

    def test_result_serialises(self):
        assert SeedResult(12345, 100.0).to_dict() == {'seed': 12345, 'confidence': 100.0}

    def test_result_is_immutable(self):
        result = SeedResult(1, 100.0)
        with pytest.raises(AttributeError):
            result.seed = 2
