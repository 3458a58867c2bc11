"""Tests for core/confidence.py."""

from __future__ import annotations

import itertools

from rolemap.core.confidence import calculate_confidence


class TestCalculateConfidence:
    def test_nothing_required(self):
        assert calculate_confidence(0, 0, 0) == 100
        assert calculate_confidence(0, 0, 10) == 100

    def test_full_coverage_no_excess(self):
        assert calculate_confidence(4, 4, 0) == 100

    def test_rounds_half_up(self):
        # 1/8 = 12.5
        assert calculate_confidence(8, 1, 0) == 13

    def test_small_excess_penalty(self):
        # 1 / (5 + 5) * 0.5 = 0.05
        assert calculate_confidence(5, 5, 1) == 95

    def test_penalty_capped(self):
        assert calculate_confidence(5, 5, 10) == 70
        assert calculate_confidence(5, 5, 1000) == 70

    def test_clamped_at_zero(self):
        assert calculate_confidence(4, 0, 50) == 0

    def test_partial_coverage(self):
        assert calculate_confidence(4, 2, 0) == 50


class TestConfidenceProperties:
    SIZES = range(0, 9)
    EXCESS = (0, 1, 2, 5, 13, 40)

    def test_always_in_range(self):
        for required, excess in itertools.product(self.SIZES, self.EXCESS):
            for covered in range(required + 1):
                assert 0 <= calculate_confidence(required, covered, excess) <= 100

    def test_more_coverage_never_lowers_score(self):
        for required, excess in itertools.product(range(1, 9), self.EXCESS):
            scores = [calculate_confidence(required, c, excess) for c in range(required + 1)]
            assert scores == sorted(scores)

    def test_more_excess_never_raises_score(self):
        for required in range(1, 9):
            for covered in range(required + 1):
                scores = [calculate_confidence(required, covered, e) for e in range(0, 30)]
                assert scores == sorted(scores, reverse=True)
