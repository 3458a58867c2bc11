"""Confidence scoring.

A presentation-oriented heuristic, not a probability: coverage ratio minus
an excess penalty capped at 30 points, clamped to 0-100.
"""

from __future__ import annotations

import math

EXCESS_SOFTENING = 5
EXCESS_PENALTY_FACTOR = 0.5
MAX_EXCESS_PENALTY = 0.3


def calculate_confidence(total_required: int, covered: int, excess: int) -> int:
    """Confidence 0-100 from required, covered and excess counts."""
    if total_required == 0:
        return 100

    coverage_ratio = covered / total_required
    noise_ratio = excess / (total_required + EXCESS_SOFTENING)
    penalty = min(noise_ratio * EXCESS_PENALTY_FACTOR, MAX_EXCESS_PENALTY)

    # Half-up rounding
    score = math.floor((coverage_ratio - penalty) * 100 + 0.5)
    return max(0, min(100, score))
