"""Weighted indicator confluence scoring and signal quality grading."""

from signal_engine.strategy.confluence.scorer import score_confluence, classify_direction
from signal_engine.strategy.confluence.quality import (
    evaluate_safety_filters,
    grade_signal,
    quality_points,
)

__all__ = [
    'score_confluence',
    'classify_direction',
    'evaluate_safety_filters',
    'grade_signal',
    'quality_points',
]
