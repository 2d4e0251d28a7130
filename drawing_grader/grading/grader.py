"""Combine similarity scores and style into a bounded letter grade."""

from __future__ import annotations

import math
from typing import Dict

from ..config import FLOOR_GRADE, GradingConfig
from ..io.models import GradeResult, SimilarityScores, StyleResult
from .feedback import generate_feedback

GRADE_COLORS: Dict[str, str] = {
    "A+": "#16a34a",
    "A": "#22c55e",
    "B": "#eab308",
    "C": "#f97316",
    "D": "#f87171",
    "F": "#dc2626",
}
DEFAULT_COLOR = "#6b7280"

_DEFAULT_CONFIG = GradingConfig()


def combined_score(scores: SimilarityScores, config: GradingConfig = _DEFAULT_CONFIG) -> float:
    """Return the weighted sum of the three metrics."""
    weights = config.weights
    return (
        weights["cosine"] * scores.cosine
        + weights["structural"] * scores.structural
        + weights["statistical"] * scores.statistical
    )


def style_adjusted_percentage(
    scores: SimilarityScores,
    style: StyleResult,
    config: GradingConfig = _DEFAULT_CONFIG,
) -> float:
    """Return the combined score as a percentage, style-adjusted and clamped to [0, 100]."""
    percentage = combined_score(scores, config) * 100.0 * config.adjustment_for(style.label)
    if not math.isfinite(percentage):
        return 0.0
    return max(0.0, min(100.0, percentage))


def letter_grade(percentage: float, config: GradingConfig = _DEFAULT_CONFIG) -> str:
    """Return the first grade whose threshold *percentage* meets, else the floor grade."""
    for grade, minimum in config.thresholds.items():
        if percentage >= minimum:
            return grade
    return FLOOR_GRADE


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grade(
    scores: SimilarityScores,
    style: StyleResult,
    config: GradingConfig = _DEFAULT_CONFIG,
) -> GradeResult:
    """Grade a submission from its similarity scores and the reference style."""
    percentage = style_adjusted_percentage(scores, style, config)
    letter = letter_grade(percentage, config)
    return GradeResult(
        percentage=round_half_up(percentage),
        grade=letter,
        color=GRADE_COLORS.get(letter, DEFAULT_COLOR),
        style_label=style.label,
        style_confidence=style.confidence,
        feedback=generate_feedback(scores, style, percentage),
        ssim_percentage=round_half_up(scores.structural * 100.0),
    )
