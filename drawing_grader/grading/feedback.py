"""Human-readable feedback for a graded submission."""

from __future__ import annotations

from typing import List, Tuple

from ..io.models import SimilarityScores, StyleResult

OVERALL_BANDS: Tuple[Tuple[float, str], ...] = (
    (85.0, "Outstanding work! Your drawing is remarkably similar to the reference."),
    (70.0, "Great job! Your drawing captures most key elements effectively."),
    (55.0, "Good effort! You've captured some important similarities."),
    (40.0, "Fair attempt. Focus on matching the main shapes and proportions."),
    (25.0, "Keep practicing! Try to observe the reference more carefully."),
)
OVERALL_FLOOR = "This appears quite different from the reference. Study the original more closely."

# (below, sentence) pairs per metric, strictest first; at most one fires per metric.
METRIC_NOTES: Tuple[Tuple[str, Tuple[Tuple[float, str], ...]], ...] = (
    (
        "cosine",
        (
            (0.3, "The overall content and subject matter differ significantly from the reference."),
            (0.6, "Some elements match the reference, but key features are missing or different."),
        ),
    ),
    (
        "structural",
        (
            (0.4, "The visual structure and layout need significant improvement."),
            (0.7, "Good structural foundation, but details could be more accurate."),
        ),
    ),
    (
        "statistical",
        ((0.4, "Focus on matching the basic proportions and spatial relationships."),),
    ),
)

STYLE_CONFIDENCE_MIN = 0.7


def overall_sentence(percentage: float) -> str:
    for minimum, sentence in OVERALL_BANDS:
        if percentage >= minimum:
            return sentence
    return OVERALL_FLOOR


def generate_feedback(
    scores: SimilarityScores,
    style: StyleResult,
    percentage: float,
) -> Tuple[str, ...]:
    """Return the overall sentence, per-metric notes, then an optional style note."""
    feedback: List[str] = [overall_sentence(percentage)]

    for metric, notes in METRIC_NOTES:
        value = getattr(scores, metric)
        for below, sentence in notes:
            if value < below:
                feedback.append(sentence)
                break

    if style.confidence > STYLE_CONFIDENCE_MIN:
        feedback.append(f"Nice {style.label} style execution.")

    return tuple(feedback)
