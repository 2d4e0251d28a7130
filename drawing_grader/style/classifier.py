"""Heuristic drawing-style detection from embedding statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from ..config import StyleThresholds
from ..io.models import StyleResult

_DEFAULT_THRESHOLDS = StyleThresholds()


@dataclass(frozen=True, slots=True)
class EmbeddingStats:
    """Summary statistics the style rules are evaluated on."""

    sparsity: float
    variance: float
    complexity: float
    max_activation: float


def embedding_stats(
    features: Union[Sequence[float], np.ndarray],
    thresholds: StyleThresholds = _DEFAULT_THRESHOLDS,
) -> EmbeddingStats:
    """Return sparsity, variance, complexity and peak activation of *features*."""
    vector = np.asarray(features, dtype=np.float64).ravel()
    if vector.size == 0:
        return EmbeddingStats(0.0, 0.0, 0.0, 0.0)
    magnitudes = np.abs(vector)
    return EmbeddingStats(
        sparsity=float(np.count_nonzero(magnitudes < thresholds.sparse_level) / vector.size),
        variance=float(vector.var()),
        complexity=float(np.count_nonzero(magnitudes > thresholds.complex_level) / vector.size),
        max_activation=float(magnitudes.max()),
    )


def classify_style(
    features: Union[Sequence[float], np.ndarray],
    thresholds: StyleThresholds = _DEFAULT_THRESHOLDS,
) -> StyleResult:
    """Classify an embedding as sketch, cartoon, realistic or abstract.

    Rules are checked in that order and the first match wins; each rule
    carries a fixed confidence. Anything unmatched, including an empty
    vector, is ``abstract``.
    """
    if np.asarray(features).size == 0:
        return StyleResult("abstract", thresholds.abstract_confidence)

    stats = embedding_stats(features, thresholds)
    t = thresholds

    if (
        stats.sparsity > t.sketch_min_sparsity
        and stats.variance < t.sketch_max_variance
        and stats.max_activation < t.sketch_max_activation
    ):
        return StyleResult("sketch", t.sketch_confidence)
    if (
        stats.complexity < t.cartoon_max_complexity
        and stats.variance > t.cartoon_min_variance
        and stats.max_activation < t.cartoon_max_activation
    ):
        return StyleResult("cartoon", t.cartoon_confidence)
    if (
        stats.complexity > t.realistic_min_complexity
        and stats.variance > t.realistic_min_variance
        and stats.max_activation > t.realistic_min_activation
    ):
        return StyleResult("realistic", t.realistic_confidence)
    return StyleResult("abstract", t.abstract_confidence)
