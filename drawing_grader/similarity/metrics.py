"""Similarity metrics between two images and their extracted features."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..config import SimilarityConfig
from ..errors import DimensionMismatchError
from ..features.edges import luma
from ..io.models import FeatureSet, ImageSample, SimilarityScores, unit_interval
from ..sample.loader import resample

logger = logging.getLogger(__name__)

VectorLike = Union[Sequence[float], np.ndarray]

_DEFAULT_CONFIG = SimilarityConfig()


def _as_vector(values: VectorLike) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).ravel()


def _paired(a: VectorLike, b: VectorLike) -> Tuple[np.ndarray, np.ndarray]:
    """Return *a* and *b* as float vectors, raising if their lengths differ."""
    left = _as_vector(a)
    right = _as_vector(b)
    if left.size != right.size:
        raise DimensionMismatchError(left.size, right.size)
    return left, right


def zscore(values: VectorLike) -> np.ndarray:
    """Return *values* shifted to zero mean and unit deviation (zeros if constant)."""
    vector = _as_vector(values)
    if vector.size == 0:
        return vector
    std = float(vector.std())
    if std == 0.0 or not np.isfinite(std):
        return np.zeros_like(vector)
    return (vector - vector.mean()) / std


def cosine_similarity(a: VectorLike, b: VectorLike, exponent: float = 2.0) -> float:
    """Return the sharpened cosine similarity of two z-scored vectors in [0, 1].

    The raw cosine in [-1, 1] is mapped with ``(x + 1) / 2`` and raised to
    ``exponent``. Unequal lengths and zero magnitudes score 0.
    """
    try:
        left, right = _paired(a, b)
    except DimensionMismatchError as exc:
        logger.debug("cosine similarity skipped: %s", exc)
        return 0.0

    norm_a = zscore(left)
    norm_b = zscore(right)
    magnitude_a = float(np.linalg.norm(norm_a))
    magnitude_b = float(np.linalg.norm(norm_b))
    if magnitude_a == 0.0 or magnitude_b == 0.0:
        return 0.0

    similarity = float(np.dot(norm_a, norm_b)) / (magnitude_a * magnitude_b)
    normalized = unit_interval((similarity + 1.0) / 2.0)
    return unit_interval(normalized ** exponent)


def ssim_index(gray_a: np.ndarray, gray_b: np.ndarray, c1: float, c2: float) -> float:
    """Return the single-window SSIM of two equally sized grayscale arrays."""
    x = np.asarray(gray_a, dtype=np.float64).ravel()
    y = np.asarray(gray_b, dtype=np.float64).ravel()
    if x.size != y.size:
        raise DimensionMismatchError(x.size, y.size)
    if x.size == 0:
        return 0.0

    mu_x = x.mean()
    mu_y = y.mean()
    var_x = ((x - mu_x) ** 2).mean()
    var_y = ((y - mu_y) ** 2).mean()
    covariance = ((x - mu_x) * (y - mu_y)).mean()

    numerator = (2 * mu_x * mu_y + c1) * (2 * covariance + c2)
    denominator = (mu_x ** 2 + mu_y ** 2 + c1) * (var_x + var_y + c2)
    if denominator <= 0:
        return 0.0
    return float(numerator / denominator)


def structural_similarity(
    image_a: Optional[ImageSample],
    image_b: Optional[ImageSample],
    config: SimilarityConfig = _DEFAULT_CONFIG,
) -> float:
    """Return the sharpened global SSIM of two images in [0, 1].

    Both images are resampled to ``config.ssim_size`` and compared as luma
    grayscale. When either image is missing or cannot be resampled the
    configured ``ssim_fallback`` is returned instead of raising.
    """
    if image_a is None or image_b is None:
        logger.warning("SSIM input missing; using fallback %.2f", config.ssim_fallback)
        return config.ssim_fallback

    size = config.ssim_size
    try:
        sample_a = resample(image_a, size, size)
        sample_b = resample(image_b, size, size)
    except (ValueError, OSError) as exc:
        logger.warning("SSIM resampling failed (%s); using fallback %.2f", exc, config.ssim_fallback)
        return config.ssim_fallback

    raw = ssim_index(
        luma(sample_a.pixels),
        luma(sample_b.pixels),
        config.ssim_c1,
        config.ssim_c2,
    )
    return unit_interval(unit_interval(raw) ** config.ssim_exponent)


def moments(values: VectorLike) -> Tuple[float, float, float]:
    """Return mean, population variance and skewness (0 when variance is 0)."""
    vector = _as_vector(values)
    if vector.size == 0:
        return 0.0, 0.0, 0.0
    mean = float(vector.mean())
    centered = vector - mean
    variance = float((centered ** 2).mean())
    if variance <= 0.0:
        return mean, variance, 0.0
    skewness = float((centered ** 3).mean() / variance ** 1.5)
    return mean, variance, skewness


def positive_correlation(a: VectorLike, b: VectorLike) -> float:
    """Return the Pearson correlation of *a* and *b*, with negatives clamped to 0."""
    left, right = _paired(a, b)
    if left.size == 0:
        return 0.0
    dx = left - left.mean()
    dy = right - right.mean()
    denominator = float(np.sqrt((dx * dx).sum() * (dy * dy).sum()))
    if denominator == 0.0 or not np.isfinite(denominator):
        return 0.0
    return max(0.0, float((dx * dy).sum()) / denominator)


def statistical_similarity(
    a: VectorLike,
    b: VectorLike,
    config: SimilarityConfig = _DEFAULT_CONFIG,
) -> float:
    """Return a moment- and correlation-based similarity of two vectors in [0, 1]."""
    try:
        left, right = _paired(a, b)
    except DimensionMismatchError as exc:
        logger.debug("statistical similarity skipped: %s", exc)
        return 0.0

    mean_a, var_a, skew_a = moments(left)
    mean_b, var_b, skew_b = moments(right)

    mean_sim = 1.0 / (1.0 + config.mean_scale * abs(mean_a - mean_b))
    var_sim = 1.0 / (1.0 + config.variance_scale * abs(var_a - var_b))
    skew_sim = 1.0 / (1.0 + config.skewness_scale * abs(skew_a - skew_b))
    correlation = positive_correlation(left, right)

    combined = (
        config.mean_weight * mean_sim
        + config.variance_weight * var_sim
        + config.skewness_weight * skew_sim
        + config.correlation_weight * correlation
    )
    return unit_interval(unit_interval(combined) ** config.statistical_exponent)


def compute_scores(
    features_a: FeatureSet,
    features_b: FeatureSet,
    image_a: Optional[ImageSample],
    image_b: Optional[ImageSample],
    config: SimilarityConfig = _DEFAULT_CONFIG,
) -> SimilarityScores:
    """Return all three similarity metrics for a reference/submission pair."""
    return SimilarityScores(
        cosine=cosine_similarity(
            features_a.embedding, features_b.embedding, config.cosine_exponent
        ),
        structural=structural_similarity(image_a, image_b, config),
        statistical=statistical_similarity(features_a.embedding, features_b.embedding, config),
    )
