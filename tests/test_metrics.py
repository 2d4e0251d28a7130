"""Tests for the similarity metrics."""

import numpy as np
import pytest

from conftest import noise_pixels, solid_pixels
from drawing_grader.config import SimilarityConfig
from drawing_grader.errors import DimensionMismatchError
from drawing_grader.io.models import FeatureSet, ImageSample
from drawing_grader.similarity.metrics import (
    compute_scores,
    cosine_similarity,
    moments,
    positive_correlation,
    ssim_index,
    statistical_similarity,
    structural_similarity,
    zscore,
)


class TestCosineSimilarity:
    def test_identical_vectors_score_one(self):
        a = np.array([0.1, 0.5, -0.3, 2.0, 0.0])
        assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_scores_stay_in_unit_interval(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            a = rng.normal(size=64)
            b = rng.normal(size=64)
            assert 0.0 <= cosine_similarity(a, b) <= 1.0

    def test_opposite_vectors_score_zero(self):
        a = np.array([1.0, 2.0, 3.0, 4.0])
        assert cosine_similarity(a, -a) == pytest.approx(0.0)

    def test_orthogonal_vectors_are_sharpened(self):
        a = np.array([1.0, -1.0, 1.0, -1.0])
        b = np.array([1.0, 1.0, -1.0, -1.0])
        # raw cosine 0 -> 0.5 -> squared
        assert cosine_similarity(a, b) == pytest.approx(0.25)

    def test_unequal_lengths_score_zero(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0

    def test_constant_vector_scores_zero(self):
        assert cosine_similarity([2.0, 2.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_zscore_of_constant_is_zero(self):
        assert np.all(zscore([5.0, 5.0, 5.0]) == 0.0)


class TestStructuralSimilarity:
    def test_identical_images_are_near_maximal(self, noisy_sample):
        assert structural_similarity(noisy_sample, noisy_sample) >= 0.99

    def test_raw_index_of_identical_grays_is_one(self):
        gray = np.arange(64, dtype=np.float64).reshape(8, 8)
        assert ssim_index(gray, gray, 6.5025, 58.5225) == pytest.approx(1.0)

    def test_different_images_score_lower(self, noisy_sample):
        inverted = ImageSample(255 - noise_pixels(seed=1))
        inverted_score = structural_similarity(noisy_sample, inverted)
        assert inverted_score < structural_similarity(noisy_sample, noisy_sample)

    def test_black_and_white_are_dissimilar(self):
        black = ImageSample(solid_pixels((0, 0, 0, 255)))
        white = ImageSample(solid_pixels((255, 255, 255, 255)))
        assert structural_similarity(black, white) < 0.01

    def test_missing_image_uses_fallback(self, noisy_sample):
        assert structural_similarity(noisy_sample, None) == pytest.approx(0.1)

    def test_fallback_is_configurable(self, noisy_sample):
        config = SimilarityConfig(ssim_fallback=0.0)
        assert structural_similarity(None, noisy_sample, config) == 0.0

    def test_exponent_sharpens_partial_matches(self, noisy_sample, other_sample):
        soft = structural_similarity(noisy_sample, other_sample, SimilarityConfig(ssim_exponent=1.0))
        sharp = structural_similarity(noisy_sample, other_sample, SimilarityConfig(ssim_exponent=3.0))
        assert sharp <= soft

    def test_mismatched_grays_raise(self):
        with pytest.raises(DimensionMismatchError):
            ssim_index(np.zeros(4), np.zeros(5), 1.0, 1.0)


class TestStatisticalSimilarity:
    def test_identical_vectors_score_one(self):
        a = np.array([0.2, 0.9, 0.1, 0.4, 0.7, 0.05])
        assert statistical_similarity(a, a) == pytest.approx(1.0)

    def test_unequal_lengths_score_zero(self):
        assert statistical_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_negative_correlation_contributes_nothing(self):
        a = np.array([1.0, 2.0, 3.0, 4.0])
        assert positive_correlation(a, a[::-1]) == 0.0

    def test_correlation_needs_matching_lengths(self):
        with pytest.raises(DimensionMismatchError):
            positive_correlation([1.0], [1.0, 2.0])

    def test_moments_of_constant_vector(self):
        mean, variance, skewness = moments([3.0, 3.0, 3.0])
        assert (mean, variance, skewness) == (3.0, 0.0, 0.0)

    def test_moments_of_skewed_vector(self):
        _, _, skewness = moments([0.0, 0.0, 0.0, 10.0])
        assert skewness > 0

    def test_result_is_bounded(self):
        rng = np.random.default_rng(11)
        for _ in range(10):
            value = statistical_similarity(rng.normal(size=32), rng.normal(size=32) * 4)
            assert 0.0 <= value <= 1.0


def test_compute_scores_for_identical_inputs(noisy_sample):
    embedding = np.linspace(-1.0, 1.0, 50) ** 3
    features = FeatureSet(embedding, [0.5, 0.5, 0.5], [0.1])
    scores = compute_scores(features, features, noisy_sample, noisy_sample)
    assert scores.cosine == pytest.approx(1.0)
    assert scores.structural == pytest.approx(1.0)
    assert scores.statistical == pytest.approx(1.0)


def test_compute_scores_with_mismatched_embeddings(noisy_sample):
    short = FeatureSet([0.1, 0.2, 0.3], [0.5, 0.5, 0.5], [0.1])
    long = FeatureSet([0.1, 0.2, 0.3, 0.4], [0.5, 0.5, 0.5], [0.1])
    scores = compute_scores(short, long, noisy_sample, noisy_sample)
    assert scores.cosine == 0.0
    assert scores.statistical == 0.0
    assert scores.structural == pytest.approx(1.0)
