"""Tests for grading and feedback generation."""

import pytest

from drawing_grader.config import GradingConfig
from drawing_grader.grading.feedback import OVERALL_BANDS, OVERALL_FLOOR, generate_feedback
from drawing_grader.grading.grader import (
    GRADE_COLORS,
    combined_score,
    grade,
    letter_grade,
    round_half_up,
    style_adjusted_percentage,
)
from drawing_grader.io.models import SimilarityScores, StyleResult

PERFECT = SimilarityScores(cosine=1.0, structural=1.0, statistical=1.0)
NOTHING = SimilarityScores(cosine=0.0, structural=0.0, statistical=0.0)
REALISTIC = StyleResult("realistic", 0.9)
ABSTRACT = StyleResult("abstract", 0.7)


class TestPercentage:
    def test_weighted_combination(self):
        scores = SimilarityScores(cosine=0.8, structural=0.6, statistical=0.4)
        assert combined_score(scores) == pytest.approx(0.5 * 0.8 + 0.35 * 0.6 + 0.15 * 0.4)

    def test_style_adjustment_is_applied(self):
        scores = SimilarityScores(cosine=0.5, structural=0.5, statistical=0.5)
        cartoon = style_adjusted_percentage(scores, StyleResult("cartoon", 0.8))
        assert cartoon == pytest.approx(50.0 * 1.05)

    def test_combined_above_one_is_clamped(self):
        config = GradingConfig(weights={"cosine": 1.0, "structural": 1.0, "statistical": 1.0})
        result = grade(PERFECT, StyleResult("cartoon", 0.8), config)
        assert result.percentage == 100

    def test_zero_scores_stay_at_zero(self):
        assert grade(NOTHING, REALISTIC).percentage == 0

    def test_percentage_is_rounded_half_up(self):
        assert round_half_up(84.5) == 85
        assert round_half_up(84.49) == 84

    def test_weights_are_overridable(self):
        config = GradingConfig(weights={"cosine": 0.0, "structural": 1.0, "statistical": 0.0})
        scores = SimilarityScores(cosine=1.0, structural=0.42, statistical=1.0)
        assert grade(scores, REALISTIC, config).percentage == 42


class TestLetterGrade:
    @pytest.mark.parametrize(
        "percentage, expected",
        [(100, "A+"), (90, "A+"), (89.9, "A"), (80, "A"), (75, "B"), (60, "C"), (50, "D"), (49.9, "F"), (0, "F")],
    )
    def test_default_bands(self, percentage, expected):
        assert letter_grade(percentage) == expected

    def test_bands_are_monotonic(self):
        order = list(GradingConfig().thresholds)
        previous = None
        for value in range(0, 101):
            current = order.index(letter_grade(value))
            if previous is not None:
                assert current <= previous
            previous = current

    def test_zero_thresholds_always_give_top_grade(self):
        config = GradingConfig(thresholds={"A+": 0, "A": 0, "B": 0, "C": 0, "D": 0, "F": 0})
        assert grade(NOTHING, ABSTRACT, config).grade == "A+"

    def test_floor_grade_when_nothing_matches(self):
        config = GradingConfig(thresholds={"A+": 90, "A": 80})
        assert letter_grade(10, config) == "F"

    def test_color_hint_follows_grade(self):
        result = grade(PERFECT, REALISTIC)
        assert result.color == GRADE_COLORS["A+"]


class TestGradeResult:
    def test_perfect_scores(self):
        result = grade(PERFECT, REALISTIC)
        assert result.percentage == 100
        assert result.grade == "A+"
        assert result.style_label == "realistic"
        assert result.style_confidence == pytest.approx(0.9)
        assert result.ssim_percentage == 100

    def test_to_dict_lists_feedback(self):
        payload = grade(PERFECT, REALISTIC).to_dict()
        assert isinstance(payload["feedback"], list)
        assert payload["grade"] == "A+"


class TestFeedback:
    def test_overall_sentence_comes_first(self):
        feedback = generate_feedback(PERFECT, REALISTIC, 100.0)
        assert feedback[0] == OVERALL_BANDS[0][1]

    @pytest.mark.parametrize(
        "percentage, index", [(85, 0), (70, 1), (55, 2), (40, 3), (25, 4)]
    )
    def test_overall_bands(self, percentage, index):
        assert generate_feedback(PERFECT, ABSTRACT, percentage)[0] == OVERALL_BANDS[index][1]

    def test_lowest_band(self):
        assert generate_feedback(PERFECT, ABSTRACT, 10.0)[0] == OVERALL_FLOOR

    def test_metric_notes_in_fixed_order(self):
        feedback = generate_feedback(NOTHING, ABSTRACT, 0.0)
        assert feedback == (
            OVERALL_FLOOR,
            "The overall content and subject matter differ significantly from the reference.",
            "The visual structure and layout need significant improvement.",
            "Focus on matching the basic proportions and spatial relationships.",
        )

    def test_mid_range_metric_notes(self):
        scores = SimilarityScores(cosine=0.5, structural=0.6, statistical=0.9)
        feedback = generate_feedback(scores, ABSTRACT, 60.0)
        assert feedback[1:] == (
            "Some elements match the reference, but key features are missing or different.",
            "Good structural foundation, but details could be more accurate.",
        )

    def test_style_sentence_requires_confidence_above_threshold(self):
        assert generate_feedback(PERFECT, REALISTIC, 100.0)[-1] == "Nice realistic style execution."
        assert not any("style execution" in line for line in generate_feedback(PERFECT, ABSTRACT, 100.0))

    def test_feedback_is_never_empty_nor_duplicated(self):
        for scores in (PERFECT, NOTHING, SimilarityScores(0.5, 0.5, 0.5)):
            for style in (REALISTIC, ABSTRACT, StyleResult("sketch", 0.85)):
                for percentage in (0, 30, 60, 90):
                    feedback = generate_feedback(scores, style, percentage)
                    assert feedback
                    assert all(feedback)
                    assert len(set(feedback)) == len(feedback)
                    assert sum("style execution" in line for line in feedback) <= 1
