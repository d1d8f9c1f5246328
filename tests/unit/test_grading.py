"""Unit tests for the strict and flexible grading strategies."""

import pytest

from src.engines.grading import (
    EvaluationInput,
    FlexibleGrading,
    Infraction,
    Merit,
    OutcomeCategory,
    StrictGrading,
    get_strategy,
)


class TestStrictGrading:
    """Strict: last three evaluations, mandatory evaluator, penalties."""

    def test_final_grade_uses_last_three(self):
        assert StrictGrading().final_grade([10, 80, 90, 100]) == 90.0

    def test_empty_history(self):
        assert StrictGrading().final_grade([]) == 0.0

    @pytest.mark.parametrize(
        "grade,category,passed",
        [
            (80, OutcomeCategory.OUTSTANDING, True),
            (79.9, OutcomeCategory.PASS, True),
            (70, OutcomeCategory.PASS, True),
            (69.9, OutcomeCategory.FAIL, False),
        ],
    )
    def test_outcomes(self, grade, category, passed):
        outcome = StrictGrading().outcome(grade)
        assert outcome.category == category
        assert outcome.passed is passed

    def test_validation_requires_evaluator(self):
        report = StrictGrading().validate(EvaluationInput(score=85))
        assert report.valid is False
        assert report.errors == ["An evaluator is required"]

    def test_low_score_requires_comment(self):
        report = StrictGrading().validate(EvaluationInput(score=60, evaluator="PROF-1"))
        assert report.valid is False
        assert "comment" in report.errors[0]

        report = StrictGrading().validate(EvaluationInput(score=60, evaluator="PROF-1", comment="Weak methods"))
        assert report.valid is True

    def test_out_of_range_score(self):
        report = StrictGrading().validate(EvaluationInput(score=120, evaluator="PROF-1"))
        assert "Score must be between 0 and 100" in report.errors

    def test_penalties(self):
        strict = StrictGrading()
        assert strict.apply_penalties(80, [Infraction.LATE]) == 70
        assert strict.apply_penalties(80, ["late", "incomplete"]) == 55
        assert strict.apply_penalties(20, [Infraction.INCOMPLETE, Infraction.LATE]) == 0
        assert strict.apply_penalties(95, [Infraction.PLAGIARISM]) == 0

    def test_grade_report_applies_penalties(self):
        report = StrictGrading().grade([85, 85, 85], infractions=[Infraction.LATE])
        assert report.final_grade == 75
        assert report.outcome.category == OutcomeCategory.PASS
        assert report.adjustments == ["penalty: late"]


class TestFlexibleGrading:
    """Flexible: best-weighted grade, bonuses, recovery window."""

    def test_final_grade_weights_best(self):
        # 0.7 * 90 + 0.3 * 70
        assert FlexibleGrading().final_grade([50, 70, 90]) == pytest.approx(84.0)

    @pytest.mark.parametrize(
        "grade,category,passed",
        [
            (85, OutcomeCategory.EXCELLENT, True),
            (60, OutcomeCategory.SATISFACTORY, True),
            (55, OutcomeCategory.CONDITIONAL, False),
            (49.9, OutcomeCategory.FAIL, False),
        ],
    )
    def test_outcomes(self, grade, category, passed):
        outcome = FlexibleGrading().outcome(grade)
        assert outcome.category == category
        assert outcome.passed is passed

    def test_missing_evaluator_is_a_warning(self):
        report = FlexibleGrading().validate(EvaluationInput(score=40))
        assert report.valid is True
        assert report.warnings == ["No evaluator specified"]

    def test_bonuses_capped_at_100(self):
        result = FlexibleGrading().apply_bonuses(92, [Merit.INNOVATION, Merit.PARTICIPATION])
        assert result.final_grade == 100
        assert result.total_bonus == 8
        assert len(result.applied) == 2

    def test_bonus_moves_outcome(self):
        report = FlexibleGrading().grade([55], merits=[Merit.COLLABORATION])
        assert report.final_grade == 60
        assert report.outcome.category == OutcomeCategory.SATISFACTORY

    @pytest.mark.parametrize("grade,allowed", [(49.9, False), (50, True), (59.9, True), (60, False)])
    def test_recovery_window(self, grade, allowed):
        assert FlexibleGrading().allows_recovery(grade) is allowed

    def test_suggestions(self):
        flexible = FlexibleGrading()
        assert len(flexible.suggest_improvements(90)) == 2
        assert len(flexible.suggest_improvements(30)) == 3


class TestStrategyLookup:
    def test_get_strategy(self):
        assert isinstance(get_strategy("strict"), StrictGrading)
        assert isinstance(get_strategy("flexible"), FlexibleGrading)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            get_strategy("lenient")

    def test_strategies_are_interchangeable(self):
        scores = [40, 60, 95]
        grades = {name: get_strategy(name).grade(scores).final_grade for name in ["strict", "flexible"]}
        assert grades["strict"] == 65.0
        assert grades["flexible"] == 86.0


class TestGradeReport:
    """The report carries review, recovery, suggestions and requirements."""

    def test_review_prefixes_positions(self):
        report = StrictGrading().review(
            [
                EvaluationInput(score=90, evaluator="PROF-1"),
                EvaluationInput(score=40, evaluator="PROF-1"),
            ]
        )
        assert report.valid is False
        assert report.errors == ["Evaluation 2: A comment is required for scores below 70"]

    def test_strict_report(self):
        report = StrictGrading().grade(
            [60],
            evaluations=[EvaluationInput(score=60, comment="Weak methods")],
        )
        assert report.validation.errors == ["Evaluation 1: An evaluator is required"]
        assert report.recovery_allowed is False
        assert report.suggestions == []
        assert "Evaluator required" in report.requirements

    def test_flexible_report_in_recovery_window(self):
        report = FlexibleGrading().grade([55], evaluations=[EvaluationInput(score=55)])
        assert report.validation.valid is True
        assert report.validation.warnings == ["Evaluation 1: No evaluator specified"]
        assert report.recovery_allowed is True
        assert report.suggestions == ["Review the methodology", "Seek advice", "Repeat the presentation"]
        assert len(report.requirements) == 3

    def test_no_evaluations_means_nothing_to_review(self):
        report = FlexibleGrading().grade([90])
        assert report.validation.valid is True
        assert report.validation.errors == []
