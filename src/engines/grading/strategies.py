"""
Grading strategies - interchangeable final-grade policies.

Each strategy turns an evaluation history into a final grade, validates a
single evaluation before it is recorded, and maps a grade to an outcome.
Strategies are stateless and can be swapped per grading request.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, Field

from src.logging_config import get_logger

logger = get_logger(__name__)


class OutcomeCategory(str, Enum):
    OUTSTANDING = "outstanding"
    EXCELLENT = "excellent"
    PASS = "pass"
    SATISFACTORY = "satisfactory"
    CONDITIONAL = "conditional"
    FAIL = "fail"


class Infraction(str, Enum):
    LATE = "late"
    INCOMPLETE = "incomplete"
    PLAGIARISM = "plagiarism"


class Merit(str, Enum):
    PARTICIPATION = "participation"
    INNOVATION = "innovation"
    COLLABORATION = "collaboration"


class EvaluationInput(BaseModel):
    """An evaluation as submitted for validation."""

    score: float
    evaluator: Optional[str] = None
    comment: Optional[str] = None


class ValidationReport(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class GradeOutcome(BaseModel):
    passed: bool
    category: OutcomeCategory
    message: str


class GradeReport(BaseModel):
    """Final grade plus outcome for one history under one strategy."""

    strategy: str
    final_grade: float
    evaluation_count: int
    outcome: GradeOutcome
    adjustments: List[str] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=lambda: ValidationReport(valid=True))
    recovery_allowed: bool = False
    suggestions: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class GradingStrategy(ABC):
    """Base class for grading strategies."""

    name: str = "base"
    description: str = ""

    @abstractmethod
    def final_grade(self, scores: Sequence[float]) -> float:
        """Final grade for a score history; 0.0 for an empty history."""
        pass

    @abstractmethod
    def validate(self, evaluation: EvaluationInput) -> ValidationReport:
        pass

    @abstractmethod
    def outcome(self, grade: float) -> GradeOutcome:
        pass

    def adjust(
        self,
        grade: float,
        infractions: Iterable[Infraction] = (),
        merits: Iterable[Merit] = (),
    ) -> Tuple[float, List[str]]:
        """Apply strategy-specific adjustments. The base strategy has none."""
        return grade, []

    def requirements(self) -> List[str]:
        return []

    def allows_recovery(self, grade: float) -> bool:
        return False

    def suggest_improvements(self, grade: float) -> List[str]:
        return []

    def review(self, evaluations: Iterable[EvaluationInput]) -> ValidationReport:
        """Validate every evaluation, prefixing each issue with its position."""
        errors: List[str] = []
        warnings: List[str] = []
        for position, evaluation in enumerate(evaluations, start=1):
            report = self.validate(evaluation)
            errors.extend(f"Evaluation {position}: {e}" for e in report.errors)
            warnings.extend(f"Evaluation {position}: {w}" for w in report.warnings)
        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)

    def grade(
        self,
        scores: Sequence[float],
        infractions: Iterable[Infraction] = (),
        merits: Iterable[Merit] = (),
        evaluations: Sequence[EvaluationInput] = (),
    ) -> GradeReport:
        """
        Grade a score history.

        ``evaluations`` are only reviewed against the strategy's rules; an
        invalid history is reported, not rejected.
        """
        final, adjustments = self.adjust(self.final_grade(scores), infractions, merits)
        final = round(final, 2)
        return GradeReport(
            strategy=self.name,
            final_grade=final,
            evaluation_count=len(scores),
            outcome=self.outcome(final),
            adjustments=adjustments,
            validation=self.review(evaluations),
            recovery_allowed=self.allows_recovery(final),
            suggestions=self.suggest_improvements(final),
            requirements=self.requirements(),
        )

    def _range_errors(self, evaluation: EvaluationInput) -> List[str]:
        if not 0 <= evaluation.score <= 100:
            return ["Score must be between 0 and 100"]
        return []


class StrictGrading(GradingStrategy):
    """
    High-bar grading.

    Only the last three evaluations count. An evaluator is mandatory and
    scores under 70 must carry a comment. Penalties lower the grade and
    plagiarism zeroes it.
    """

    name = "strict"
    description = "Strict grading with a high bar (outstanding from 80)"

    RECENT_COUNT = 3
    OUTSTANDING_GRADE = 80.0
    PASS_GRADE = 70.0
    COMMENT_REQUIRED_BELOW = 70.0
    PENALTIES: Dict[Infraction, float] = {
        Infraction.LATE: 10.0,
        Infraction.INCOMPLETE: 15.0,
    }

    def final_grade(self, scores: Sequence[float]) -> float:
        if not scores:
            return 0.0
        recent = list(scores)[-self.RECENT_COUNT:]
        return min(100.0, sum(recent) / len(recent))

    def validate(self, evaluation: EvaluationInput) -> ValidationReport:
        errors = self._range_errors(evaluation)
        if _blank(evaluation.evaluator):
            errors.append("An evaluator is required")
        if evaluation.score < self.COMMENT_REQUIRED_BELOW and _blank(evaluation.comment):
            errors.append(f"A comment is required for scores below {self.COMMENT_REQUIRED_BELOW:g}")
        return ValidationReport(valid=not errors, errors=errors)

    def outcome(self, grade: float) -> GradeOutcome:
        if grade >= self.OUTSTANDING_GRADE:
            return GradeOutcome(passed=True, category=OutcomeCategory.OUTSTANDING, message="Outstanding performance")
        if grade >= self.PASS_GRADE:
            return GradeOutcome(passed=True, category=OutcomeCategory.PASS, message="Acceptable performance")
        return GradeOutcome(passed=False, category=OutcomeCategory.FAIL, message="Not passed, improvement required")

    def apply_penalties(self, grade: float, infractions: Iterable[Infraction]) -> float:
        """Subtract penalties in order; plagiarism sets the grade to 0. Never below 0."""
        adjusted = grade
        for infraction in infractions:
            infraction = Infraction(infraction)
            if infraction == Infraction.PLAGIARISM:
                adjusted = 0.0
            else:
                adjusted -= self.PENALTIES[infraction]
        return max(0.0, adjusted)

    def adjust(
        self,
        grade: float,
        infractions: Iterable[Infraction] = (),
        merits: Iterable[Merit] = (),
    ) -> Tuple[float, List[str]]:
        infractions = [Infraction(i) for i in infractions]
        notes = [f"penalty: {i.value}" for i in infractions]
        return self.apply_penalties(grade, infractions), notes

    def requirements(self) -> List[str]:
        return [
            f"Outstanding from {self.OUTSTANDING_GRADE:g}, pass from {self.PASS_GRADE:g}",
            "Evaluator required",
            f"Comment required for scores below {self.COMMENT_REQUIRED_BELOW:g}",
            f"Only the last {self.RECENT_COUNT} evaluations count",
        ]


class BonusResult(BaseModel):
    final_grade: float
    applied: List[str]
    total_bonus: float


class FlexibleGrading(GradingStrategy):
    """Supportive grading: rewards the best result, allows bonuses and recovery."""

    name = "flexible"
    description = "Flexible grading focused on improvement (satisfactory from 60)"

    BEST_WEIGHT = 0.7
    MEAN_WEIGHT = 0.3
    EXCELLENT_GRADE = 85.0
    SATISFACTORY_GRADE = 60.0
    CONDITIONAL_GRADE = 50.0
    BONUSES: Dict[Merit, float] = {
        Merit.PARTICIPATION: 5.0,
        Merit.INNOVATION: 10.0,
        Merit.COLLABORATION: 5.0,
    }

    def final_grade(self, scores: Sequence[float]) -> float:
        if not scores:
            return 0.0
        best = max(max(scores), 0.0)
        mean = sum(scores) / len(scores)
        return min(100.0, best * self.BEST_WEIGHT + mean * self.MEAN_WEIGHT)

    def validate(self, evaluation: EvaluationInput) -> ValidationReport:
        errors = self._range_errors(evaluation)
        warnings = []
        if _blank(evaluation.evaluator):
            logger.info("Evaluation accepted without an evaluator")
            warnings.append("No evaluator specified")
        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)

    def outcome(self, grade: float) -> GradeOutcome:
        if grade >= self.EXCELLENT_GRADE:
            return GradeOutcome(passed=True, category=OutcomeCategory.EXCELLENT, message="Exceptional performance")
        if grade >= self.SATISFACTORY_GRADE:
            return GradeOutcome(passed=True, category=OutcomeCategory.SATISFACTORY, message="Project passed")
        if grade >= self.CONDITIONAL_GRADE:
            return GradeOutcome(
                passed=False,
                category=OutcomeCategory.CONDITIONAL,
                message="Conditional pass, review required",
            )
        return GradeOutcome(passed=False, category=OutcomeCategory.FAIL, message="Not passed, resubmission required")

    def apply_bonuses(self, grade: float, merits: Iterable[Merit]) -> BonusResult:
        adjusted = grade
        applied = []
        for merit in merits:
            merit = Merit(merit)
            bonus = self.BONUSES[merit]
            adjusted += bonus
            applied.append(f"{merit.value} (+{bonus:g})")
        final = min(100.0, adjusted)
        return BonusResult(final_grade=final, applied=applied, total_bonus=final - grade)

    def adjust(
        self,
        grade: float,
        infractions: Iterable[Infraction] = (),
        merits: Iterable[Merit] = (),
    ) -> Tuple[float, List[str]]:
        result = self.apply_bonuses(grade, merits)
        return result.final_grade, [f"bonus: {note}" for note in result.applied]

    def requirements(self) -> List[str]:
        return [
            f"Excellent from {self.EXCELLENT_GRADE:g}, satisfactory from {self.SATISFACTORY_GRADE:g}",
            f"Recovery available from {self.CONDITIONAL_GRADE:g}",
            "Best evaluation weighs 70%",
        ]

    def allows_recovery(self, grade: float) -> bool:
        return self.CONDITIONAL_GRADE <= grade < self.SATISFACTORY_GRADE

    def suggest_improvements(self, grade: float) -> List[str]:
        if grade >= 80:
            return ["Keep up the good work", "Consider publishing the results"]
        if grade >= self.SATISFACTORY_GRADE:
            return ["Improve the documentation", "Deepen the analysis of results"]
        return ["Review the methodology", "Seek advice", "Repeat the presentation"]


STRATEGIES: Dict[str, Type[GradingStrategy]] = {
    StrictGrading.name: StrictGrading,
    FlexibleGrading.name: FlexibleGrading,
}


def get_strategy(name: str) -> GradingStrategy:
    """Instantiate a strategy by name. Raises ValueError for unknown names."""
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown grading strategy '{name}'; expected one of {sorted(STRATEGIES)}") from None
