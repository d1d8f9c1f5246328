"""
Grading Engine - interchangeable final-grade strategies.

Strategies:
1. Strict - last three evaluations, mandatory evaluator, penalties
2. Flexible - best-weighted grade, bonuses, recovery window
"""

from src.engines.grading.strategies import (
    EvaluationInput,
    FlexibleGrading,
    GradeOutcome,
    GradeReport,
    GradingStrategy,
    Infraction,
    Merit,
    OutcomeCategory,
    StrictGrading,
    ValidationReport,
    get_strategy,
)

__all__ = [
    "EvaluationInput",
    "FlexibleGrading",
    "GradeOutcome",
    "GradeReport",
    "GradingStrategy",
    "Infraction",
    "Merit",
    "OutcomeCategory",
    "StrictGrading",
    "ValidationReport",
    "get_strategy",
]
