"""
Closure Rule - majority-failure policy over an evaluation history.

A project closes once more than ``closure_ratio`` of its scores fall below
``passing_score``. The rule only ever moves a project from active to closed:
evaluating it against a closed project is always a no-op.
"""

from typing import Iterable, Optional

from pydantic import BaseModel

from src.config import get_settings


class ClosureDecision(BaseModel):
    """Outcome of one rule evaluation."""

    should_close: bool
    below_threshold: int
    total: int
    ratio: float
    reason: Optional[str] = None

    @property
    def percent_below_threshold(self) -> float:
        return self.ratio * 100


class ClosureRule:
    """Majority-failure rule with configurable thresholds."""

    def __init__(
        self,
        passing_score: Optional[float] = None,
        closure_ratio: Optional[float] = None,
        min_evaluations: Optional[int] = None,
    ):
        settings = get_settings()
        self.passing_score = settings.passing_score if passing_score is None else passing_score
        self.closure_ratio = settings.closure_ratio if closure_ratio is None else closure_ratio
        self.min_evaluations = (
            settings.closure_min_evaluations if min_evaluations is None else min_evaluations
        )

    def below_threshold_ratio(self, scores: Iterable[float]) -> float:
        """Share of scores below the passing score; 0.0 for an empty history."""
        scores = list(scores)
        if not scores:
            return 0.0
        below = sum(1 for s in scores if s < self.passing_score)
        return below / len(scores)

    def evaluate(self, scores: Iterable[float], is_active: bool) -> ClosureDecision:
        """
        Decide whether a project with this history should close now.

        Args:
            scores: Full evaluation history, in insertion order
            is_active: Whether the project is still active

        Returns:
            ClosureDecision; should_close is never True for a closed project
            or for a history shorter than min_evaluations.
        """
        scores = list(scores)
        total = len(scores)
        below = sum(1 for s in scores if s < self.passing_score)
        ratio = below / total if total else 0.0

        should_close = (
            is_active
            and total >= self.min_evaluations
            and ratio > self.closure_ratio
        )
        reason = None
        if should_close:
            reason = (
                f"More than {self.closure_ratio * 100:.0f}% of evaluations scored below "
                f"{self.passing_score:g} ({ratio * 100:.1f}%)"
            )
        return ClosureDecision(
            should_close=should_close,
            below_threshold=below,
            total=total,
            ratio=ratio,
            reason=reason,
        )
