"""
Research project entity and its value types.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from src.engines.closure.closure_rule import ClosureDecision, ClosureRule
from src.kernel.errors import AlreadyAssigned
from src.kernel.events.event_types import ChangeEvent, ChangeEventKind, utcnow
from src.kernel.events.subject import Subject
from src.logging_config import get_logger

logger = get_logger(__name__)


class ProjectStatus(str, Enum):
    """Project lifecycle status. Transitions only go active -> closed."""
    ACTIVE = "active"
    CLOSED = "closed"


class Evaluation(BaseModel):
    """A single recorded score for one student. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    student_id: str
    score: float
    timestamp: datetime = Field(default_factory=utcnow)
    comment: Optional[str] = None
    evaluator: Optional[str] = None

    def passed(self, passing_score: float = 70.0) -> bool:
        return self.score >= passing_score


class ProjectPayload(BaseModel):
    """Construction payload for a new project (also produced by the partner adapter)."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    faculty: str
    budget: float = Field(0, ge=0)
    start_date: date
    source: Optional[Dict[str, Any]] = None


class ProjectView(BaseModel):
    """
    Read-only aggregate of a project.

    Capability decorators attach their own data under a namespace key
    (e.g. ``quality``); those land in ``model_extra`` and never replace the
    declared fields.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    title: str
    faculty: str
    budget: float
    status: ProjectStatus
    supervisor_id: Optional[str]
    student_count: int
    evaluation_count: int
    average: float
    percent_below_threshold: float
    start_date: date
    end_date: Optional[date] = None

    def with_extension(self, namespace: str, data: Dict[str, Any]) -> "ProjectView":
        """Return a copy with ``data`` added under ``namespace``."""
        if namespace in type(self).model_fields or namespace in self.extensions:
            raise ValueError(f"Snapshot already has a '{namespace}' entry")
        return type(self)(**self.model_dump(), **{namespace: data})

    @property
    def extensions(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def base_fields(self) -> Dict[str, Any]:
        return self.model_dump(include=set(type(self).model_fields))


@runtime_checkable
class ProjectCapability(Protocol):
    """Read/write operation set shared by Project and every capability decorator."""

    @property
    def id(self) -> str: ...

    @property
    def status(self) -> ProjectStatus: ...

    @property
    def supervisor_id(self) -> Optional[str]: ...

    @property
    def students(self) -> Tuple[str, ...]: ...

    @property
    def evaluations(self) -> Tuple[Evaluation, ...]: ...

    def add_evaluation(
        self,
        student_id: str,
        score: float,
        comment: Optional[str] = None,
        evaluator: Optional[str] = None,
    ) -> Evaluation: ...

    def add_student(self, student_id: str) -> bool: ...

    def assign_supervisor(self, supervisor_id: str) -> None: ...

    def update_budget(self, amount: float) -> float: ...

    def compute_average(self) -> float: ...

    def snapshot(self) -> ProjectView: ...


class Project:
    """
    Top-level research project record.

    Owns the roster, the append-only evaluation history and the status.
    Every mutation is forwarded as a ChangeEvent to the bound Subject, if
    any. Adding an evaluation re-runs the closure rule before returning, so
    callers always observe the resulting status.
    """

    def __init__(
        self,
        id: str,
        title: str,
        faculty: str,
        budget: float,
        start_date: date,
        description: Optional[str] = None,
        closure_rule: Optional[ClosureRule] = None,
        source: Optional[Dict[str, Any]] = None,
    ):
        self._id = id
        self.title = title
        self.description = description
        self.source = source
        self.faculty = faculty
        self.budget = budget
        self.start_date = start_date
        self.end_date: Optional[date] = None
        self.closed_at: Optional[datetime] = None
        self.closure_reason: Optional[str] = None
        self._status = ProjectStatus.ACTIVE
        self._supervisor_id: Optional[str] = None
        self._students: List[str] = []
        self._evaluations: List[Evaluation] = []
        self._closure_rule = closure_rule or ClosureRule()
        self._subject: Optional[Subject] = None

    @classmethod
    def from_payload(cls, payload: ProjectPayload, closure_rule: Optional[ClosureRule] = None) -> "Project":
        return cls(
            id=payload.id,
            title=payload.title,
            description=payload.description,
            faculty=payload.faculty,
            budget=payload.budget,
            start_date=payload.start_date,
            closure_rule=closure_rule,
            source=payload.source,
        )

    # Read side

    @property
    def id(self) -> str:
        return self._id

    @property
    def status(self) -> ProjectStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status == ProjectStatus.ACTIVE

    @property
    def supervisor_id(self) -> Optional[str]:
        return self._supervisor_id

    @property
    def students(self) -> Tuple[str, ...]:
        return tuple(self._students)

    @property
    def evaluations(self) -> Tuple[Evaluation, ...]:
        return tuple(self._evaluations)

    @property
    def passing_score(self) -> float:
        return self._closure_rule.passing_score

    def scores(self) -> List[float]:
        return [e.score for e in self._evaluations]

    def compute_average(self) -> float:
        """Mean of all recorded scores, 0.0 when there are none."""
        if not self._evaluations:
            return 0.0
        return sum(self.scores()) / len(self._evaluations)

    def snapshot(self) -> ProjectView:
        ratio = self._closure_rule.below_threshold_ratio(self.scores())
        return ProjectView(
            id=self._id,
            title=self.title,
            faculty=self.faculty,
            budget=self.budget,
            status=self._status,
            supervisor_id=self._supervisor_id,
            student_count=len(self._students),
            evaluation_count=len(self._evaluations),
            average=round(self.compute_average(), 2),
            percent_below_threshold=round(ratio * 100, 1),
            start_date=self.start_date,
            end_date=self.end_date,
        )

    # Notification

    def bind_subject(self, subject: Optional[Subject]) -> None:
        """Forward future change events to ``subject`` (None unbinds)."""
        self._subject = subject

    @property
    def subject(self) -> Optional[Subject]:
        return self._subject

    def _emit(self, kind: ChangeEventKind, **payload: Any) -> None:
        if self._subject is None:
            return
        self._subject.notify(ChangeEvent(kind=kind, payload={"project_id": self._id, **payload}))

    # Write side

    def add_student(self, student_id: str) -> bool:
        """Add a student to the roster. Returns False if already enrolled."""
        if student_id in self._students:
            return False
        self._students.append(student_id)
        self._emit(
            ChangeEventKind.STUDENT_ADDED,
            student_id=student_id,
            student_count=len(self._students),
        )
        return True

    def assign_supervisor(self, supervisor_id: str) -> None:
        if self._supervisor_id is not None:
            raise AlreadyAssigned(self._id, self._supervisor_id)
        self._supervisor_id = supervisor_id
        self._emit(ChangeEventKind.SUPERVISOR_ASSIGNED, supervisor_id=supervisor_id)

    def update_budget(self, amount: float) -> float:
        """Replace the budget. Returns the previous amount."""
        previous = self.budget
        self.budget = amount
        self._emit(ChangeEventKind.BUDGET_UPDATED, previous_budget=previous, budget=amount)
        return previous

    def add_evaluation(
        self,
        student_id: str,
        score: float,
        comment: Optional[str] = None,
        evaluator: Optional[str] = None,
    ) -> Evaluation:
        """Append an evaluation, then apply the closure rule to the full history."""
        evaluation = Evaluation(student_id=student_id, score=score, comment=comment, evaluator=evaluator)
        self._evaluations.append(evaluation)
        self._emit(
            ChangeEventKind.EVALUATION_ADDED,
            evaluation=evaluation.model_dump(mode="json"),
            evaluation_count=len(self._evaluations),
        )
        self.check_closure()
        return evaluation

    def check_closure(self) -> ClosureDecision:
        """Run the closure rule; closes the project when it fires."""
        decision = self._closure_rule.evaluate(self.scores(), self.is_active)
        if decision.should_close:
            self._close(decision)
        return decision

    def _close(self, decision: ClosureDecision) -> None:
        previous = self._status
        self._status = ProjectStatus.CLOSED
        self.closed_at = utcnow()
        self.end_date = self.closed_at.date()
        self.closure_reason = decision.reason
        logger.warning(
            "Project %s closed: %s",
            self._id,
            decision.reason,
            extra={"project_id": self._id},
        )
        # status is already closed here, so re-entrant evaluations cannot close again
        self._emit(
            ChangeEventKind.STATUS_CHANGED,
            previous_status=previous.value,
            status=self._status.value,
        )
        self._emit(
            ChangeEventKind.CLOSED,
            reason=decision.reason,
            percent_below_threshold=round(decision.percent_below_threshold, 1),
            closed_at=self.closed_at.isoformat(),
        )

    def __repr__(self) -> str:
        return f"<Project {self._id} {self.title[:50]!r} {self._status.value}>"


def evaluations_as_dicts(evaluations: Sequence[Evaluation], passing_score: float = 70.0) -> List[Dict[str, Any]]:
    """Serialize an evaluation history, marking each entry passed/failed."""
    return [
        {**e.model_dump(mode="json"), "passed": e.passed(passing_score)}
        for e in evaluations
    ]
