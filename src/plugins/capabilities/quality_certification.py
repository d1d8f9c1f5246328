"""
Quality Certification Capability - quality standards and certifications.

Standards checked against the live project:
- At least 3 enrolled students
- Average score of 75 or more
- Fewer than 30% of evaluations below the passing score
- A supervisor assigned

A project meeting 3 of the 4 standards can be certified.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from pydantic import BaseModel

from src.kernel.errors import CertificationRefused
from src.kernel.events.event_types import utcnow
from src.kernel.models.project import ProjectCapability
from src.logging_config import get_logger
from src.plugins.capabilities.base import ProjectDecorator

logger = get_logger(__name__)


class QualityStandard(str, Enum):
    """Quality standards a project can meet."""
    MIN_STUDENTS = "min_students"
    HIGH_AVERAGE = "high_average"
    LOW_FAILURE_RATE = "low_failure_rate"
    SUPERVISOR_ASSIGNED = "supervisor_assigned"


class StandardsCheck(BaseModel):
    """Result of checking every standard once."""

    total_standards: int
    met: List[QualityStandard]
    details: List[str]
    certifiable: bool

    @property
    def met_count(self) -> int:
        return len(self.met)


class Certification(BaseModel):
    """A granted quality certification."""

    kind: str
    issuer: str
    granted_at: datetime
    valid_until: datetime
    standards_met: List[QualityStandard]


class QualityAudit(BaseModel):
    """A recorded quality audit."""

    timestamp: datetime
    auditor: str
    result: str
    observations: str = ""
    standards_verified: List[QualityStandard]


class QualityCertificationDecorator(ProjectDecorator):
    """Adds quality standards, certifications and audits to a project."""

    MIN_STUDENTS = 3
    MIN_AVERAGE = 75.0
    MAX_FAILURE_PERCENT = 30.0
    MIN_STANDARDS_FOR_CERTIFICATION = 3
    CERTIFICATION_VALIDITY = timedelta(days=365)

    def __init__(self, inner: ProjectCapability, clock: Callable[[], datetime] = utcnow):
        super().__init__(inner)
        self._clock = clock
        self._certifications: List[Certification] = []
        self._audits: List[QualityAudit] = []

    @property
    def namespace(self) -> str:
        return "quality"

    def failure_percent(self) -> float:
        """Unrounded share of evaluations below the passing score, in percent."""
        scores = [e.score for e in self._inner.evaluations]
        if not scores:
            return 0.0
        passing = self._inner.passing_score
        return sum(1 for s in scores if s < passing) / len(scores) * 100

    def check_standards(self) -> StandardsCheck:
        """Evaluate every standard against the current project state."""
        view = self._inner.snapshot()
        met: List[QualityStandard] = []
        details: List[str] = []

        if view.student_count >= self.MIN_STUDENTS:
            met.append(QualityStandard.MIN_STUDENTS)
            details.append(f"At least {self.MIN_STUDENTS} students")

        average = self._inner.compute_average()
        if average >= self.MIN_AVERAGE:
            met.append(QualityStandard.HIGH_AVERAGE)
            details.append(f"Average {average:.1f} >= {self.MIN_AVERAGE:g}")

        failure_percent = self.failure_percent()
        if failure_percent < self.MAX_FAILURE_PERCENT:
            met.append(QualityStandard.LOW_FAILURE_RATE)
            details.append(f"Only {failure_percent:.1f}% failing")

        if view.supervisor_id:
            met.append(QualityStandard.SUPERVISOR_ASSIGNED)
            details.append("Supervisor assigned")

        return StandardsCheck(
            total_standards=len(QualityStandard),
            met=met,
            details=details,
            certifiable=len(met) >= self.MIN_STANDARDS_FOR_CERTIFICATION,
        )

    def grant_certification(self, kind: str, issuer: str) -> Certification:
        """
        Grant a certification if the project currently meets enough standards.

        Raises:
            CertificationRefused: if fewer than the required standards are met
        """
        check = self.check_standards()
        if not check.certifiable:
            raise CertificationRefused(
                f"Project {self.id} meets {check.met_count} of {check.total_standards} "
                f"standards; {self.MIN_STANDARDS_FOR_CERTIFICATION} required"
            )
        granted_at = self._clock()
        certification = Certification(
            kind=kind,
            issuer=issuer,
            granted_at=granted_at,
            valid_until=granted_at + self.CERTIFICATION_VALIDITY,
            standards_met=check.met,
        )
        self._certifications.append(certification)
        logger.info(
            "Certification %s granted by %s",
            kind,
            issuer,
            extra={"project_id": self.id},
        )
        return certification

    def record_audit(self, auditor: str, result: str, observations: str = "") -> QualityAudit:
        audit = QualityAudit(
            timestamp=self._clock(),
            auditor=auditor,
            result=result,
            observations=observations,
            standards_verified=self.check_standards().met,
        )
        self._audits.append(audit)
        return audit

    @property
    def certifications(self) -> Tuple[Certification, ...]:
        return tuple(self._certifications)

    @property
    def audits(self) -> Tuple[QualityAudit, ...]:
        return tuple(self._audits)

    def is_certified(self) -> bool:
        return bool(self._certifications)

    def extension_data(self) -> Dict[str, Any]:
        check = self.check_standards()
        return {
            "standards_met": check.met_count,
            "total_standards": check.total_standards,
            "certifiable": check.certifiable,
            "certifications": len(self._certifications),
            "audits": len(self._audits),
        }
